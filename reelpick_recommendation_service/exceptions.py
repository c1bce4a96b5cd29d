"""Errors raised while producing recommendations."""


class RecommendationError(Exception):
    """Base class for recommendation engine errors."""


class InsufficientSignalError(RecommendationError):
    """A strategy has too little data (ratings, neighbours, liked items) to run."""


class UpstreamUnavailableError(RecommendationError):
    """The external AI collaborator is unconfigured, failed, or timed out."""


class InvalidRequestError(RecommendationError, ValueError):
    """The caller asked for something the engine cannot serve."""


class RequestCancelledError(RecommendationError):
    """The caller cancelled the request before a network call was made."""
