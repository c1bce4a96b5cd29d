"""Unit tests for reelpick_recommendation_service.services.fallback_policy."""
from unittest.mock import Mock

import pytest

from reelpick_recommendation_service.exceptions import (
    InsufficientSignalError,
    RequestCancelledError,
    UpstreamUnavailableError,
)
from reelpick_recommendation_service.ml.entities import CatalogSnapshot, ScoredItem
from reelpick_recommendation_service.services.fallback_policy import FallbackOutcome, FallbackPolicy


def stub_recommender(name, result=None, error=None):
    recommender = Mock()
    recommender.name = name
    if error is not None:
        recommender.score.side_effect = error
    else:
        recommender.score.return_value = result or []
    return recommender


@pytest.fixture
def one_result(sample_items):
    return [ScoredItem(item=sample_items[2], score=0.9, reason='stub')]


class TestFallbackOutcome:
    """Tests for FallbackOutcome."""

    def test_fell_back(self):
        # Assert
        assert FallbackOutcome(items=[], source='popularity', requested='hybrid').fell_back
        assert not FallbackOutcome(items=[], source='hybrid', requested='hybrid').fell_back


class TestResolve:
    """Tests for resolve method."""

    def test_requested_strategy_wins_when_it_has_results(self, make_context, one_result):
        # Arrange
        registry = {'hybrid': stub_recommender('hybrid', one_result)}

        # Act
        outcome = FallbackPolicy().resolve('hybrid', registry, make_context('alice'), 10)

        # Assert
        assert outcome.items == one_result
        assert outcome.source == 'hybrid'
        assert not outcome.fell_back

    def test_insufficient_signal_falls_back_to_popularity(self, make_context):
        # Arrange
        registry = {'collaborative': stub_recommender('collaborative', error=InsufficientSignalError('x'))}

        # Act
        outcome = FallbackPolicy().resolve('collaborative', registry, make_context('alice'), 10)

        # Assert
        assert outcome.source == 'popularity'
        assert outcome.requested == 'collaborative'
        assert [s.item_id for s in outcome.items] == ['m4', 'm3', 'm6']

    def test_empty_result_falls_back_to_popularity(self, make_context):
        # Arrange
        registry = {'content': stub_recommender('content', [])}

        # Act
        outcome = FallbackPolicy().resolve('content', registry, make_context('dave'), 3)

        # Assert
        assert outcome.source == 'popularity'
        assert [s.item_id for s in outcome.items] == ['m4', 'm2', 'm1']

    def test_ai_failure_uses_content_substitute(self, make_context, one_result):
        # Arrange
        content = stub_recommender('content', one_result)
        registry = {
            'ai': stub_recommender('ai', error=UpstreamUnavailableError('down')),
            'content': content,
        }

        # Act
        outcome = FallbackPolicy().resolve('ai', registry, make_context('alice'), 10)

        # Assert
        assert outcome.source == 'content'
        assert outcome.requested == 'ai'
        assert outcome.items == one_result

    def test_ai_and_content_both_empty_use_popularity(self, make_context):
        # Arrange
        registry = {
            'ai': stub_recommender('ai', error=UpstreamUnavailableError('down')),
            'content': stub_recommender('content', error=InsufficientSignalError('none')),
        }

        # Act
        outcome = FallbackPolicy().resolve('ai', registry, make_context('dave'), 10)

        # Assert
        assert outcome.source == 'popularity'

    def test_substitute_not_applied_to_other_strategies(self, make_context):
        # Arrange
        content = stub_recommender('content', [])
        registry = {
            'hybrid': stub_recommender('hybrid', error=InsufficientSignalError('x')),
            'content': content,
        }

        # Act
        FallbackPolicy().resolve('hybrid', registry, make_context('alice'), 10)

        # Assert
        content.score.assert_not_called()

    def test_cancellation_propagates(self, make_context):
        # Arrange
        registry = {'ai': stub_recommender('ai', error=RequestCancelledError('stop'))}

        # Act & Assert
        with pytest.raises(RequestCancelledError):
            FallbackPolicy().resolve('ai', registry, make_context('alice'), 10)

    def test_empty_catalog_gives_empty_list(self, make_context):
        # Arrange
        registry = {'hybrid': stub_recommender('hybrid', error=InsufficientSignalError('x'))}

        # Act
        outcome = FallbackPolicy().resolve(
            'hybrid', registry, make_context('alice', snapshot=CatalogSnapshot()), 10
        )

        # Assert
        assert outcome.items == []
        assert outcome.source == 'popularity'
