"""Application configuration"""

import json
import os
from pathlib import Path

DEFAULT_CACHE_TTLS = {
    "collaborative": 1800,
    "content": 1800,
    "hybrid": 1800,
    "popularity": 3600,
    "ai": 3600,
}


def _get_config_value(key: str, default: str | None = None) -> str | None:
    """
    Get configuration value from environment or local.settings.json.

    Priority:
    1. Environment variable
    2. local.settings.json (Values.key)
    3. Default value

    Args:
        key: Configuration key name
        default: Default value if not found

    Returns:
        Configuration value or default
    """
    # Try environment variable first
    value = os.getenv(key)
    if value:
        return value

    # Try local.settings.json
    project_root = Path(__file__).resolve().parent.parent
    local_settings_path = project_root / "local.settings.json"

    if local_settings_path.exists():
        try:
            with open(local_settings_path) as f:
                settings = json.load(f)
                value = settings.get("Values", {}).get(key)
                if value:
                    return value
        except (json.JSONDecodeError, KeyError):
            pass

    # Return default
    return default


def _get_float(key: str, default: float) -> float:
    """Read a numeric setting, falling back to default on missing or malformed values."""
    value = _get_config_value(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def get_database_url() -> str | None:
    """
    Get database URL from environment or config.

    Returns:
        Database connection string
    """
    return _get_config_value("DATABASE_URL", default="sqlite:///reelpick.db")


def get_ai_service_url() -> str | None:
    """
    Get the base URL of the external AI proposal service.

    Returns:
        Service URL, or None when the AI strategy is not configured
    """
    return _get_config_value("AI_SERVICE_URL")


def get_ai_service_api_key() -> str | None:
    """Get the bearer token for the AI proposal service (optional)."""
    return _get_config_value("AI_SERVICE_API_KEY")


def get_ai_timeout() -> float:
    """
    Get the upper bound, in seconds, for a single AI proposal call.

    Returns:
        Timeout in seconds (default: 10)
    """
    return _get_float("AI_SERVICE_TIMEOUT", 10.0)


def get_cache_ttl(strategy: str) -> float:
    """
    Get the cache lifetime for results produced by a strategy.

    Args:
        strategy: Strategy name (e.g., 'hybrid', 'popularity', 'ai')

    Returns:
        TTL in seconds
    """
    default = DEFAULT_CACHE_TTLS.get(strategy, DEFAULT_CACHE_TTLS["hybrid"])
    return _get_float(f"CACHE_TTL_{strategy.upper()}", float(default))


def get_max_recommendation_limit() -> int:
    """Get the largest `limit` a caller may request (default: 50)."""
    return int(_get_float("MAX_RECOMMENDATION_LIMIT", 50))
