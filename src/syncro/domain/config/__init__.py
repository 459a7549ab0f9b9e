"""Configuration models with Pydantic validation."""

from syncro.domain.config.api import DEFAULT_BASE_URL, ApiConfig
from syncro.domain.config.app import AppConfig
from syncro.domain.config.retry import RetryConfig

__all__ = [
    "AppConfig",
    "ApiConfig",
    "RetryConfig",
    "DEFAULT_BASE_URL",
]
