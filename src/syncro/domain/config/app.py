"""Main application configuration model."""

from pydantic import BaseModel, ConfigDict, Field

from syncro.domain.config.api import ApiConfig
from syncro.domain.config.retry import RetryConfig


class AppConfig(BaseModel):
    """Main application configuration.

    Root model that aggregates all configuration sections.
    Validation is performed at load time to fail fast on configuration errors.

    Attributes:
        api: Subscription API connection settings
        retry: Retry logic configuration
    """

    api: ApiConfig = Field(default_factory=ApiConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",
        json_schema_extra={
            "example": {
                "api": {
                    "base_url": "https://api.example.com/api",
                    "api_key": None,
                    "timeout": 30.0,
                },
                "retry": {
                    "max_retries": 3,
                    "base_delay": 1.0,
                    "backoff_multiplier": 2.0,
                    "max_delay": 60.0,
                    "jitter": 0.0,
                },
            }
        },
    )
