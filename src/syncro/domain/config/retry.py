"""Retry configuration model."""

from pydantic import BaseModel, Field


class RetryConfig(BaseModel):
    """Configuration for retry logic.

    Delay before retry ``n`` (1-based) is
    ``base_delay * backoff_multiplier ** n``, capped at ``max_delay``.

    Attributes:
        max_retries: Maximum number of reissues after the first attempt
        base_delay: Base delay in seconds
        backoff_multiplier: Exponential backoff multiplier
        max_delay: Upper bound for a single delay in seconds
        jitter: Random jitter factor (0.0-1.0)
    """

    max_retries: int = Field(3, ge=0, le=10)
    base_delay: float = Field(1.0, ge=0.0)  # Allow 0 for tests
    backoff_multiplier: float = Field(2.0, ge=1.0, le=10.0)
    max_delay: float = Field(60.0, gt=0.0)
    jitter: float = Field(0.0, ge=0.0, le=1.0)
