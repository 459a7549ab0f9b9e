"""API connection configuration model."""

from typing import Optional

from pydantic import BaseModel, Field

DEFAULT_BASE_URL = "http://localhost:3001/api"


class ApiConfig(BaseModel):
    """Configuration for the subscription API.

    Attributes:
        base_url: API root URL
        api_key: Bearer token (None = from SYNCRO_API_KEY env)
        timeout: Per-attempt request timeout in seconds
    """

    base_url: str = DEFAULT_BASE_URL
    api_key: Optional[str] = None
    timeout: float = Field(30.0, gt=0.0)
