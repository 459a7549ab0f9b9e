"""Shared HTTP transport (httpx) for the subscription API.

One ``send`` is one network attempt. Retries live in
:mod:`syncro.infrastructure.retry`, not here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)


class TransportFailure(Exception):
    """A request that produced no response, or an error response.

    Attributes:
        status: HTTP status code, or None when no response was received
        body: Decoded response body (JSON if possible, else text)
    """

    def __init__(self, message: str, status: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.status = status
        self.body = body

    @property
    def has_response(self) -> bool:
        return self.status is not None

    @property
    def response_error(self) -> Optional[str]:
        """The ``error`` field of a JSON error body, if the server sent one"""
        if isinstance(self.body, dict):
            error = self.body.get("error")
            if error:
                return str(error)
        return None


@dataclass(frozen=True)
class ApiRequest:
    """One logical request. Reissued as-is on every retry."""

    method: str
    path: str
    json: Optional[Any] = None
    headers: Optional[Dict[str, str]] = None


def _decode_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class HttpTransport:
    """Single-attempt transport bound to one API root and credential"""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize transport

        Args:
            base_url: API root URL
            api_key: Bearer token sent with every request
            timeout: Per-attempt timeout in seconds
            client: Pre-built client (caller keeps ownership and closes it)
        """
        self.base_url = base_url
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            headers=self._headers,
            timeout=timeout,
        )

    async def send(self, request: ApiRequest) -> httpx.Response:
        """Perform one network attempt

        Raises:
            TransportFailure: On connection errors, timeouts and 4xx/5xx responses
        """
        headers = dict(self._headers)
        if request.headers:
            headers.update(request.headers)

        logger.debug(f"HTTP {request.method} {request.path}")
        try:
            response = await self._client.request(
                request.method,
                request.path,
                json=request.json,
                headers=headers,
            )
        except httpx.TransportError as e:
            raise TransportFailure(str(e) or e.__class__.__name__) from e

        if response.is_error:
            raise TransportFailure(
                f"Request failed with status code {response.status_code}",
                status=response.status_code,
                body=_decode_body(response),
            )
        return response

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpTransport":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
