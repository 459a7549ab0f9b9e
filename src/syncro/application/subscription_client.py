"""Subscription API client - single operations plus batch helpers"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence

import httpx
from tenacity import RetryCallState

from syncro.domain.config import DEFAULT_BASE_URL, AppConfig
from syncro.domain.models.event import EventListener, EventType, SubscriptionEvent
from syncro.domain.models.subscription import (
    BlockchainSync,
    CancellationResult,
    CancellationStatus,
    Subscription,
)
from syncro.infrastructure.batch import BatchResult, OperationOutcome, run_batch
from syncro.infrastructure.http_client import ApiRequest, HttpTransport, TransportFailure
from syncro.infrastructure.retry import RetryPolicy, perform_with_retry, retry_policy_from_config

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "Unknown error"


class SubscriptionError(RuntimeError):
    """A subscription operation failed after retries were applied"""

    def __init__(self, message: str, subscription_id: str, reason: str):
        super().__init__(message)
        self.subscription_id = subscription_id
        self.reason = reason


def describe_failure(exc: BaseException) -> str:
    """Human-readable reason: server ``error`` field, then exception text."""
    if isinstance(exc, TransportFailure) and exc.response_error:
        return exc.response_error
    return str(exc) or UNKNOWN_ERROR


def _payload(response: httpx.Response) -> Dict[str, Any]:
    body = response.json()
    if not isinstance(body, dict):
        raise ValueError("Unexpected response body: expected a JSON object")
    return body


class SyncroClient:
    """Async client for the subscription-management API

    Every request goes through :func:`perform_with_retry` with the client's
    policy. Lifecycle events for single operations go to an explicit listener.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        retry_policy: Optional[RetryPolicy] = None,
        timeout: float = 30.0,
        listener: Optional[EventListener] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize client

        Args:
            api_key: API key sent as a Bearer token
            base_url: API root URL
            retry_policy: Retry policy (default: 3 retries, 2/4/8s backoff)
            timeout: Per-attempt timeout in seconds
            listener: Default receiver of lifecycle events
            http_client: Pre-built httpx client (caller keeps ownership)
            sleep: Backoff sleep, replaceable in tests

        Raises:
            ValueError: If api_key is empty
        """
        if not api_key:
            raise ValueError(
                "API key is required. "
                "Set SYNCRO_API_KEY environment variable or provide in config."
            )

        self.retry_policy = retry_policy or RetryPolicy()
        self.listener = listener
        self._sleep = sleep
        self._transport = HttpTransport(
            base_url=base_url,
            api_key=api_key,
            timeout=timeout,
            client=http_client,
        )
        logger.debug(f"Syncro client initialized for {base_url}")

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        listener: Optional[EventListener] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "SyncroClient":
        return cls(
            api_key=config.api.api_key or "",
            base_url=config.api.base_url,
            retry_policy=retry_policy_from_config(config.retry),
            timeout=config.api.timeout,
            listener=listener,
            http_client=http_client,
        )

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def __aenter__(self) -> "SyncroClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def _log_retry(self, retry_state: RetryCallState) -> None:
        if retry_state.outcome is None:
            return
        exception = retry_state.outcome.exception()
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            f"API error (attempt {retry_state.attempt_number}/{self.retry_policy.max_retries + 1}): "
            f"{exception}. Retrying in {delay:.2f}s..."
        )

    async def _request(
        self, request: ApiRequest, cancel_event: Optional[asyncio.Event] = None
    ) -> httpx.Response:
        return await perform_with_retry(
            lambda: self._transport.send(request),
            self.retry_policy,
            sleep=self._sleep,
            before_sleep=self._log_retry,
            cancel_event=cancel_event,
        )

    def _emit(self, listener: Optional[EventListener], event: SubscriptionEvent) -> None:
        if listener is None:
            return
        try:
            listener(event)
        except Exception as e:
            logger.warning(f"Event listener failed on {event.type.value}: {e}")

    async def cancel_subscription(
        self,
        subscription_id: str,
        *,
        listener: Optional[EventListener] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> CancellationResult:
        """Cancel a subscription

        Args:
            subscription_id: Subscription to cancel
            listener: Event receiver for this call (defaults to the client's)
            cancel_event: Stops further retries once set

        Returns:
            Cancellation result including status and optional redirect link

        Raises:
            SubscriptionError: If the API rejects the cancellation after retries
        """
        listener = listener or self.listener
        self._emit(listener, SubscriptionEvent(EventType.CANCELLING, subscription_id))

        try:
            response = await self._request(
                ApiRequest("POST", f"/subscriptions/{subscription_id}/cancel"),
                cancel_event,
            )
            payload = _payload(response)
            data = payload.get("data") or {}
            result = CancellationResult(
                success=True,
                status=CancellationStatus.CANCELLED,
                subscription=Subscription.from_dict(data),
                redirect_url=data.get("cancellation_url") or data.get("renewal_url"),
                blockchain=BlockchainSync.from_dict(payload.get("blockchain")),
            )
        except Exception as e:
            reason = describe_failure(e)
            logger.error(f"Cancellation of {subscription_id} failed: {reason}")
            self._emit(
                listener,
                SubscriptionEvent(EventType.FAILURE, subscription_id, error=reason),
            )
            raise SubscriptionError(
                f"Cancellation failed: {reason}", subscription_id, reason
            ) from e

        logger.info(f"Cancelled subscription {subscription_id}")
        self._emit(
            listener,
            SubscriptionEvent(EventType.SUCCESS, subscription_id, result=result),
        )
        return result

    async def get_subscription(
        self,
        subscription_id: str,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Subscription:
        """Get subscription details

        Raises:
            TransportFailure: If the request fails after retries
            ValueError: If the response carries no subscription
        """
        response = await self._request(
            ApiRequest("GET", f"/subscriptions/{subscription_id}"), cancel_event
        )
        return Subscription.from_dict(_payload(response).get("data"))

    async def cancel_subscriptions(
        self,
        subscription_ids: Sequence[str],
        *,
        cancel_event: Optional[asyncio.Event] = None,
        listener: Optional[EventListener] = None,
    ) -> BatchResult:
        """Cancel many subscriptions; one failure does not stop the others"""

        async def _cancel(
            subscription_id: str, event: Optional[asyncio.Event]
        ) -> OperationOutcome[CancellationResult]:
            try:
                return OperationOutcome.ok(
                    await self.cancel_subscription(
                        subscription_id, listener=listener, cancel_event=event
                    )
                )
            except SubscriptionError as e:
                return OperationOutcome.failed(e.reason)

        result = await run_batch(subscription_ids, _cancel, cancel_event)
        logger.info(
            f"Batch cancellation complete: {result.success_count}/{len(result.results)} succeeded"
        )
        return result

    async def get_subscriptions(
        self,
        subscription_ids: Sequence[str],
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> BatchResult:
        """Fetch many subscriptions; missing or failing ids are reported per item"""

        async def _get(
            subscription_id: str, event: Optional[asyncio.Event]
        ) -> OperationOutcome[Subscription]:
            try:
                return OperationOutcome.ok(
                    await self.get_subscription(subscription_id, cancel_event=event)
                )
            except (TransportFailure, ValueError) as e:
                return OperationOutcome.failed(describe_failure(e))

        return await run_batch(subscription_ids, _get, cancel_event)
