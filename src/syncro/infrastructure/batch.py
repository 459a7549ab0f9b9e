"""Batch operation helper.

Runs one async operation per id concurrently and reports every outcome,
so that a failing id never aborts the others.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, List, Optional, Sequence, TypeVar, Union

T = TypeVar("T")
K = TypeVar("K")

ABORT_MESSAGE = "CancelledError: the operation was cancelled before it started"


@dataclass(frozen=True)
class OperationOutcome(Generic[T]):
    """What a batched operation reports for its id"""

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: T) -> "OperationOutcome[T]":
        return cls(success=True, data=data)

    @classmethod
    def failed(cls, error: str) -> "OperationOutcome[T]":
        return cls(success=False, error=error)


@dataclass(frozen=True)
class Thrown:
    """The operation raised instead of returning an outcome"""

    message: str


@dataclass(frozen=True)
class Cancelled:
    """The cancel event was set before the operation started"""

    message: str = ABORT_MESSAGE


Settled = Union[OperationOutcome, Thrown, Cancelled]


@dataclass
class BatchItem(Generic[T, K]):
    """Outcome for one id"""

    id: K
    success: bool
    data: Optional[T] = None  # Only set on success
    error: Optional[str] = None  # Only set on failure


@dataclass
class BatchResult(Generic[T, K]):
    """Per-id outcomes, in input order, plus counts"""

    results: List[BatchItem[T, K]] = field(default_factory=list)
    success_count: int = 0
    failure_count: int = 0

    @property
    def all_succeeded(self) -> bool:
        return self.failure_count == 0

    @property
    def failures(self) -> List[BatchItem[T, K]]:
        return [item for item in self.results if not item.success]


Operation = Callable[[K, Optional[asyncio.Event]], Awaitable[OperationOutcome[T]]]


def _describe_exception(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


def _to_item(item_id: K, settled: Settled) -> BatchItem:
    if isinstance(settled, OperationOutcome):
        item = BatchItem(id=item_id, success=settled.success)
        if settled.data is not None:
            item.data = settled.data
        if settled.error is not None:
            item.error = settled.error
        return item
    if isinstance(settled, (Thrown, Cancelled)):
        return BatchItem(id=item_id, success=False, error=settled.message)
    return BatchItem(
        id=item_id,
        success=False,
        error=f"Operation returned {type(settled).__name__}, expected OperationOutcome",
    )


async def _run_one(
    item_id: K,
    operation: Operation,
    cancel_event: Optional[asyncio.Event],
) -> Settled:
    if cancel_event is not None and cancel_event.is_set():
        return Cancelled()
    return await operation(item_id, cancel_event)


async def run_batch(
    ids: Sequence[K],
    operation: Operation,
    cancel_event: Optional[asyncio.Event] = None,
) -> BatchResult:
    """Run ``operation`` for every id concurrently and collect the outcomes.

    Args:
        ids: Ids to process; may be empty
        operation: Coroutine function ``(id, cancel_event) -> OperationOutcome``
        cancel_event: Cooperative cancellation signal. Ids that have not
            started when it is set are reported as cancelled without running.
            Running operations are expected to watch it themselves.

    Returns:
        BatchResult whose ``results[i]`` belongs to ``ids[i]``
    """
    if not ids:
        return BatchResult()

    ids = list(ids)
    settled = await asyncio.gather(
        *(_run_one(item_id, operation, cancel_event) for item_id in ids),
        return_exceptions=True,
    )

    results = []
    for item_id, outcome in zip(ids, settled):
        if isinstance(outcome, BaseException):
            outcome = Thrown(_describe_exception(outcome))
        results.append(_to_item(item_id, outcome))

    success_count = sum(1 for item in results if item.success)
    return BatchResult(
        results=results,
        success_count=success_count,
        failure_count=len(results) - success_count,
    )
