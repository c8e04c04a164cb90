"""Exponential backoff for remote calls."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from modules.remote.errors import FailureKind, failure_kind_of

T = TypeVar("T")

SleepCallable = Callable[[float], Awaitable[None]]

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Retry budget and the first backoff delay in seconds."""

    retries: int = 3
    initial_delay: float = 1.0


async def call_with_retry(
    fn: Callable[[], Awaitable[T]],
    policy: RetryPolicy = RetryPolicy(),
    sleep: SleepCallable = asyncio.sleep,
) -> T:
    """Await ``fn()``; retry transient failures with a doubling delay.

    Non-transient failures, and transient ones once the budget is spent,
    are re-raised unchanged. There is no jitter and no delay cap.
    """
    remaining = policy.retries
    delay = policy.initial_delay
    while True:
        try:
            return await fn()
        except Exception as exc:
            if failure_kind_of(exc) is not FailureKind.TRANSIENT or remaining <= 0:
                raise
            logger.warning(
                "Remote link unstable (%s). Retrying in %d ms (%d retries left)...",
                exc,
                int(delay * 1000),
                remaining,
            )
            await sleep(delay)
            remaining -= 1
            delay *= 2
