"""Bounded polling for external state that may lag behind a command."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PollOutcome(Generic[T]):
    satisfied: bool
    value: T | None
    attempts: int
    error: BaseException | None = None


async def poll_until(
    probe: Callable[[], Awaitable[T]],
    predicate: Callable[[T], bool],
    *,
    attempts: int = 3,
    delay: float = 0.0,
    tolerate_errors: bool = False,
) -> PollOutcome[T]:
    """Call ``probe`` until ``predicate`` accepts its value or ``attempts`` run out.

    With ``tolerate_errors`` a raising probe counts as a failed attempt and the
    last error is reported on the outcome; otherwise the error propagates.
    """

    if attempts < 1:
        raise ValueError("attempts must be >= 1")

    value: T | None = None
    error: BaseException | None = None
    for attempt in range(1, attempts + 1):
        try:
            value = await probe()
            error = None
        except Exception as exc:
            if not tolerate_errors:
                raise
            error = exc
            logger.debug("Probe raised", extra={"attempt": attempt, "error": str(exc)})
        else:
            if predicate(value):
                return PollOutcome(satisfied=True, value=value, attempts=attempt)
            logger.debug("Probe not yet satisfied", extra={"attempt": attempt, "value": value})
        if attempt < attempts and delay > 0:
            await asyncio.sleep(delay)

    return PollOutcome(satisfied=False, value=value, attempts=attempts, error=error)


__all__ = ["PollOutcome", "poll_until"]
