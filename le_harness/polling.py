"""Poll-until-true primitive for eventually-consistent external state."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

from le_common.errors import PollTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class PollOutcome(Generic[T]):
    """Result of a single poll attempt; consumed immediately by ``poll_until``."""

    ready: bool
    value: Optional[T] = None
    transient_error: Optional[str] = None

    @classmethod
    def ok(cls, value: T) -> "PollOutcome[T]":
        return cls(ready=True, value=value)

    @classmethod
    def not_ready(cls, reason: str | None = None) -> "PollOutcome[T]":
        return cls(ready=False, transient_error=reason)


@dataclass(frozen=True)
class PollPolicy:
    """Fixed-interval policy; ``timeout`` of None polls forever."""

    interval: float = 1.0
    timeout: Optional[float] = None


def poll_until(
    check: Callable[[], PollOutcome[T]],
    *,
    policy: PollPolicy = PollPolicy(),
    description: str = "condition",
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> T:
    """Call ``check`` until it reports ready and return its value.

    Not-ready outcomes are retried after ``policy.interval`` seconds.
    Exceptions raised by ``check`` propagate unchanged. Once ``policy.timeout``
    seconds have elapsed a PollTimeoutError is raised.
    """
    started = clock()
    attempts = 0
    last_reason: Optional[str] = None
    while True:
        attempts += 1
        outcome = check()
        if outcome.ready:
            logger.debug("%s ready after %d attempt(s)", description, attempts)
            return outcome.value  # type: ignore[return-value]
        last_reason = outcome.transient_error
        logger.debug(
            "%s not ready (attempt %d): %s", description, attempts, last_reason or "pending"
        )
        if policy.timeout is not None and clock() - started >= policy.timeout:
            raise PollTimeoutError(
                f"Timed out waiting for {description}",
                context={
                    "attempts": attempts,
                    "timeout_seconds": policy.timeout,
                    "last_reason": last_reason,
                },
            )
        sleep(policy.interval)
