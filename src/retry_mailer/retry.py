# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Exponential backoff retry loop for mail delivery.

The loop runs an attempt function up to ``max_retries`` times in total
(the first attempt counts). After a failed attempt ``i`` (1-based) it waits
``base_delay * 2**i`` time units plus a jitter drawn from ``[0, i)`` whole
time units, so the first wait has no jitter and both terms grow with each
iteration. With the defaults (2 units of 1 second) the waits are 4s, 8s+j,
16s+j and so on.

The wait races a timer against the caller's cancellation: an
``asyncio.Event`` and/or a deadline given as ``timeout`` seconds from the
start of the send. Cancellation is only observed while waiting; an attempt
that already started always runs to completion.

Example:
    Retrying an async callable with a 30 second budget::

        strategy = RetryStrategy(rng=random.Random(42))
        await send_with_retry(email, deliver, max_retries=5,
                              strategy=strategy, timeout=30)
"""

from __future__ import annotations

import asyncio
import inspect
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from .errors import (
    DeliveryTimeoutError,
    MessageBuildError,
    RetriesExhaustedError,
    ValidationError,
)
from .logger import get_logger

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY = 2
DEFAULT_TIME_UNIT = 1.0

T = TypeVar("T")

logger = get_logger("RetryEngine")


class RetryStrategy:
    """Backoff and jitter calculation.

    Attributes:
        base_delay: Backoff multiplier, in time units.
        time_unit: Length of one time unit in seconds.
        rng: Random source for jitter. Pass a seeded ``random.Random`` for
            reproducible delays.
    """

    def __init__(
        self,
        base_delay: float = DEFAULT_BASE_DELAY,
        time_unit: float = DEFAULT_TIME_UNIT,
        rng: random.Random | None = None,
    ):
        if base_delay < 0:
            raise ValueError("base_delay must not be negative")
        if time_unit < 0:
            raise ValueError("time_unit must not be negative")
        self.base_delay = base_delay
        self.time_unit = time_unit
        self.rng = rng or random.Random()

    def backoff(self, attempt: int) -> float:
        """Backoff in seconds after the failed 1-based ``attempt``."""
        return self.base_delay * (2 ** attempt) * self.time_unit

    def jitter(self, attempt: int) -> float:
        """Random extra delay in seconds, a whole number of units in ``[0, attempt)``."""
        if attempt <= 1:
            return 0.0
        return self.rng.randrange(attempt) * self.time_unit

    def calculate_delay(self, attempt: int) -> float:
        """Total wait in seconds before the attempt following ``attempt``."""
        return self.backoff(attempt) + self.jitter(attempt)


@dataclass
class RetryState:
    """Progress of one send call."""

    attempt: int = 0
    delay: float = 0.0
    last_error: BaseException | None = None


async def wait_or_cancel(cancel_event: asyncio.Event, delay: float) -> bool:
    """Wait up to ``delay`` seconds for ``cancel_event``.

    Returns:
        True if the event was set first, False if the delay elapsed.
    """
    if cancel_event.is_set():
        return True
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=max(0.0, delay))
    except asyncio.TimeoutError:
        return False
    return True


async def send_with_retry(
    email: T,
    attempt_fn: Callable[[T], Awaitable[Any] | Any],
    max_retries: int,
    *,
    strategy: RetryStrategy | None = None,
    cancel_event: asyncio.Event | None = None,
    timeout: float | None = None,
) -> None:
    """Run ``attempt_fn(email)`` until it succeeds or the budget is spent.

    ``attempt_fn`` may be a plain function or a coroutine function. Any
    exception it raises counts as a failed attempt, except validation and
    message build errors, which propagate immediately.

    Args:
        email: Passed unchanged to every attempt.
        attempt_fn: One delivery attempt.
        max_retries: Total number of attempts allowed. Zero or less fails
            without calling ``attempt_fn``.
        strategy: Backoff configuration. Defaults to ``RetryStrategy()``.
        cancel_event: Setting it aborts the current backoff wait.
        timeout: Seconds from now after which backoff waits are aborted.

    Raises:
        DeliveryTimeoutError: Cancellation or the deadline won a backoff wait.
        RetriesExhaustedError: All attempts failed; the last attempt error is
            chained as ``__cause__``.
    """
    strategy = strategy or RetryStrategy()
    cancel_event = cancel_event or asyncio.Event()
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout if timeout is not None else None
    state = RetryState()

    for attempt in range(1, max_retries + 1):
        state.attempt = attempt
        try:
            result = attempt_fn(email)
            if inspect.isawaitable(result):
                await result
        except (ValidationError, MessageBuildError):
            raise
        except Exception as exc:
            state.last_error = exc
            logger.warning("Send attempt %d/%d failed: %s", attempt, max_retries, exc)
        else:
            if attempt > 1:
                logger.info("Email sent on attempt %d/%d", attempt, max_retries)
            return

        if attempt >= max_retries:
            break

        state.delay = strategy.calculate_delay(attempt)
        wait = state.delay
        if deadline is not None:
            wait = min(wait, deadline - loop.time())
        logger.info("Retrying send in %.2fs (attempt %d/%d)", state.delay, attempt + 1, max_retries)

        cancelled = await wait_or_cancel(cancel_event, wait)
        if cancelled or wait < state.delay:
            logger.warning("Send cancelled while waiting after attempt %d", attempt)
            raise DeliveryTimeoutError(attempt) from state.last_error

    raise RetriesExhaustedError(state.attempt, state.last_error) from state.last_error
