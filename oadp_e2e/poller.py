"""Blocking condition polling."""

import logging
import time
from typing import Callable, Optional

from oadp_e2e.config import settings
from oadp_e2e.errors import PollTimeoutError

logger = logging.getLogger("poller")

# Returns True once satisfied. Raising aborts the poll.
ConditionFunc = Callable[[], bool]


def poll(condition: ConditionFunc, interval: Optional[float] = None,
         timeout: Optional[float] = None, description: str = "condition"):
    """
    Evaluate `condition` now and then every `interval` seconds until it returns True.

    Exceptions raised by the condition propagate unchanged. Raises
    PollTimeoutError once `timeout` seconds have passed; the final sleep is
    clamped to the remaining time so the deadline is overshot by at most
    one interval.
    """
    interval = settings.POLL_INTERVAL if interval is None else interval
    timeout = settings.POLL_TIMEOUT if timeout is None else timeout
    if interval <= 0:
        raise ValueError(f"interval must be positive, got {interval}")
    if timeout < 0:
        raise ValueError(f"timeout must not be negative, got {timeout}")

    start = time.monotonic()
    deadline = start + timeout
    attempts = 0
    while True:
        attempts += 1
        if condition():
            logger.debug(f"{description} satisfied after {attempts} attempt(s)")
            return

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            elapsed = time.monotonic() - start
            raise PollTimeoutError(
                f"Timed out after {elapsed:.1f}s waiting for {description} "
                f"({attempts} attempts)"
            )
        logger.debug(f"{description} not met yet, retrying in {min(interval, remaining):.1f}s")
        time.sleep(min(interval, remaining))
