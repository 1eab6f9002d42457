"""
Condition polling for the system tests.

Every readiness check in the suite goes through ``wait_for``: a predicate is
called repeatedly until it returns a truthy value or the deadline passes.
"""

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

from artemis_systemtests.errors import WaitCancelledError, WaitTimeoutError

logger = logging.getLogger(__name__)


def wait_for(
    description: str,
    poll_interval: float,
    timeout: float,
    predicate: Callable[[], Any],
    cancel_event: threading.Event | None = None,
) -> Any:
    """
    Poll a predicate until it holds or the timeout elapses.

    The predicate is called once immediately and then every ``poll_interval``
    seconds. Sleeps never extend past the deadline, so the call returns or
    raises no later than ``timeout + poll_interval`` seconds after it started.
    Exceptions raised by the predicate are not caught.

    Args:
        description: What is being waited for, used in logs and errors
        poll_interval: Seconds between two predicate calls
        timeout: Maximum number of seconds to wait
        predicate: Zero-argument callable; a truthy result ends the wait
        cancel_event: Optional event; when set, the wait stops at the next sleep

    Returns:
        The truthy value returned by the predicate

    Raises:
        ValueError: If timeout or poll_interval is not positive
        WaitTimeoutError: If the predicate did not hold within the timeout
        WaitCancelledError: If cancel_event was set before the predicate held
    """
    if timeout <= 0:
        raise ValueError(f"timeout must be positive, got {timeout}")
    if poll_interval <= 0:
        raise ValueError(f"poll_interval must be positive, got {poll_interval}")

    logger.debug(f"Waiting for: {description} (timeout {timeout:g}s)")
    start = time.monotonic()
    deadline = start + timeout

    while True:
        result = predicate()
        if result:
            logger.debug(
                f"Done waiting for: {description} after {time.monotonic() - start:.1f}s"
            )
            return result

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise WaitTimeoutError(description, timeout)

        delay = min(poll_interval, remaining)
        if cancel_event is not None:
            if cancel_event.wait(delay):
                raise WaitCancelledError(description, time.monotonic() - start)
        else:
            time.sleep(delay)


def thread_sleep(seconds: float) -> None:
    """Block for a fixed settle delay."""
    logger.debug(f"Sleeping for {seconds:g}s")
    time.sleep(seconds)
