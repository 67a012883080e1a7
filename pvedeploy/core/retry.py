"""Bounded polling with exponential backoff."""
import time
from typing import Callable

from pvedeploy.core.logger import get_logger

logger = get_logger(__name__)


class RetryExhausted(Exception):
    """Raised by poll_until when the condition never became true."""

    def __init__(self, attempts: int, elapsed: float):
        self.attempts = attempts
        self.elapsed = elapsed
        super().__init__(f"Condition not met after {attempts} attempts ({elapsed:.1f}s)")


def poll_until(
    condition: Callable[[], bool],
    max_attempts: int = 10,
    delay: float = 3.0,
    backoff: float = 1.5,
    max_delay: float = 30.0,
    timeout: float = 180.0,
    description: str = "condition",
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> int:
    """Call ``condition`` until it returns True, backing off between calls.

    Args:
        condition: Zero-argument probe, True means done
        max_attempts: Maximum number of probes
        delay: Initial delay in seconds between probes
        backoff: Multiplier for each subsequent delay
        max_delay: Upper bound for a single delay
        timeout: Overall budget in seconds; no sleep extends past it
        description: Human-readable name used in log lines
        sleep: Sleep function (injectable for tests)
        clock: Monotonic clock (injectable for tests)

    Returns:
        The attempt number on which the condition succeeded

    Raises:
        RetryExhausted: If attempts or the timeout run out first
        ValueError: If max_attempts is below 1

    Example:
        poll_until(lambda: client.ping(vmid), description="network")
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    start = clock()
    current_delay = delay
    attempt = 0

    for attempt in range(1, max_attempts + 1):
        if condition():
            return attempt

        elapsed = clock() - start
        remaining = timeout - elapsed
        if attempt == max_attempts or remaining <= 0:
            break

        wait = min(current_delay, max_delay, remaining)
        logger.info(
            f"Waiting for {description} (attempt {attempt}/{max_attempts}), "
            f"retrying in {wait:.1f}s..."
        )
        sleep(wait)
        current_delay *= backoff

    elapsed = clock() - start
    logger.error(f"Gave up waiting for {description} after {attempt} attempts")
    raise RetryExhausted(attempt, elapsed)
