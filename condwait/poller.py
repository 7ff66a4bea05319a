"""
The poller is the one bounded retry loop that every waiter in the library is
built on. A waiter supplies a probe, and the poller owns the interval, the
deadline and cancellation.
"""

# Standard
from typing import Callable, Optional
import time

# First Party
import alog

# Local
from . import config
from .context import WaitContext
from .exceptions import WaitCancelledError, WaitTimeoutError

log = alog.use_channel("POLLR")

# A probe is run once per tick. Returning True ends the wait successfully,
# returning False means "not yet" and raising ends the wait with that error.
PROBE_FUNCTION = Callable[[], bool]  # pylint: disable=invalid-name


def poll(
    probe: PROBE_FUNCTION,
    interval: Optional[float] = None,
    timeout: Optional[float] = None,
    immediate: Optional[bool] = None,
    ctx: Optional[WaitContext] = None,
    description: str = "condition",
):
    """Run the probe until it reports done, raises, or the deadline elapses

    Args:
        probe:  PROBE_FUNCTION
            The function to run on each tick
        interval:  Optional[float]
            Seconds between two probes (defaults to config.poll_interval)
        timeout:  Optional[float]
            Seconds before giving up (defaults to config.default_timeout)
        immediate:  Optional[bool]
            Run the first probe before the first sleep (defaults to
            config.immediate)
        ctx:  Optional[WaitContext]
            Cancellation context checked before each probe and during each
            sleep
        description:  str
            What is being waited for, used in logs and error messages

    Raises:
        WaitTimeoutError: if the deadline elapses first
        WaitCancelledError: if ctx is cancelled first
        Exception: whatever the probe raises, unchanged
    """
    interval = config.poll_interval if interval is None else interval
    timeout = config.default_timeout if timeout is None else timeout
    immediate = config.immediate if immediate is None else immediate
    if interval <= 0:
        raise ValueError(f"Poll interval must be positive, got {interval}")
    if timeout < 0:
        raise ValueError(f"Poll timeout must not be negative, got {timeout}")
    ctx = ctx or WaitContext()

    deadline = time.monotonic() + timeout
    log.debug(
        "Waiting for %s (interval: %ss, timeout: %ss)", description, interval, timeout
    )

    if not immediate:
        _sleep_until_next_tick(ctx, interval, deadline, timeout, description)

    tick = 0
    while True:
        if ctx.cancelled:
            raise _cancelled_error(ctx, description)

        tick += 1
        log.debug3("Running probe %d for %s", tick, description)
        if probe():
            log.debug("Done waiting for %s after %d probe(s)", description, tick)
            return

        _sleep_until_next_tick(ctx, interval, deadline, timeout, description)


## Implementation Details ######################################################


def _sleep_until_next_tick(
    ctx: WaitContext,
    interval: float,
    deadline: float,
    timeout: float,
    description: str,
):
    """Sleep for one interval without passing the deadline"""
    remaining = deadline - time.monotonic()
    if remaining <= 0:
        raise _timeout_error(description, timeout)
    if ctx.sleep(min(interval, remaining)):
        raise _cancelled_error(ctx, description)
    if time.monotonic() >= deadline:
        raise _timeout_error(description, timeout)


def _timeout_error(description: str, timeout: float) -> WaitTimeoutError:
    log.debug("Timed out waiting for %s", description)
    return WaitTimeoutError(
        f"timed out after {timeout}s waiting for {description}", timeout=timeout
    )


def _cancelled_error(ctx: WaitContext, description: str) -> WaitCancelledError:
    log.debug("Cancelled waiting for %s: %s", description, ctx.cause)
    return WaitCancelledError(
        f"cancelled waiting for {description}: {ctx.cause}", cause=ctx.cause
    )
