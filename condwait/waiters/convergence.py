"""
Wait for a resource that reports both a positive readiness condition and a
negative degraded condition to converge.

The rules, checked on every tick against the most recent values seen for each
of the two condition types:

* Degraded=True stops the wait immediately with ResourceDegradedError, even if
  Ready is also True.
* Success requires that both condition types have been observed at least once,
  Ready=True and Degraded not True. A resource that never reports its degraded
  condition therefore never converges.
* On timeout, the error describes the last observed value of both conditions.
"""

# Standard
from enum import Enum
from typing import Dict, Optional

# First Party
import alog

# Local
from .. import constants
from ..conditions import (
    Condition,
    conditions_by_type,
    describe_condition,
    extract_conditions,
)
from ..context import WaitContext
from ..exceptions import ResourceDegradedError, WaitCancelledError, WaitTimeoutError
from ..poller import poll
from .condition import STATUS_FETCHER

log = alog.use_channel("WTCNV")


class ConvergenceState(Enum):
    """Where a convergence wait currently stands"""

    # Nothing has been observed yet
    UNKNOWN = "Unknown"

    # Some conditions observed, but the success rule does not hold yet
    AWAITING_BOTH = "AwaitingBoth"

    # The degraded condition was observed as True
    DEGRADED = "Degraded"

    # Both conditions observed, Ready=True and not degraded
    READY_CONFIRMED = "ReadyConfirmed"

    # The deadline passed first
    DEADLINE_EXCEEDED = "DeadlineExceeded"


class ConvergenceTracker:
    """Holds the last observed ready and degraded conditions for one wait and
    decides the state after every observation
    """

    def __init__(
        self,
        ready_type: str = constants.READY_CONDITION,
        degraded_type: str = constants.DEGRADED_CONDITION,
    ):
        self.ready_type = ready_type
        self.degraded_type = degraded_type
        self.last_ready: Optional[Condition] = None
        self.last_degraded: Optional[Condition] = None
        self.state = ConvergenceState.UNKNOWN

    @property
    def last_observed(self) -> Dict[str, Optional[Condition]]:
        return {
            self.ready_type: self.last_ready,
            self.degraded_type: self.last_degraded,
        }

    def observe(self, resource: Optional[dict]) -> ConvergenceState:
        """Fold one fetched resource into the tracker

        Raises:
            MalformedStatusError: if the resource status has the wrong shape
        """
        conditions, found = extract_conditions(resource)
        if found:
            by_type = conditions_by_type(conditions)
            if self.ready_type in by_type:
                self.last_ready = by_type[self.ready_type]
            if self.degraded_type in by_type:
                self.last_degraded = by_type[self.degraded_type]
        self.state = self._decide()
        return self.state

    def describe(self) -> str:
        return (
            f"{self.ready_type}={describe_condition(self.last_ready)}, "
            f"{self.degraded_type}={describe_condition(self.last_degraded)}"
        )

    def _decide(self) -> ConvergenceState:
        if self.last_degraded is not None and self.last_degraded.is_true:
            return ConvergenceState.DEGRADED
        if self.last_ready is None and self.last_degraded is None:
            return ConvergenceState.UNKNOWN
        if (
            self.last_ready is not None
            and self.last_degraded is not None
            and self.last_ready.is_true
        ):
            return ConvergenceState.READY_CONFIRMED
        return ConvergenceState.AWAITING_BOTH


def wait_for_convergence(
    fetch: STATUS_FETCHER,
    ready_type: str = constants.READY_CONDITION,
    degraded_type: str = constants.DEGRADED_CONDITION,
    timeout: Optional[float] = None,
    *,
    interval: Optional[float] = None,
    immediate: Optional[bool] = None,
    ctx: Optional[WaitContext] = None,
    name: Optional[str] = None,
):
    """Block until the resource is ready and not degraded

    Args:
        fetch:  STATUS_FETCHER
            Function returning the current state of the resource
        ready_type:  str
            The positive condition type
        degraded_type:  str
            The negative condition type
        timeout:  Optional[float]
            Seconds before giving up

    Kwargs:
        interval:  Optional[float]
            Seconds between two fetches
        immediate:  Optional[bool]
            Whether to fetch before the first sleep
        ctx:  Optional[WaitContext]
            Cancellation context
        name:  Optional[str]
            Name of the resource for diagnostics

    Raises:
        ResourceDegradedError: as soon as the degraded condition is True
        MalformedStatusError: if the status document has the wrong shape
        WaitTimeoutError: if the resource did not converge in time
        WaitCancelledError: if ctx was cancelled
    """
    name = name or "resource"
    tracker = ConvergenceTracker(ready_type, degraded_type)

    def probe() -> bool:
        try:
            resource = fetch()
        except Exception as err:  # pylint: disable=broad-exception-caught
            log.debug("Failed to fetch %s, retrying: %s", name, err)
            return False

        state = tracker.observe(resource)
        log.debug2("%s convergence state: %s", name, state.value)
        if state == ConvergenceState.DEGRADED:
            raise ResourceDegradedError(
                f"{name} is degraded: {tracker.last_degraded.message}",
                condition=tracker.last_degraded,
            )
        if state == ConvergenceState.AWAITING_BOTH:
            log.debug("%s not converged yet: %s", name, tracker.describe())
        return state == ConvergenceState.READY_CONFIRMED

    try:
        poll(
            probe,
            interval=interval,
            timeout=timeout,
            immediate=immediate,
            ctx=ctx,
            description=f"{name} to converge",
        )
    except WaitTimeoutError as err:
        tracker.state = ConvergenceState.DEADLINE_EXCEEDED
        raise WaitTimeoutError(
            f"timeout waiting for {name} to be ready: {tracker.describe()}",
            timeout=err.timeout,
            last_observed=tracker.last_observed,
        ) from err
    except WaitCancelledError as err:
        raise WaitCancelledError(
            f"{err}: {tracker.describe()}",
            cause=err.cause,
            last_observed=tracker.last_observed,
        ) from err
