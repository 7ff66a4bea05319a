"""
Wait for a single named condition to reach a desired status
"""

# Standard
from functools import partial
from typing import Callable, Optional, Union

# First Party
import alog

# Local
from .. import constants
from ..conditions import ConditionStatus, conditions_by_type, extract_conditions
from ..context import WaitContext
from ..exceptions import MalformedStatusError
from ..poller import poll

log = alog.use_channel("WTCND")

# Returns the current resource dict, None if it does not exist yet, and raises
# if it could not be fetched
STATUS_FETCHER = Callable[[], Optional[dict]]  # pylint: disable=invalid-name


def wait_for_condition(
    fetch: STATUS_FETCHER,
    condition_type: str,
    desired_status: Union[ConditionStatus, str, bool] = ConditionStatus.TRUE,
    timeout: Optional[float] = None,
    *,
    interval: Optional[float] = None,
    immediate: Optional[bool] = None,
    ctx: Optional[WaitContext] = None,
    name: Optional[str] = None,
):
    """Block until the condition of the given type has the desired status

    Every failure short of the deadline is treated as "not yet": fetch errors,
    missing resources, missing status and missing conditions are all retried.

    Args:
        fetch:  STATUS_FETCHER
            Function returning the current state of the resource
        condition_type:  str
            The type of the condition to watch
        desired_status:  Union[ConditionStatus, str, bool]
            The status the condition must reach
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
        WaitTimeoutError: if the condition never reached the desired status
        WaitCancelledError: if ctx was cancelled
    """
    desired_status = ConditionStatus.parse(desired_status)
    name = name or "resource"
    poll(
        partial(_probe, fetch, condition_type, desired_status, name),
        interval=interval,
        timeout=timeout,
        immediate=immediate,
        ctx=ctx,
        description=f"{name} {condition_type}={desired_status.value}",
    )


def wait_for_ready(fetch: STATUS_FETCHER, timeout: Optional[float] = None, **kwargs):
    """Shorthand for waiting on Ready=True"""
    wait_for_condition(
        fetch, constants.READY_CONDITION, ConditionStatus.TRUE, timeout, **kwargs
    )


## Implementation Details ######################################################


def _probe(
    fetch: STATUS_FETCHER,
    condition_type: str,
    desired_status: ConditionStatus,
    name: str,
) -> bool:
    """Single tick of wait_for_condition"""
    try:
        resource = fetch()
    except Exception as err:  # pylint: disable=broad-exception-caught
        log.debug("Failed to fetch %s, retrying: %s", name, err)
        return False

    try:
        conditions, found = extract_conditions(resource)
    except MalformedStatusError as err:
        log.debug("Malformed status for %s, retrying: %s", name, err)
        return False
    if not found:
        log.debug2("No conditions reported for %s yet", name)
        return False

    condition = conditions_by_type(conditions).get(condition_type)
    if condition is None:
        log.debug2("No [%s] condition reported for %s yet", condition_type, name)
        return False

    if condition.status == desired_status:
        return True

    log.info(
        "%s not %s=%s: %s",
        name,
        condition_type,
        desired_status.value,
        condition.message,
    )
    return False
