"""
Package exports
"""

# Local
from . import config, kube
from .conditions import (
    Condition,
    ConditionStatus,
    conditions_by_type,
    extract_conditions,
    get_condition,
)
from .context import WaitContext
from .exceptions import (
    CondwaitError,
    MalformedStatusError,
    ResourceDegradedError,
    WaitCancelledError,
    WaitTimeoutError,
)
from .poller import poll
from .waiters import (
    ConvergenceState,
    wait_for_all_ready,
    wait_for_condition,
    wait_for_convergence,
    wait_for_ready,
)
