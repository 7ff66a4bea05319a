"""
This module holds the typed representation of the conditions found in the
status of a kubernetes-style resource, and the tolerant parser that pulls them
out of a raw resource dict.

The expected shape is:
{
    "status": {
        "conditions": [
            {
                "type": "Ready",
                "status": "True",
                "reason": "Stable",
                "message": "...",
                "lastTransitionTime": "2025-01-01T00:00:00Z",
            },
            ...
        ]
    }
}
"""

# Standard
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

# Third Party
import dateutil.parser

# First Party
import alog

# Local
from . import constants
from .exceptions import MalformedStatusError

log = alog.use_channel("CONDS")

## Public ######################################################################


class ConditionStatus(Enum):
    """The three values a condition's status may take"""

    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value) -> "ConditionStatus":
        """Parse the various ways a 'status' may be represented in a condition.
        Anything unrecognized is Unknown.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            return cls.TRUE if value else cls.FALSE
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.strip().lower():
                    return member
        return cls.UNKNOWN


@dataclass(frozen=True)
class Condition:
    """Immutable snapshot of a single condition"""

    type: str
    status: ConditionStatus = ConditionStatus.UNKNOWN
    reason: str = ""
    message: str = ""
    last_transition_time: Optional[datetime] = None

    @property
    def is_true(self) -> bool:
        return self.status == ConditionStatus.TRUE

    def describe(self) -> str:
        """Format for diagnostics as: status (reason: ..., message: ...)"""
        return (
            f"{self.status.value} (reason: {self.reason}, message: {self.message})"
        )

    @classmethod
    def from_dict(cls, entry: dict) -> Optional["Condition"]:
        """Build a Condition from a raw condition entry, or None if the entry
        does not look like a condition
        """
        if not isinstance(entry, dict):
            return None
        type_name = entry.get("type")
        if not isinstance(type_name, str) or not type_name:
            return None
        return cls(
            type=type_name,
            status=ConditionStatus.parse(entry.get("status")),
            reason=_as_str(entry.get("reason")),
            message=_as_str(entry.get("message")),
            last_transition_time=_parse_timestamp(
                entry.get(constants.TIMESTAMP_KEY)
            ),
        )


def extract_conditions(resource: Optional[dict]) -> Tuple[List[Condition], bool]:
    """Extract the conditions from the status of a resource

    Args:
        resource:  Optional[dict]
            The dict representation of the resource. None is treated like a
            resource without a status.

    Returns:
        conditions:  List[Condition]
            All well-formed conditions in document order
        found:  bool
            False if the status or its conditions field is not populated yet

    Raises:
        MalformedStatusError: if status or status.conditions have the wrong
            type. Individual malformed entries are skipped, not raised.
    """
    if resource is None:
        return [], False
    if not isinstance(resource, dict):
        raise MalformedStatusError(
            f"Expected resource to be a mapping, got {type(resource).__name__}"
        )

    status = resource.get(constants.STATUS_KEY)
    if status is None:
        log.debug3("No status in resource")
        return [], False
    if not isinstance(status, dict):
        raise MalformedStatusError(
            f"Expected .status to be a mapping, got {type(status).__name__}"
        )

    raw_conditions = status.get(constants.CONDITIONS_KEY)
    if raw_conditions is None:
        log.debug3("No conditions in status")
        return [], False
    if not isinstance(raw_conditions, list):
        raise MalformedStatusError(
            "Expected .status.conditions to be a list, got "
            f"{type(raw_conditions).__name__}"
        )

    conditions = []
    for entry in raw_conditions:
        condition = Condition.from_dict(entry)
        if condition is None:
            log.debug("Skipping malformed condition entry: %s", entry)
            continue
        conditions.append(condition)
    log.debug3("Extracted %d conditions", len(conditions))
    return conditions, True


def conditions_by_type(conditions: Iterable[Condition]) -> Dict[str, Condition]:
    """Map condition type -> condition. If a type shows up more than once, the
    one with the newest transition time wins.
    """
    by_type = {}
    for condition in conditions:
        current = by_type.get(condition.type)
        if current is None or _sort_key(condition) >= _sort_key(current):
            if current is not None:
                log.debug2("Found duplicate [%s] conditions", condition.type)
            by_type[condition.type] = condition
    return by_type


def get_condition(resource: Optional[dict], type_name: str) -> Optional[Condition]:
    """Get a single condition from a resource

    A malformed status is treated the same as a missing condition here.

    Args:
        resource:  Optional[dict]
            The dict representation of the resource
        type_name:  str
            The condition type to look for

    Returns:
        condition:  Optional[Condition]
            The condition if found, None otherwise
    """
    try:
        conditions, found = extract_conditions(resource)
    except MalformedStatusError as err:
        log.debug("Ignoring malformed status: %s", err)
        return None
    if not found:
        return None
    return conditions_by_type(conditions).get(type_name)


def describe_condition(condition: Optional[Condition]) -> str:
    """Describe a possibly-unobserved condition for diagnostics"""
    if condition is None:
        return constants.NOT_SET
    return condition.describe()


## Implementation Details ######################################################


def _as_str(value) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _parse_timestamp(timestamp) -> Optional[datetime]:
    """Parse a condition timestamp, leaving it unset if it can't be parsed"""
    if isinstance(timestamp, datetime):
        return timestamp
    if isinstance(timestamp, str) and timestamp:
        try:
            return dateutil.parser.isoparse(timestamp)
        except ValueError:
            log.debug2("Could not parse condition timestamp [%s]", timestamp)
    return None


def _sort_key(condition: Condition) -> float:
    if condition.last_transition_time is None:
        return 0.0
    try:
        return condition.last_transition_time.timestamp()
    except (OverflowError, OSError, ValueError):
        return 0.0
