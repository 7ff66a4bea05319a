"""
Shared module to hold constant values for the library
"""

# Standard condition types
READY_CONDITION = "Ready"
DEGRADED_CONDITION = "Degraded"
CONTAINERS_READY_CONDITION = "ContainersReady"

# Keys inside a resource's status document
STATUS_KEY = "status"
CONDITIONS_KEY = "conditions"
TIMESTAMP_KEY = "lastTransitionTime"

# Pod phase that must be reached before a pod can be considered healthy
POD_RUNNING_PHASE = "Running"

# Placeholder used in diagnostics for a condition that was never observed
NOT_SET = "not set"

# Delimiter used for nested dict keys
NESTED_DICT_DELIM = "."
