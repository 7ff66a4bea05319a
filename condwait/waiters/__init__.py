"""
The waiters built on top of the poller
"""

# Local
from .condition import STATUS_FETCHER, wait_for_condition, wait_for_ready
from .convergence import ConvergenceState, ConvergenceTracker, wait_for_convergence
from .entities import ENTITY_LISTER, EntityMatch, wait_for_all_ready
