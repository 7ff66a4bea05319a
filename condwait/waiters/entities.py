"""
Wait for a whole set of expected entities (e.g. the pods of a known list of
deployments) to be present and healthy at the same time
"""

# Standard
from typing import Callable, Dict, Iterable, List, Optional

# First Party
import alog

# Local
from ..context import WaitContext
from ..exceptions import WaitTimeoutError
from ..poller import poll
from ..utils import resource_name

log = alog.use_channel("WTENT")

# Returns all candidate entities, raising if they could not be listed
ENTITY_LISTER = Callable[[], List[dict]]  # pylint: disable=invalid-name

# Decides whether a single entity is healthy
HEALTH_FUNCTION = Callable[[dict], bool]  # pylint: disable=invalid-name


class EntityMatch:
    """The result of matching one listing against the expected identifiers.
    Built from scratch on every tick so a deleted entity can't linger.
    """

    def __init__(
        self,
        expected: List[str],
        entities: Iterable[dict],
        is_healthy: HEALTH_FUNCTION,
        identity: Callable[[dict], str],
    ):
        self.expected = expected
        # expected identifier -> {entity identity -> healthy}
        self.matched: Dict[str, Dict[str, bool]] = {
            identifier: {} for identifier in expected
        }
        for entity in entities:
            entity_id = identity(entity)
            if not isinstance(entity_id, str) or not entity_id:
                continue
            # Overlapping prefixes: the most specific identifier owns the entity
            owner = max(
                (ident for ident in expected if entity_id.startswith(ident)),
                key=len,
                default=None,
            )
            if owner is not None:
                self.matched[owner][entity_id] = bool(is_healthy(entity))

    @property
    def missing(self) -> List[str]:
        """Expected identifiers without any matching entity"""
        return [
            identifier for identifier, found in self.matched.items() if not found
        ]

    @property
    def unhealthy(self) -> List[str]:
        """Matched entities that are not healthy"""
        return sorted(
            {
                entity_id
                for found in self.matched.values()
                for entity_id, healthy in found.items()
                if not healthy
            }
        )

    @property
    def all_ready(self) -> bool:
        return not self.missing and not self.unhealthy

    def describe(self) -> str:
        return f"missing={self.missing}, unhealthy={self.unhealthy}"


def wait_for_all_ready(
    list_entities: ENTITY_LISTER,
    expected_identifiers: Iterable[str],
    is_healthy: HEALTH_FUNCTION,
    timeout: Optional[float] = None,
    *,
    identity: Callable[[dict], str] = resource_name,
    interval: Optional[float] = None,
    immediate: Optional[bool] = None,
    ctx: Optional[WaitContext] = None,
):
    """Block until every expected identifier has at least one matching entity
    and every matched entity is healthy

    Entities match an expected identifier by prefix, so several entities (e.g.
    the replica pods of a deployment) may match a single identifier. When
    identifiers overlap, an entity only counts for the longest one it matches.
    Entities that match no identifier are ignored.

    Args:
        list_entities:  ENTITY_LISTER
            Function returning the current candidate entities
        expected_identifiers:  Iterable[str]
            Identity prefixes that must all be present
        is_healthy:  HEALTH_FUNCTION
            Health predicate applied to every matched entity
        timeout:  Optional[float]
            Seconds before giving up

    Kwargs:
        identity:  Callable[[dict], str]
            Extracts the identity of an entity (metadata.name by default)
        interval:  Optional[float]
            Seconds between two listings
        immediate:  Optional[bool]
            Whether to list before the first sleep
        ctx:  Optional[WaitContext]
            Cancellation context

    Raises:
        ValueError: if no identifiers are expected
        WaitTimeoutError: if the set was not ready in time
        WaitCancelledError: if ctx was cancelled
    """
    expected = list(dict.fromkeys(expected_identifiers))
    if not expected:
        raise ValueError("At least one expected identifier is required")

    last_match: Optional[EntityMatch] = None

    def probe() -> bool:
        nonlocal last_match
        try:
            entities = list_entities()
        except Exception as err:  # pylint: disable=broad-exception-caught
            log.debug("Failed to list entities, retrying: %s", err)
            return False

        last_match = EntityMatch(expected, entities or [], is_healthy, identity)
        if last_match.all_ready:
            return True
        log.debug("Entities not ready yet: %s", last_match.describe())
        return False

    try:
        poll(
            probe,
            interval=interval,
            timeout=timeout,
            immediate=immediate,
            ctx=ctx,
            description=f"entities {expected} to be ready",
        )
    except WaitTimeoutError as err:
        details = last_match.describe() if last_match else "never listed"
        raise WaitTimeoutError(
            f"{err}: {details}", timeout=err.timeout
        ) from err
