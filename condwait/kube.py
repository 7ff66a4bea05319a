"""
Kubernetes backed status fetchers and entity listers, plus the ready-made waits
used against live clusters
"""

# Standard
from typing import Iterable, List, Optional

# Third Party
from openshift.dynamic import DynamicClient
from openshift.dynamic.exceptions import (
    NotFoundError,
    ResourceNotFoundError,
    ResourceNotUniqueError,
)
from openshift.dynamic.resource import Resource
import kubernetes

# First Party
import alog

# Local
from . import constants
from .conditions import get_condition
from .context import WaitContext
from .utils import describe_resource
from .waiters import wait_for_all_ready, wait_for_convergence, wait_for_ready

log = alog.use_channel("KUBE")

## Globals #####################################################################

POD_API_VERSION = "v1"
POD_KIND = "Pod"

EXTERNAL_SECRETS_CONFIG_API_VERSION = "operator.openshift.io/v1alpha1"
EXTERNAL_SECRETS_CONFIG_KIND = "ExternalSecretsConfig"


## Client ######################################################################


def get_dynamic_client() -> DynamicClient:
    """Create a DynamicClient that will work based on where the process is
    running
    """
    # Try in-cluster config
    try:
        log.debug2("Running with in-cluster config")
        kube_config = kubernetes.client.Configuration()
        kubernetes.config.load_incluster_config(client_configuration=kube_config)
        api_client = kubernetes.client.ApiClient(kube_config)
        return DynamicClient(api_client)

    # Fall back to out-of-cluster config
    except kubernetes.config.ConfigException:
        log.debug2("Running with out-of-cluster config")
        return DynamicClient(kubernetes.config.new_client_from_config())


def _get_resource_handle(
    client: DynamicClient, api_version: str, kind: str
) -> Resource:
    """Look up the resource handle by kind, falling back to short names"""
    try:
        return client.resources.get(api_version=api_version, kind=kind)
    except (ResourceNotFoundError, ResourceNotUniqueError):
        log.debug2("Looking up [%s] by short name", kind)
        return client.resources.get(api_version=api_version, short_names=[kind])


## Accessors ###################################################################


class ResourceFetcher:
    """Callable status fetcher for a single named resource. Returns None while
    the resource does not exist and raises on any other API error.
    """

    def __init__(
        self,
        client: DynamicClient,
        api_version: str,
        kind: str,
        name: str,
        namespace: Optional[str] = None,
    ):
        self.client = client
        self.api_version = api_version
        self.kind = kind
        self.name = name
        self.namespace = namespace

    def __str__(self) -> str:
        return f"{self.kind}/{describe_resource(self.name, self.namespace)}"

    def __call__(self) -> Optional[dict]:
        resources = _get_resource_handle(self.client, self.api_version, self.kind)
        try:
            resource = resources.get(name=self.name, namespace=self.namespace)
        except NotFoundError:
            log.debug2("No object named [%s] found", self)
            return None
        return resource.to_dict()


class ResourceLister:
    """Callable entity lister for all resources of a kind"""

    def __init__(
        self,
        client: DynamicClient,
        api_version: str,
        kind: str,
        namespace: Optional[str] = None,
        label_selector: Optional[str] = None,
    ):
        self.client = client
        self.api_version = api_version
        self.kind = kind
        self.namespace = namespace
        self.label_selector = label_selector

    def __call__(self) -> List[dict]:
        resources = _get_resource_handle(self.client, self.api_version, self.kind)
        list_obj = resources.get(
            namespace=self.namespace, label_selector=self.label_selector
        )
        return list_obj.to_dict().get("items", [])


## Health ######################################################################


def is_pod_ready(pod: dict) -> bool:
    """A pod is ready when it is Running and both its Ready and ContainersReady
    conditions are True
    """
    status = pod.get("status")
    if not isinstance(status, dict):
        return False
    if status.get("phase") != constants.POD_RUNNING_PHASE:
        return False
    for condition_type in (
        constants.READY_CONDITION,
        constants.CONTAINERS_READY_CONDITION,
    ):
        condition = get_condition(pod, condition_type)
        if condition is None or not condition.is_true:
            return False
    return True


## Ready-made Waits ############################################################


def verify_pods_ready_by_prefix(
    client: DynamicClient,
    namespace: str,
    prefixes: Iterable[str],
    timeout: Optional[float] = None,
    *,
    interval: Optional[float] = None,
    ctx: Optional[WaitContext] = None,
):
    """Wait until there is a ready pod for every name prefix and every pod
    matching a prefix is ready
    """
    wait_for_all_ready(
        ResourceLister(client, POD_API_VERSION, POD_KIND, namespace=namespace),
        prefixes,
        is_pod_ready,
        timeout,
        interval=interval,
        ctx=ctx,
    )


def wait_for_resource_ready(  # pylint: disable=too-many-arguments
    client: DynamicClient,
    api_version: str,
    kind: str,
    namespace: Optional[str],
    name: str,
    timeout: Optional[float] = None,
    *,
    interval: Optional[float] = None,
    ctx: Optional[WaitContext] = None,
):
    """Wait for a resource that only reports a Ready condition"""
    fetcher = ResourceFetcher(client, api_version, kind, name, namespace)
    wait_for_ready(fetcher, timeout, interval=interval, ctx=ctx, name=str(fetcher))


def wait_for_external_secrets_config_ready(
    client: DynamicClient,
    name: str,
    timeout: Optional[float] = None,
    *,
    interval: Optional[float] = None,
    ctx: Optional[WaitContext] = None,
):
    """Wait for the cluster-scoped ExternalSecretsConfig to report Ready=True
    and Degraded=False, failing as soon as it reports Degraded=True
    """
    fetcher = ResourceFetcher(
        client,
        EXTERNAL_SECRETS_CONFIG_API_VERSION,
        EXTERNAL_SECRETS_CONFIG_KIND,
        name,
    )
    wait_for_convergence(
        fetcher,
        constants.READY_CONDITION,
        constants.DEGRADED_CONDITION,
        timeout,
        interval=interval,
        ctx=ctx,
        name=str(fetcher),
    )
