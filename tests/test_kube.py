"""
Test the kubernetes backed accessors and ready-made waits
"""

# Standard
from unittest import mock

# Third Party
import pytest

# First Party
import alog

# Local
from condwait import kube
from condwait.exceptions import ResourceDegradedError, WaitTimeoutError
from condwait.test_helpers.helpers import (
    TEST_NAMESPACE,
    MockDynamicClient,
    make_condition,
    make_pod,
    make_resource,
)

log = alog.use_channel("TEST")

INTERVAL = 0.01

## Helpers #####################################################################


def make_esc(ready="True", degraded="False", name="cluster"):
    conditions = []
    if ready is not None:
        conditions.append(make_condition("Ready", ready, message=f"ready {ready}"))
    if degraded is not None:
        conditions.append(
            make_condition("Degraded", degraded, message=f"degraded {degraded}")
        )
    return make_resource(
        conditions,
        name=name,
        namespace=None,
        kind=kube.EXTERNAL_SECRETS_CONFIG_KIND,
        api_version=kube.EXTERNAL_SECRETS_CONFIG_API_VERSION,
    )


class ChangingClient(MockDynamicClient):
    """Mock client whose objects advance one step every time they're listed or
    fetched
    """

    def __init__(self, *steps):
        super().__init__(steps[0])
        self.steps = list(steps)
        self.calls = 0
        real_get = self.resources.get

        def get(*args, **kwargs):
            self.objects = self.steps[min(self.calls, len(self.steps) - 1)]
            self.calls += 1
            return real_get(*args, **kwargs)

        self.resources.get = get


## is_pod_ready ################################################################


@pytest.mark.parametrize(
    ["pod", "ready"],
    [
        [make_pod("a"), True],
        [make_pod("a", ready=False), False],
        [make_pod("a", containers_ready=False), False],
        [make_pod("a", phase="Pending"), False],
        [make_resource([make_condition("Ready", "True")], phase="Running"), False],
        [make_resource(phase="Running"), False],
        [{}, False],
        [{"status": "garbage"}, False],
        [{"status": ["Running"]}, False],
    ],
)
def test_is_pod_ready(pod, ready):
    """Make sure a pod needs Running plus Ready and ContainersReady"""
    assert kube.is_pod_ready(pod) == ready


## Accessors ###################################################################


def test_resource_fetcher_found():
    """Make sure the fetcher returns the dict form of the resource"""
    resource = make_resource([make_condition("Ready", "True")])
    client = MockDynamicClient([resource])
    fetcher = kube.ResourceFetcher(
        client, "foo.bar.com/v1", "Widget", "test_instance", TEST_NAMESPACE
    )
    assert fetcher() == resource
    assert str(fetcher) == "Widget/test/test_instance"


def test_resource_fetcher_not_found():
    """Make sure a missing resource is None rather than an error"""
    fetcher = kube.ResourceFetcher(
        MockDynamicClient(), "foo.bar.com/v1", "Widget", "missing", TEST_NAMESPACE
    )
    assert fetcher() is None


def test_resource_fetcher_short_name_fallback():
    """Make sure an unknown kind is retried as a short name"""
    client = mock.MagicMock()
    client.resources.get.side_effect = [
        kube.ResourceNotFoundError("nope"),
        mock.MagicMock(),
    ]
    kube.ResourceFetcher(client, "v1", "po", "foo", "ns")()
    assert client.resources.get.call_args_list == [
        mock.call(api_version="v1", kind="po"),
        mock.call(api_version="v1", short_names=["po"]),
    ]


def test_resource_lister():
    """Make sure the lister returns only resources of the kind and namespace"""
    pods = [make_pod("a-1"), make_pod("b-1")]
    client = MockDynamicClient(
        pods + [make_pod("x-1", namespace="other"), make_resource()]
    )
    lister = kube.ResourceLister(client, "v1", "Pod", namespace=TEST_NAMESPACE)
    assert lister() == pods


## get_dynamic_client ##########################################################


def test_get_dynamic_client_out_of_cluster():
    """Make sure the kubeconfig client is used when not in a cluster"""
    with mock.patch(
        "kubernetes.config.load_incluster_config",
        side_effect=kube.kubernetes.config.ConfigException,
    ), mock.patch(
        "kubernetes.config.new_client_from_config", return_value="api_client"
    ), mock.patch.object(
        kube, "DynamicClient"
    ) as dynamic_client:
        kube.get_dynamic_client()
    dynamic_client.assert_called_once_with("api_client")


## Ready-made Waits ############################################################


def test_verify_pods_ready_by_prefix():
    """Make sure the pod wait succeeds once every prefix has ready pods"""
    client = ChangingClient(
        [make_pod("operator-1")],
        [make_pod("operator-1"), make_pod("webhook-1", ready=False)],
        [make_pod("operator-1"), make_pod("webhook-1"), make_pod("other-1")],
    )
    kube.verify_pods_ready_by_prefix(
        client,
        TEST_NAMESPACE,
        ["operator", "webhook"],
        timeout=2,
        interval=INTERVAL,
    )
    assert client.calls == 3


def test_verify_pods_ready_by_prefix_timeout():
    """Make sure the pod wait times out if a prefix never shows up"""
    client = MockDynamicClient([make_pod("operator-1")])
    with pytest.raises(WaitTimeoutError, match="webhook"):
        kube.verify_pods_ready_by_prefix(
            client,
            TEST_NAMESPACE,
            ["operator", "webhook"],
            timeout=0.05,
            interval=INTERVAL,
        )


def test_verify_pods_ready_by_prefix_malformed_pod_is_unhealthy():
    """Make sure a pod with a malformed status is reported unhealthy instead of
    ending the wait
    """
    bad_pod = make_pod("operator-1")
    bad_pod["status"] = "garbage"
    client = MockDynamicClient([bad_pod])
    with pytest.raises(WaitTimeoutError, match=r"unhealthy=\['operator-1'\]"):
        kube.verify_pods_ready_by_prefix(
            client, TEST_NAMESPACE, ["operator"], timeout=0.05, interval=INTERVAL
        )


def test_wait_for_resource_ready():
    """Make sure a resource that appears later and becomes ready succeeds"""
    not_ready = make_resource([make_condition("Ready", "False", message="syncing")])
    ready = make_resource([make_condition("Ready", "True")])
    client = ChangingClient([], [not_ready], [ready])
    kube.wait_for_resource_ready(
        client,
        "foo.bar.com/v1",
        "Widget",
        TEST_NAMESPACE,
        "test_instance",
        timeout=2,
        interval=INTERVAL,
    )
    assert client.calls == 3


def test_wait_for_external_secrets_config_ready():
    """Make sure the ExternalSecretsConfig wait needs both conditions"""
    client = ChangingClient(
        [make_esc(ready="True", degraded=None)],
        [make_esc(ready="True", degraded="False")],
    )
    kube.wait_for_external_secrets_config_ready(
        client, "cluster", timeout=2, interval=INTERVAL
    )
    assert client.calls == 2


def test_wait_for_external_secrets_config_degraded():
    """Make sure a degraded ExternalSecretsConfig fails fast"""
    client = MockDynamicClient([make_esc(ready="True", degraded="True")])
    with pytest.raises(ResourceDegradedError, match="degraded True"):
        kube.wait_for_external_secrets_config_ready(
            client, "cluster", timeout=30, interval=INTERVAL
        )


def test_wait_for_external_secrets_config_timeout():
    """Make sure the timeout message reports both conditions"""
    client = MockDynamicClient([make_esc(ready="False", degraded="False")])
    with pytest.raises(WaitTimeoutError) as exc_info:
        kube.wait_for_external_secrets_config_ready(
            client, "cluster", timeout=0.05, interval=INTERVAL
        )
    assert str(exc_info.value) == (
        "timeout waiting for ExternalSecretsConfig/cluster to be ready: "
        "Ready=False (reason: , message: ready False), "
        "Degraded=False (reason: , message: degraded False)"
    )
