"""
Shared helpers for testing code built on condwait
"""

# Standard
from contextlib import contextmanager
from typing import Any, List, Optional
import copy
import os

# Third Party
from kubernetes.client.exceptions import ApiException
from openshift.dynamic.exceptions import NotFoundError

# First Party
import alog

# Local
from condwait.config import library_config as config_detail_dict

log = alog.use_channel("TEST")


def configure_logging():
    alog.configure(
        os.environ.get("LOG_LEVEL", "off"),
        os.environ.get("LOG_FILTERS", ""),
        formatter="json"
        if os.environ.get("LOG_JSON", "").lower() == "true"
        else "pretty",
        thread_id=os.environ.get("LOG_THREAD_ID", "").lower() == "true",
    )


configure_logging()

TEST_NAMESPACE = "test"
TEST_NAME = "test_instance"


@contextmanager
def library_config(**config_overrides):
    """This context manager sets library config values temporarily and reverts
    them on completion
    """
    old_vals = {}
    for key, val in config_overrides.items():
        if key in config_detail_dict:
            old_vals[key] = config_detail_dict[key]
        config_detail_dict[key] = val
    try:
        yield
    finally:
        for key in config_overrides:
            if key in old_vals:
                config_detail_dict[key] = old_vals[key]
            else:
                del config_detail_dict[key]


## Resource Builders ###########################################################


def make_condition(
    type_name: str,
    status: Any = "True",
    reason: Optional[str] = None,
    message: Optional[str] = None,
    timestamp: Optional[str] = None,
) -> dict:
    """Helper for making raw condition entries easily"""
    cond = {"type": type_name, "status": str(status)}
    if reason is not None:
        cond["reason"] = reason
    if message is not None:
        cond["message"] = message
    if timestamp is not None:
        cond["lastTransitionTime"] = timestamp
    return cond


def make_resource(
    conditions: Optional[List[dict]] = None,
    name: str = TEST_NAME,
    namespace: Optional[str] = TEST_NAMESPACE,
    kind: str = "Widget",
    api_version: str = "foo.bar.com/v1",
    **status,
) -> dict:
    """Helper to make a resource dict. If conditions is None and no other
    status keys are given, the resource has no status at all.
    """
    metadata = {"name": name}
    if namespace:
        metadata["namespace"] = namespace
    resource = {"apiVersion": api_version, "kind": kind, "metadata": metadata}
    if conditions is not None:
        status["conditions"] = conditions
    if status:
        resource["status"] = status
    return resource


def make_pod(
    name: str,
    ready: bool = True,
    phase: str = "Running",
    containers_ready: Optional[bool] = None,
    namespace: str = TEST_NAMESPACE,
) -> dict:
    """Helper to make a pod with Ready and ContainersReady conditions"""
    containers_ready = ready if containers_ready is None else containers_ready
    return make_resource(
        conditions=[
            make_condition("Ready", ready),
            make_condition("ContainersReady", containers_ready),
        ],
        name=name,
        namespace=namespace,
        kind="Pod",
        api_version="v1",
        phase=phase,
    )


## Scripted Accessors ##########################################################


class ScriptedFetcher:
    """Callable that returns (or raises) one scripted value per call and keeps
    returning the last one once the script runs out
    """

    def __init__(self, *script: Any):
        assert script, "ScriptedFetcher needs at least one step"
        self.script = list(script)
        self.call_count = 0

    def __call__(self, *_, **__):
        step = self.script[min(self.call_count, len(self.script) - 1)]
        self.call_count += 1
        log.debug3("Scripted step %d: %s", self.call_count, step)
        if isinstance(step, BaseException) or (
            isinstance(step, type) and issubclass(step, BaseException)
        ):
            raise step
        return copy.deepcopy(step)


## Mock Cluster ################################################################


class _MockResult:
    def __init__(self, content: dict):
        self._content = content

    def to_dict(self) -> dict:
        return copy.deepcopy(self._content)


class MockResourceHandle:
    """Stands in for an openshift dynamic Resource bound to one kind"""

    def __init__(self, client: "MockDynamicClient", api_version: str, kind: str):
        self.client = client
        self.api_version = api_version
        self.kind = kind

    def get(self, name=None, namespace=None, label_selector=None, **_):
        matches = [
            obj
            for obj in self.client.objects
            if obj.get("kind") == self.kind
            and obj.get("apiVersion") == self.api_version
            and (
                namespace is None
                or obj.get("metadata", {}).get("namespace") == namespace
            )
        ]
        if name is None:
            return _MockResult({"items": matches})
        for obj in matches:
            if obj.get("metadata", {}).get("name") == name:
                return _MockResult(obj)
        raise NotFoundError(ApiException(status=404, reason="Not Found"))


class _MockResources:
    def __init__(self, client: "MockDynamicClient"):
        self.client = client

    def get(self, api_version=None, kind=None, **_):
        return MockResourceHandle(self.client, api_version, kind)


class MockDynamicClient:
    """Minimal in-memory stand in for openshift's DynamicClient. Tests change
    self.objects between polls to simulate the cluster moving.
    """

    def __init__(self, objects: Optional[List[dict]] = None):
        self.objects = list(objects or [])
        self.resources = _MockResources(self)
