"""
Test the command line entrypoint
"""

# Standard
from unittest import mock

# Third Party
import pytest

# First Party
import alog

# Local
from condwait.__main__ import main
from condwait.cmd import WaitConditionCmd, WaitConvergenceCmd, WaitPodsCmd
from condwait.log_format import CondwaitJsonFormatter
from condwait.test_helpers.helpers import (
    TEST_NAMESPACE,
    MockDynamicClient,
    configure_logging,
    library_config,
    make_condition,
    make_pod,
    make_resource,
)

log = alog.use_channel("TEST")

## Helpers #####################################################################


class AlogConfigureMock:
    def __init__(self):
        self.kwargs = None

    def __call__(self, **kwargs):
        self.kwargs = kwargs


@pytest.fixture(autouse=True)
def fast_polls():
    """Keep every CLI wait short and restore logging afterwards"""
    with library_config(
        poll_interval=0.01, default_timeout=0.1, log_level="off", log_json=False
    ):
        yield
    configure_logging()


def run_main(client, *argv):
    factory = lambda: client
    main(
        list(argv),
        commands=[
            WaitConditionCmd(factory),
            WaitConvergenceCmd(factory),
            WaitPodsCmd(factory),
        ],
    )


RESOURCE_ARGS = [
    "--api-version",
    "foo.bar.com/v1",
    "--kind",
    "Widget",
    "--name",
    "test_instance",
    "--namespace",
    TEST_NAMESPACE,
]

## Tests #######################################################################


def test_condition_cmd_success():
    """Make sure the condition command returns normally on success"""
    client = MockDynamicClient([make_resource([make_condition("Ready", "True")])])
    run_main(client, "condition", *RESOURCE_ARGS)


def test_condition_cmd_custom_status():
    """Make sure the condition and status can be chosen"""
    client = MockDynamicClient(
        [make_resource([make_condition("Progressing", "False")])]
    )
    run_main(
        client, "condition", *RESOURCE_ARGS, "-c", "Progressing", "-s", "False"
    )


def test_condition_cmd_timeout_exits_nonzero():
    """Make sure a timeout exits with a non-zero code"""
    client = MockDynamicClient([make_resource([make_condition("Ready", "False")])])
    with pytest.raises(SystemExit) as exc_info:
        run_main(client, "condition", *RESOURCE_ARGS, "--timeout", "0.05")
    assert exc_info.value.code == 1


def test_converge_cmd_degraded_exits_nonzero():
    """Make sure a degraded resource exits with a non-zero code"""
    client = MockDynamicClient(
        [
            make_resource(
                [make_condition("Ready", "True"), make_condition("Degraded", "True")]
            )
        ]
    )
    with pytest.raises(SystemExit) as exc_info:
        run_main(client, "converge", *RESOURCE_ARGS)
    assert exc_info.value.code == 1


def test_converge_cmd_success():
    """Make sure a converged resource returns normally"""
    client = MockDynamicClient(
        [
            make_resource(
                [make_condition("Ready", "True"), make_condition("Degraded", "False")]
            )
        ]
    )
    run_main(client, "converge", *RESOURCE_ARGS)


def test_pods_cmd():
    """Make sure the pods command accepts several prefixes"""
    client = MockDynamicClient([make_pod("operator-abc"), make_pod("webhook-def")])
    run_main(
        client, "pods", "-N", TEST_NAMESPACE, "-p", "operator", "-p", "webhook"
    )


def test_library_config_override():
    """Make sure library config values can be overridden on the command line"""
    client = MockDynamicClient([make_resource([make_condition("Ready", "False")])])
    with pytest.raises(SystemExit):
        run_main(
            client,
            "condition",
            *RESOURCE_ARGS,
            "--default_timeout",
            "0.02",
            "--log_json",
        )


def test_missing_command():
    """Make sure running without a command is a usage error"""
    with pytest.raises(SystemExit) as exc_info:
        run_main(MockDynamicClient())
    assert exc_info.value.code == 2


def test_json_logging_uses_custom_formatter():
    """Make sure that if json logging is enabled, the custom formatter is used
    with the identity of the waited resource
    """
    client = MockDynamicClient([make_resource([make_condition("Ready", "True")])])
    alog_mock = AlogConfigureMock()
    with mock.patch("alog.configure", alog_mock):
        run_main(client, "condition", *RESOURCE_ARGS, "--log_json")
    formatter = alog_mock.kwargs.get("formatter")
    assert isinstance(formatter, CondwaitJsonFormatter)
    assert formatter.kind == "Widget"
    assert formatter.name == "test_instance"
    assert formatter.namespace == TEST_NAMESPACE
    assert alog_mock.kwargs.get("default_level") == "off"


def test_pretty_logging_by_default():
    """Make sure the pretty formatter is used without json logging"""
    client = MockDynamicClient([make_resource([make_condition("Ready", "True")])])
    alog_mock = AlogConfigureMock()
    with mock.patch("alog.configure", alog_mock):
        run_main(client, "condition", *RESOURCE_ARGS)
    assert alog_mock.kwargs.get("formatter") == "pretty"
