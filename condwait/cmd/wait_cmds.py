"""
Commands that wait on resources in a live cluster
"""

# Standard
from typing import Callable, Optional
import argparse

# Third Party
from openshift.dynamic import DynamicClient

# First Party
import alog

# Local
from .. import kube
from ..conditions import ConditionStatus
from ..waiters import wait_for_condition, wait_for_convergence
from .base import CmdBase

log = alog.use_channel("MAIN")


class _ClusterCmdBase(CmdBase):
    """Shared setup for commands that need a cluster client"""

    def __init__(self, client_factory: Optional[Callable[[], DynamicClient]] = None):
        self._client_factory = client_factory or kube.get_dynamic_client

    @staticmethod
    def _add_common_args(parser: argparse.ArgumentParser):
        parser.add_argument(
            "--timeout",
            "-t",
            type=float,
            default=None,
            help="Seconds to wait before giving up. Defaults to config based.",
        )

    @staticmethod
    def _add_resource_args(parser: argparse.ArgumentParser, namespaced: bool = True):
        parser.add_argument(
            "--api-version",
            "-a",
            required=True,
            help="The apiVersion of the resource (e.g. external-secrets.io/v1)",
        )
        parser.add_argument(
            "--kind", "-k", required=True, help="The kind of the resource"
        )
        parser.add_argument(
            "--name", "-n", required=True, help="The name of the resource"
        )
        if namespaced:
            parser.add_argument(
                "--namespace",
                "-N",
                default=None,
                help="The namespace of the resource. Omit for cluster-scoped kinds.",
            )


class WaitConditionCmd(_ClusterCmdBase):
    """Wait for a single condition of a resource to reach a status"""

    def add_subparser(
        self,
        subparsers: argparse._SubParsersAction,
    ) -> argparse.ArgumentParser:
        parser = subparsers.add_parser("condition", help=self.__doc__)
        args = parser.add_argument_group("Condition Wait Configuration")
        self._add_resource_args(args)
        args.add_argument(
            "--condition",
            "-c",
            default="Ready",
            help="The condition type to wait on",
        )
        args.add_argument(
            "--status",
            "-s",
            default=ConditionStatus.TRUE.value,
            choices=[status.value for status in ConditionStatus],
            help="The status the condition must reach",
        )
        self._add_common_args(args)
        return parser

    def cmd(self, args: argparse.Namespace):
        fetcher = kube.ResourceFetcher(
            self._client_factory(),
            args.api_version,
            args.kind,
            args.name,
            args.namespace,
        )
        wait_for_condition(
            fetcher, args.condition, args.status, args.timeout, name=str(fetcher)
        )
        log.info("%s is %s=%s", fetcher, args.condition, args.status)


class WaitConvergenceCmd(_ClusterCmdBase):
    """Wait for a resource to be ready and not degraded"""

    def add_subparser(
        self,
        subparsers: argparse._SubParsersAction,
    ) -> argparse.ArgumentParser:
        parser = subparsers.add_parser("converge", help=self.__doc__)
        args = parser.add_argument_group("Convergence Wait Configuration")
        self._add_resource_args(args)
        args.add_argument(
            "--ready-condition",
            default="Ready",
            help="The positive condition type",
        )
        args.add_argument(
            "--degraded-condition",
            default="Degraded",
            help="The negative condition type",
        )
        self._add_common_args(args)
        return parser

    def cmd(self, args: argparse.Namespace):
        fetcher = kube.ResourceFetcher(
            self._client_factory(),
            args.api_version,
            args.kind,
            args.name,
            args.namespace,
        )
        wait_for_convergence(
            fetcher,
            args.ready_condition,
            args.degraded_condition,
            args.timeout,
            name=str(fetcher),
        )
        log.info("%s converged", fetcher)


class WaitPodsCmd(_ClusterCmdBase):
    """Wait for the pods of a set of name prefixes to all be ready"""

    def add_subparser(
        self,
        subparsers: argparse._SubParsersAction,
    ) -> argparse.ArgumentParser:
        parser = subparsers.add_parser("pods", help=self.__doc__)
        args = parser.add_argument_group("Pod Wait Configuration")
        args.add_argument(
            "--namespace", "-N", required=True, help="The namespace of the pods"
        )
        args.add_argument(
            "--prefix",
            "-p",
            dest="prefixes",
            action="append",
            required=True,
            help="Pod name prefix that must be ready. May be given more than once.",
        )
        self._add_common_args(args)
        return parser

    def cmd(self, args: argparse.Namespace):
        kube.verify_pods_ready_by_prefix(
            self._client_factory(), args.namespace, args.prefixes, args.timeout
        )
        log.info("All pods ready in %s: %s", args.namespace, args.prefixes)
