"""
Benchmark run context.

A BenchmarkRun lives for exactly one invocation of a benchmark driver. It owns
every object the driver creates in the namespace and, when the run fails or is
cancelled, deletes them on a best-effort basis before the error propagates.
"""
import logging
import threading
from collections import OrderedDict

from tabulate import tabulate

from kube_perf.k8s import defaults
from kube_perf.k8s.exceptions import GatewayError, HarvestError
from kube_perf.utility.retry import retry
from kube_perf.utility.utils import PollSampler

log = logging.getLogger(__name__)


class BenchmarkRun(object):
    """
    Run scoped state injected into the benchmark drivers
    """

    def __init__(
        self,
        mode,
        gateway,
        namespace=defaults.NAMESPACE,
        nodes=None,
        cleanup_requested=False,
        cancel_event=None,
        poll_interval=defaults.POLL_INTERVAL,
        max_wait=None,
        gateway_retries=1,
        gateway_retry_delay=3,
    ):
        """
        Args:
            mode (str): One of the constants.MODE_* values
            gateway (ClusterGateway): The cluster
            namespace (str): Namespace owned by the run
            nodes (list): Selected node set
            cleanup_requested (bool): Delete the created objects once the
                results are collected
            cancel_event (threading.Event): Set from outside to cancel the
                run, observed by every poll loop
            poll_interval (int): Seconds between two polls
            max_wait (int): Upper bound of a single wait, None for no bound
            gateway_retries (int): Attempts of a failing list call while
                polling
            gateway_retry_delay (int): Initial delay of the list retries
        """
        self.mode = mode
        self.gateway = gateway
        self.namespace = namespace
        self.nodes = list(nodes or [])
        self.cleanup_requested = cleanup_requested
        self.cancel_event = cancel_event or threading.Event()
        self.poll_interval = poll_interval
        self.max_wait = max_wait
        self.gateway_retries = gateway_retries
        self.gateway_retry_delay = gateway_retry_delay
        self.workloads = OrderedDict()
        self.claims = OrderedDict()
        self.replica_groups = OrderedDict()
        self.results = []

    @classmethod
    def from_config(cls, mode, gateway, nodes, cleanup_requested, cancel_event=None):
        """
        Build a run from the framework configuration

        Returns:
            BenchmarkRun: The run
        """
        from kube_perf.framework import config

        return cls(
            mode,
            gateway,
            namespace=config.ENV_DATA["namespace"],
            nodes=nodes,
            cleanup_requested=cleanup_requested,
            cancel_event=cancel_event,
            poll_interval=config.RUN["poll_interval"],
            max_wait=config.RUN.get("max_wait"),
            gateway_retries=config.RUN.get("gateway_retries", 1),
            gateway_retry_delay=config.RUN.get("gateway_retry_delay", 3),
        )

    def __enter__(self):
        log.info(f"Starting {self.mode} run in namespace {self.namespace}")
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        if exc_type is None:
            log.info(f"{self.mode} run finished")
            return False
        if issubclass(exc_type, HarvestError):
            log.error(f"{self.mode} run finished with harvest failures")
            if self.cleanup_requested:
                self.cleanup()
            return False
        log.error(
            f"{self.mode} run aborted ({exc_type.__name__}: {exc_value}), "
            f"cleaning up created resources"
        )
        self.cleanup()
        return False

    @property
    def cancelled(self):
        return self.cancel_event.is_set()

    def poll(self, func, func_args=None, func_kwargs=None, message=None, sleep=None):
        """
        The poll primitive shared by every wait of the run

        Returns:
            PollSampler: Sampler observing the cancel event and max_wait
        """
        return PollSampler(
            self.poll_interval if sleep is None else sleep,
            func,
            func_args=func_args,
            func_kwargs=func_kwargs,
            timeout=self.max_wait,
            cancel_event=self.cancel_event,
            message=message,
        )

    def list_workloads(self, selector=None):
        """
        List the pods of the namespace, retried with exponential backoff when
        gateway_retries > 1
        """
        list_workloads = retry(
            GatewayError,
            tries=self.gateway_retries,
            delay=self.gateway_retry_delay,
            backoff=2,
            cancel_event=self.cancel_event,
        )(self.gateway.list_workloads)
        return list_workloads(self.namespace, selector=selector)

    def create_workload(self, spec):
        """
        Create the workload, preceded by its companion claim if it has one

        Args:
            spec (WorkloadSpec): The workload

        Returns:
            str: Name of the created workload
        """
        claim = spec.claim
        if claim is not None:
            self.gateway.create_claim(self.namespace, claim)
            self.claims[claim.name] = claim
        self.gateway.create_workload(self.namespace, spec)
        self.workloads[spec.name] = spec
        return spec.name

    def create_replica_group(self, spec):
        self.gateway.create_replica_group(self.namespace, spec)
        self.replica_groups[spec.name] = spec
        return spec.name

    def delete_workload(self, name, wait=True):
        self.gateway.delete_workload(self.namespace, name, wait=wait)
        self.workloads.pop(name, None)

    def delete_claim(self, name):
        self.gateway.delete_claim(self.namespace, name)
        self.claims.pop(name, None)

    def delete_replica_group(self, name):
        self.gateway.delete_replica_group(self.namespace, name)
        self.replica_groups.pop(name, None)

    def cleanup(self):
        """
        Best-effort deletion of everything created by the run and not deleted
        yet: replica groups, workloads then claims. Failures are logged and
        the remaining objects are still deleted.

        Returns:
            list: Names of the objects which couldn't be deleted
        """
        failed = []
        for delete, names in (
            (self.delete_replica_group, list(self.replica_groups)),
            (self.delete_workload, list(self.workloads)),
            (self.delete_claim, list(self.claims)),
        ):
            for name in names:
                try:
                    delete(name)
                except GatewayError as ex:
                    log.warning(f"Failed to clean up {name}: {ex}")
                    failed.append(name)
        if failed:
            log.error(f"Resources left behind in {self.namespace}: {failed}")
        return failed

    def record(self, name, node=None, phase=None, artifact=None):
        self.results.append(
            {"workload": name, "node": node, "phase": phase, "artifact": artifact}
        )

    def report(self):
        """
        Returns:
            str: Summary table of the recorded workloads
        """
        return tabulate(
            [
                [
                    row["workload"],
                    row["node"] or "-",
                    row["phase"] or "-",
                    row["artifact"] or "-",
                ]
                for row in self.results
            ],
            headers=["Workload", "Node", "Phase", "Artifact"],
            tablefmt="github",
        )
