"""
Control plane saturation test.

Two strategies put load on the scheduler: a replica group (Deployment) whose
pod startup latencies are measured, and a direct burst of unpinned pods whose
scheduling events are counted.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from kube_perf.helpers import workload_builder
from kube_perf.helpers.workload_builder import ReplicaGroupSpec
from kube_perf.k8s import constants, defaults
from kube_perf.k8s.resources.deployment import ReplicaGroup
from kube_perf.k8s.resources.pod import get_ready_latency
from kube_perf.workloads import lifecycle

log = logging.getLogger(__name__)


@dataclass
class SaturationResult:
    strategy: str
    workload_count: int
    startup_latencies: List[float] = field(default_factory=list)
    scheduling_events: Optional[int] = None
    artifact: Optional[str] = None


class SaturationStrategy(ABC):
    """
    Base class of the saturation strategies. A strategy never pins its
    workloads to a node.
    """

    name = None

    def __init__(
        self, image=defaults.SATURATION_IMAGE, prefix=defaults.WORKLOAD_PREFIX
    ):
        self.image = image
        self.prefix = prefix

    @abstractmethod
    def run(self, run):
        """
        Args:
            run (BenchmarkRun): The run

        Returns:
            SaturationResult: The measurements
        """
        pass


class ReplicaGroupStrategy(SaturationStrategy):
    """
    Create one Deployment of N replicas, wait for all of them to be available
    and record how long every pod took to become Ready.
    """

    name = constants.SATURATION_REPLICA_GROUP

    def __init__(
        self,
        replicas=defaults.SATURATION_REPLICAS,
        sink=None,
        image=defaults.SATURATION_IMAGE,
        prefix=defaults.WORKLOAD_PREFIX,
    ):
        super().__init__(image=image, prefix=prefix)
        if replicas < 1:
            raise ValueError(f"Replica count must be positive, got {replicas}")
        self.replicas = replicas
        self.sink = sink

    def build_spec(self):
        template = workload_builder.build(
            constants.ROLE_SATURATION,
            index="template",
            prefix=self.prefix,
            image=self.image,
            mode=constants.MODE_SATURATION,
            restart_policy="Always",
        )
        return ReplicaGroupSpec(
            name=workload_builder.workload_name(
                self.prefix, constants.ROLE_SATURATION, "group"
            ),
            desired_replicas=self.replicas,
            template=template,
        )

    def wait_for_available(self, run, group, replicas):
        return run.poll(
            lambda: group.available_replicas,
            message=(
                f"Waiting for {group.name} to have {replicas} available "
                f"replica(s)..."
            ),
        ).wait_for_func_value(replicas)

    def startup_latencies(self, group):
        """
        Ready latency of the first N ready pods of the group, oldest first

        Returns:
            list: Seconds as floats
        """
        latencies = []
        for pod in group.pods():
            latency = get_ready_latency(pod)
            if latency is None:
                log.warning(f"Pod {pod['metadata']['name']} is not Ready")
                continue
            latencies.append(latency)
        return latencies[: self.replicas]

    def teardown(self, run, group):
        group.scale(0)
        self.wait_for_available(run, group, 0)
        run.delete_replica_group(group.name)

    def run(self, run):
        spec = self.build_spec()
        run.create_replica_group(spec)
        group = ReplicaGroup(run.gateway, run.namespace, spec)
        self.wait_for_available(run, group, self.replicas)
        log.info(f"All {self.replicas} replica(s) of {group.name} are available")

        latencies = self.startup_latencies(group)
        if len(latencies) < self.replicas:
            log.warning(
                f"Measured {len(latencies)} startup latencies for "
                f"{self.replicas} replica(s)"
            )
        artifact = None
        if self.sink is not None:
            artifact = self.sink.write_json(constants.POD_STARTUP_TIMES_FILE, latencies)
        if latencies:
            log.info(
                f"Pod startup latency: min {min(latencies):.1f}s, "
                f"max {max(latencies):.1f}s, "
                f"avg {sum(latencies) / len(latencies):.1f}s"
            )
        run.record(
            group.name,
            phase=f"{self.replicas} available",
            artifact=artifact,
        )

        if run.cleanup_requested:
            self.teardown(run, group)
        return SaturationResult(
            strategy=self.name,
            workload_count=self.replicas,
            startup_latencies=latencies,
            artifact=artifact,
        )


class DirectBurstStrategy(SaturationStrategy):
    """
    Create burst_factor pods per selected node at once and count the
    scheduling events the scheduler emitted for them.
    """

    name = constants.SATURATION_BURST

    def __init__(
        self,
        burst_factor=defaults.BURST_FACTOR,
        scheduler_name=defaults.DEFAULT_SCHEDULER_NAME,
        image=defaults.SATURATION_IMAGE,
        prefix=defaults.WORKLOAD_PREFIX,
    ):
        super().__init__(image=image, prefix=prefix)
        if burst_factor < 1:
            raise ValueError(f"Burst factor must be positive, got {burst_factor}")
        self.burst_factor = burst_factor
        self.scheduler_name = scheduler_name

    @property
    def event_field_selector(self):
        return f"involvedObject.kind={constants.POD},source={self.scheduler_name}"

    def build_specs(self, run):
        return [
            workload_builder.build(
                constants.ROLE_BURST,
                index=index,
                prefix=self.prefix,
                image=self.image,
                mode=constants.MODE_SATURATION,
            )
            for index in range(self.burst_factor * len(run.nodes))
        ]

    def count_scheduling_events(self, run, names):
        """
        Returns:
            int: Number of scheduler events about the named pods
        """
        names = set(names)
        events = run.gateway.list_scheduling_events(
            run.namespace, self.event_field_selector
        )
        return len(
            [
                event
                for event in events
                if (event.get("involvedObject") or {}).get("name") in names
            ]
        )

    def run(self, run):
        specs = self.build_specs(run)
        for spec in specs:
            run.create_workload(spec)
        names = [spec.name for spec in specs]
        log.info(f"Created {len(names)} burst pod(s)")

        observations = lifecycle.await_terminal(
            run, names, terminal_predicate=lambda obs: obs.is_scheduled
        )
        scheduling_events = self.count_scheduling_events(run, names)
        log.info(
            f"{scheduling_events} scheduling event(s) reported by "
            f"{self.scheduler_name} for {len(names)} pod(s)"
        )
        for name, obs in observations.items():
            run.record(name, node=obs.node_name, phase=obs.phase)

        if run.cleanup_requested:
            for name in names:
                run.delete_workload(name, wait=False)
        return SaturationResult(
            strategy=self.name,
            workload_count=len(names),
            scheduling_events=scheduling_events,
        )


def get_strategy(name, **kwargs):
    """
    Args:
        name (str): replica-group or burst
        **kwargs: Arguments of the strategy, unknown ones are ignored

    Returns:
        SaturationStrategy: The strategy

    Raises:
        ValueError: Unknown strategy name
    """
    strategies = {
        ReplicaGroupStrategy.name: (
            ReplicaGroupStrategy,
            ("replicas", "sink", "image", "prefix"),
        ),
        DirectBurstStrategy.name: (
            DirectBurstStrategy,
            ("burst_factor", "scheduler_name", "image", "prefix"),
        ),
    }
    if name not in strategies:
        raise ValueError(
            f"Unknown saturation strategy {name}, expected one of {sorted(strategies)}"
        )
    strategy_cls, accepted = strategies[name]
    return strategy_cls(
        **{key: value for key, value in kwargs.items() if key in accepted}
    )
