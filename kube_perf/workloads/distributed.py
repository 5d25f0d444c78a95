"""
Distributed command runner: one workload per selected node running the same
command.
"""
import logging
from dataclasses import dataclass, field

from kube_perf.helpers import workload_builder
from kube_perf.helpers.workload_builder import VolumePolicy
from kube_perf.k8s import constants, defaults
from kube_perf.k8s.exceptions import HarvestError
from kube_perf.workloads import harvester, lifecycle

log = logging.getLogger(__name__)

SUBMITTING = "Submitting"
WAITING = "Waiting"
HARVESTING = "Harvesting"
CLEANING_UP = "CleaningUp"
DONE = "Done"


@dataclass
class DistributedResult:
    observations: dict = field(default_factory=dict)
    artifacts: dict = field(default_factory=dict)
    failures: dict = field(default_factory=dict)


class DistributedCommandRunner(object):
    """
    Drives a run through Submitting -> Waiting -> Harvesting ->
    (CleaningUp) -> Done
    """

    def __init__(
        self,
        run,
        command,
        sink,
        volume_policy=VolumePolicy.NONE,
        storage_class=None,
        image=defaults.IMAGE,
        prefix=defaults.WORKLOAD_PREFIX,
        **spec_kwargs,
    ):
        """
        Args:
            run (BenchmarkRun): The run, its node set must not be empty
            command (str or list): Command executed on every node
            sink (ResultsSink): Where the logs are written
            volume_policy (VolumePolicy): Volume of every workload
            storage_class (str): Storage class of the companion claims
            image (str): Container image
            prefix (str): Prefix of the workload names
            **spec_kwargs: claim_size, fs_group, scratch_mount_path
        """
        self.run = run
        self.command = command
        self.sink = sink
        self.volume_policy = VolumePolicy(volume_policy)
        self.storage_class = storage_class
        self.image = image
        self.prefix = prefix
        self.spec_kwargs = spec_kwargs
        self.state = None

    def _set_state(self, state):
        log.info(f"Distributed command run: {self.state or 'New'} -> {state}")
        self.state = state

    def build_specs(self):
        """
        Returns:
            list: One WorkloadSpec per node, in node set order
        """
        return [
            workload_builder.build(
                constants.ROLE_COMMAND,
                node=node,
                command=self.command,
                volume_policy=self.volume_policy,
                storage_class=self.storage_class,
                prefix=self.prefix,
                image=self.image,
                mode=constants.MODE_DISTRIBUTED_COMMAND,
                **self.spec_kwargs,
            )
            for node in self.run.nodes
        ]

    def submit(self, specs):
        self._set_state(SUBMITTING)
        for spec in specs:
            self.run.create_workload(spec)
        log.info(f"Created {len(specs)} workload(s)")
        return [spec.name for spec in specs]

    def cleanup_claims(self):
        self._set_state(CLEANING_UP)
        for name in list(self.run.workloads):
            self.run.delete_workload(name)
        for name in list(self.run.claims):
            self.run.delete_claim(name)

    def execute(self):
        """
        Run the command on every node and collect the logs

        Returns:
            DistributedResult: Observations, artifacts and harvest failures

        Raises:
            GatewayError: Creating or polling the workloads failed
            HarvestError: Some logs couldn't be collected; raised after the
                cleanup
        """
        specs = self.build_specs()
        names = self.submit(specs)

        self._set_state(WAITING)
        observations = lifecycle.await_terminal(self.run, names)

        self._set_state(HARVESTING)
        artifacts, failures = harvester.collect_all(
            self.run, names, self.sink, delete_after=self.run.cleanup_requested
        )
        for spec in specs:
            self.run.record(
                spec.name,
                node=spec.target_node,
                phase=observations[spec.name].phase,
                artifact=artifacts.get(spec.name),
            )

        if self.run.cleanup_requested:
            self.cleanup_claims()
        self._set_state(DONE)
        if failures:
            raise HarvestError(failures)
        return DistributedResult(observations, artifacts, failures)
