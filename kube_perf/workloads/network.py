"""
Pairwise network throughput test between the first two selected nodes
"""
import logging
from dataclasses import dataclass, field

from kube_perf.helpers import workload_builder
from kube_perf.k8s import constants, defaults
from kube_perf.k8s.exceptions import (
    HarvestError,
    InsufficientNodes,
    UnexpectedBehaviour,
)
from kube_perf.workloads import harvester, lifecycle

log = logging.getLogger(__name__)

REQUIRED_NODES = 2


@dataclass
class NetworkResult:
    server_node: str
    client_node: str
    server_address: str
    client_phase: str
    artifacts: dict = field(default_factory=dict)
    failures: dict = field(default_factory=dict)


class NetworkTestDriver(object):
    """
    Runs an iperf3 server on the first node and a client on the second one.
    Only the client is awaited, the server keeps running until it's deleted.
    """

    def __init__(
        self,
        run,
        sink,
        duration=defaults.NETWORK_DURATION,
        image=defaults.NETWORK_IMAGE,
        port=defaults.NETWORK_PORT,
        prefix=defaults.WORKLOAD_PREFIX,
    ):
        self.run = run
        self.sink = sink
        self.duration = duration
        self.image = image
        self.port = port
        self.prefix = prefix

    def server_spec(self, node):
        return workload_builder.build(
            constants.ROLE_NETWORK_SERVER,
            node=node,
            command=["iperf3", "-s", "-p", str(self.port)],
            prefix=self.prefix,
            image=self.image,
            mode=constants.MODE_NETWORK_TEST,
        )

    def client_spec(self, node, server_address):
        return workload_builder.build(
            constants.ROLE_NETWORK_CLIENT,
            node=node,
            command=[
                "iperf3",
                "-c",
                server_address,
                "-p",
                str(self.port),
                "-t",
                str(self.duration),
            ],
            prefix=self.prefix,
            image=self.image,
            mode=constants.MODE_NETWORK_TEST,
        )

    def wait_for_server_address(self, name):
        """
        Returns:
            str: IP address of the server pod

        Raises:
            UnexpectedBehaviour: The server terminated without an address
        """
        observation = lifecycle.await_workload(
            self.run,
            name,
            lambda obs: obs.assigned_address is not None or obs.is_terminal,
            message=f"Waiting for {name} to get an IP address...",
        )
        if observation.assigned_address is None:
            raise UnexpectedBehaviour(
                f"Server {name} ended in phase {observation.phase} "
                f"without an IP address"
            )
        log.info(f"Server {name} is listening on {observation.assigned_address}")
        return observation.assigned_address

    def execute(self):
        """
        Returns:
            NetworkResult: Addresses, phases and collected logs

        Raises:
            InsufficientNodes: Less than two nodes are selected, nothing is
                created in that case
            GatewayError: A cluster call failed
            HarvestError: A log couldn't be collected
        """
        if len(self.run.nodes) < REQUIRED_NODES:
            raise InsufficientNodes(REQUIRED_NODES, len(self.run.nodes))
        server_node, client_node = self.run.nodes[:REQUIRED_NODES]

        server = self.server_spec(server_node)
        self.run.create_workload(server)
        server_address = self.wait_for_server_address(server.name)

        client = self.client_spec(client_node, server_address)
        self.run.create_workload(client)
        observations = lifecycle.await_terminal(self.run, [client.name])
        client_phase = observations[client.name].phase
        if client_phase != constants.STATUS_SUCCEEDED:
            log.warning(f"Client {client.name} ended in phase {client_phase}")

        artifacts, failures = harvester.collect_all(
            self.run,
            [client.name, server.name],
            self.sink,
            delete_after=self.run.cleanup_requested,
        )
        self.run.record(
            client.name,
            node=client_node,
            phase=client_phase,
            artifact=artifacts.get(client.name),
        )
        self.run.record(
            server.name,
            node=server_node,
            phase=constants.STATUS_RUNNING,
            artifact=artifacts.get(server.name),
        )
        if failures:
            raise HarvestError(failures)
        return NetworkResult(
            server_node=server_node,
            client_node=client_node,
            server_address=server_address,
            client_phase=client_phase,
            artifacts=artifacts,
            failures=failures,
        )
