# -*- coding: utf8 -*-
"""
In-memory cluster used by the tests of the benchmark drivers
"""
import threading

import pytest

from kube_perf import framework
from kube_perf.k8s import constants
from kube_perf.k8s.exceptions import GatewayError, ResourceNotFoundError
from kube_perf.workloads.run import BenchmarkRun

TEST_NAMESPACE = "kube-perf-test"
CREATED_AT = "2024-01-01T00:00:00Z"


def ready_at(index):
    return f"2024-01-01T00:00:{index % 50 + 1:02d}Z"


class FakeGateway(object):
    """
    Simulates the cluster: every observation of a pod moves it one step
    Pending -> Running -> Succeeded. Pods without a command or running an
    iperf3 server never leave Running. Replica groups report their new
    available replica count one get() after they were created or scaled.
    Pods named in hidden are left out of the listings.
    """

    def __init__(self, nodes=("node-1", "node-2", "node-3")):
        self.nodes = list(nodes)
        self.pods = {}
        self.claims = {}
        self.deployments = {}
        self.events = []
        self.mutations = []
        self.list_calls = 0
        self.event_selectors = []
        self.fail_create = set()
        self.fail_logs = set()
        self.fail_list = 0
        self.on_list = None
        self.hidden = set()
        self._next_node = 0
        self._pod_index = 0

    @property
    def mutation_count(self):
        return len(self.mutations)

    def _schedule(self):
        node = self.nodes[self._next_node % len(self.nodes)]
        self._next_node += 1
        return node

    def _long_running(self, pod):
        command = pod["spec"]["containers"][0].get("command") or []
        return not command or "-s" in command

    def _advance(self, pod):
        status = pod["status"]
        if pod["metadata"].get("deletionTimestamp"):
            return
        if status["phase"] == constants.STATUS_PENDING:
            if not pod["spec"].get("nodeName"):
                pod["spec"]["nodeName"] = self._schedule()
                self.events.append(
                    {
                        "involvedObject": {
                            "kind": constants.POD,
                            "name": pod["metadata"]["name"],
                        },
                        "source": {"component": "default-scheduler"},
                        "reason": "Scheduled",
                    }
                )
            status["phase"] = constants.STATUS_RUNNING
            status["podIP"] = f"10.0.0.{self._pod_index % 250 + 1}"
            status["conditions"] = [
                {
                    "type": constants.CONDITION_READY,
                    "status": "True",
                    "lastTransitionTime": ready_at(self._pod_index),
                }
            ]
            self._pod_index += 1
        elif status["phase"] == constants.STATUS_RUNNING and not self._long_running(
            pod
        ):
            status["phase"] = constants.STATUS_SUCCEEDED

    def _add_pod(self, manifest):
        manifest.setdefault("status", {})["phase"] = constants.STATUS_PENDING
        manifest["metadata"]["creationTimestamp"] = CREATED_AT
        self.pods[manifest["metadata"]["name"]] = manifest

    def list_nodes(self):
        return list(self.nodes)

    def create_workload(self, namespace, spec):
        if spec.name in self.fail_create:
            raise GatewayError("create workload", f"{spec.name} rejected")
        self.mutations.append(("create_workload", spec.name))
        self._add_pod(spec.to_manifest(namespace))
        return spec.name

    def get_workload(self, namespace, name):
        if name not in self.pods:
            raise ResourceNotFoundError("get workload", f"pods {name} NotFound")
        self._advance(self.pods[name])
        return self.pods[name]

    def list_workloads(self, namespace, selector=None):
        self.list_calls += 1
        if self.on_list is not None:
            self.on_list(self)
        if self.fail_list:
            self.fail_list -= 1
            raise GatewayError("list workloads", "connection refused")
        pods = [pod for name, pod in self.pods.items() if name not in self.hidden]
        for pod in pods:
            self._advance(pod)
        if selector:
            key, value = selector.split("=", 1)
            pods = [pod for pod in pods if pod["metadata"]["labels"].get(key) == value]
        return pods

    def delete_workload(self, namespace, name, wait=True):
        self.mutations.append(("delete_workload", name))
        self.pods.pop(name, None)

    def create_claim(self, namespace, claim):
        self.mutations.append(("create_claim", claim.name))
        self.claims[claim.name] = claim.to_manifest(namespace)
        return claim.name

    def list_claims(self, namespace):
        return list(self.claims.values())

    def delete_claim(self, namespace, name):
        self.mutations.append(("delete_claim", name))
        self.claims.pop(name, None)

    def _group_pods(self, name):
        return [
            pod
            for pod in self.pods.values()
            if pod["metadata"]["labels"].get(constants.APP_LABEL_KEY) == name
        ]

    def _reconcile(self, name):
        deployment = self.deployments[name]
        manifest = deployment["manifest"]
        pods = self._group_pods(name)
        wanted = manifest["spec"]["replicas"]
        for pod in pods[wanted:]:
            self.pods.pop(pod["metadata"]["name"])
        for index in range(len(pods), wanted):
            pod_name = f"{name}-{deployment['generation']}-{index}"
            template = manifest["spec"]["template"]
            self._add_pod(
                {
                    "metadata": {
                        "name": pod_name,
                        "labels": dict(template["metadata"]["labels"]),
                    },
                    "spec": dict(template["spec"]),
                }
            )
            self._advance(self.pods[pod_name])
        deployment["generation"] += 1

    def create_replica_group(self, namespace, group):
        self.mutations.append(("create_replica_group", group.name))
        manifest = group.to_manifest(namespace)
        manifest["status"] = {"availableReplicas": 0}
        self.deployments[group.name] = {
            "manifest": manifest,
            "generation": 0,
            "converged": False,
        }
        return group.name

    def get_replica_group(self, namespace, name):
        if name not in self.deployments:
            raise ResourceNotFoundError(
                "get replica group", f"deployments {name} NotFound"
            )
        deployment = self.deployments[name]
        manifest = deployment["manifest"]
        if deployment["converged"]:
            manifest["status"]["availableReplicas"] = manifest["spec"]["replicas"]
        else:
            self._reconcile(name)
            deployment["converged"] = True
        return manifest

    def update_replica_group(self, namespace, name, replicas):
        self.mutations.append(("update_replica_group", name))
        deployment = self.deployments[name]
        deployment["manifest"]["spec"]["replicas"] = replicas
        deployment["converged"] = False

    def delete_replica_group(self, namespace, name):
        self.mutations.append(("delete_replica_group", name))
        if self.deployments.pop(name, None) is not None:
            for pod in self._group_pods(name):
                self.pods.pop(pod["metadata"]["name"])

    def list_scheduling_events(self, namespace, field_selector):
        self.event_selectors.append(field_selector)
        return list(self.events)

    def stream_log(self, namespace, name):
        if name in self.fail_logs:
            raise GatewayError("stream log", f"logs of {name} unavailable")
        if name not in self.pods:
            raise ResourceNotFoundError("stream log", f"pods {name} NotFound")
        command = self.pods[name]["spec"]["containers"][0].get("command") or []
        if command[:1] == ["echo"]:
            yield (" ".join(command[1:]) + "\n").encode()
        else:
            yield f"{name} output\n".encode()


@pytest.fixture(autouse=True)
def reset_config():
    framework.config.reset()
    yield
    framework.config.reset()


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def make_run(fake_gateway):
    def factory(mode, nodes=None, cleanup=False, cancel_event=None):
        return BenchmarkRun(
            mode,
            fake_gateway,
            namespace=TEST_NAMESPACE,
            nodes=fake_gateway.nodes if nodes is None else nodes,
            cleanup_requested=cleanup,
            cancel_event=cancel_event or threading.Event(),
            poll_interval=0,
        )

    return factory
