# -*- coding: utf8 -*-
from kube_perf.k8s import constants
from kube_perf.k8s.resources import pod


def pod_data(name="w", phase="Running", ready_time=None, created=None, **status):
    data = {
        "metadata": {"name": name, "creationTimestamp": created},
        "spec": {"nodeName": "n1"},
        "status": dict(phase=phase, **status),
    }
    if ready_time:
        data["status"]["conditions"] = [
            {"type": "PodScheduled", "status": "True"},
            {"type": "Ready", "status": "True", "lastTransitionTime": ready_time},
        ]
    return data


def test_observe_pod():
    observation = pod.observe_pod(pod_data(podIP="10.1.2.3"))
    assert observation.name == "w"
    assert observation.phase == constants.STATUS_RUNNING
    assert observation.assigned_address == "10.1.2.3"
    assert observation.node_name == "n1"
    assert not observation.is_terminal
    assert observation.is_scheduled


def test_observe_pod_without_status():
    observation = pod.observe_pod({"metadata": {"name": "w"}})
    assert observation.phase == constants.STATUS_UNKNOWN
    assert observation.assigned_address is None


def test_pending_pod_is_not_scheduled():
    data = pod_data(phase="Pending")
    data["spec"] = {}
    observation = pod.observe_pod(data)
    assert not observation.is_scheduled
    assert not observation.is_terminal


def test_ready_latency():
    data = pod_data(created="2024-01-01T00:00:00Z", ready_time="2024-01-01T00:01:05Z")
    assert pod.get_ready_latency(data) == 65.0


def test_ready_latency_clock_skew():
    data = pod_data(created="2024-01-01T00:00:05Z", ready_time="2024-01-01T00:00:04Z")
    assert pod.get_ready_latency(data) == 0.0


def test_ready_latency_not_ready():
    assert pod.get_ready_latency(pod_data(created="2024-01-01T00:00:05Z")) is None


def test_observe_pods_missing():
    observations = pod.observe_pods([pod_data("a")], ["a", "b"])
    assert list(observations) == ["a", "b"]
    assert observations["b"].phase == constants.STATUS_UNKNOWN
    assert observations["b"].is_terminal
    assert observations["a"].present
    assert not observations["b"].present


def test_is_being_deleted():
    data = pod_data()
    assert not pod.is_being_deleted(data)
    data["metadata"]["deletionTimestamp"] = "2024-01-01T00:00:00Z"
    assert pod.is_being_deleted(data)
