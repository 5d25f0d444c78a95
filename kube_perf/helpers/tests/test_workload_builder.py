# -*- coding: utf8 -*-
import dataclasses

import pytest

from kube_perf.helpers import workload_builder
from kube_perf.helpers.workload_builder import (
    ReplicaGroupSpec,
    VolumePolicy,
    WorkloadSpec,
)
from kube_perf.k8s import constants


@pytest.mark.parametrize(
    "prefix, role, suffix, expected",
    [
        (
            "kubernetes-performance",
            "run",
            "node-1",
            "kubernetes-performance-run-node-1",
        ),
        ("perf", "burst", 3, "perf-burst-3"),
        (
            "perf",
            "run",
            "ip-10-0-1-2.EC2.internal",
            "perf-run-ip-10-0-1-2.ec2.internal",
        ),
        ("perf", "run", "node_1", "perf-run-node-1"),
    ],
)
def test_workload_name(prefix, role, suffix, expected):
    assert workload_builder.workload_name(prefix, role, suffix) == expected


@pytest.mark.parametrize(
    "command, expected",
    [
        ("echo 1", ("echo", "1")),
        ("  sleep   10 ", ("sleep", "10")),
        (["sh", "-c", "echo a b"], ("sh", "-c", "echo a b")),
        (["sleep", 10], ("sleep", "10")),
        (None, ()),
        ("", ()),
    ],
)
def test_tokenize_command(command, expected):
    assert workload_builder.tokenize_command(command) == expected


def test_build_is_deterministic():
    first = workload_builder.build(constants.ROLE_COMMAND, node="n1", command="echo 1")
    second = workload_builder.build(constants.ROLE_COMMAND, node="n1", command="echo 1")
    assert first == second
    assert first.name == "kubernetes-performance-run-n1"


def test_build_without_node_or_index():
    with pytest.raises(ValueError):
        workload_builder.build(constants.ROLE_COMMAND)


def test_spec_is_immutable():
    spec = workload_builder.build(constants.ROLE_COMMAND, node="n1")
    with pytest.raises(dataclasses.FrozenInstanceError):
        spec.name = "other"


def test_pod_manifest():
    spec = workload_builder.build(
        constants.ROLE_COMMAND,
        node="n1",
        command="echo 1",
        mode=constants.MODE_DISTRIBUTED_COMMAND,
    )
    manifest = spec.to_manifest("bench")

    assert manifest["kind"] == "Pod"
    assert manifest["metadata"]["name"] == "kubernetes-performance-run-n1"
    assert manifest["metadata"]["namespace"] == "bench"
    assert manifest["metadata"]["labels"] == {
        "app": "kubernetes-performance",
        "kube-perf/mode": constants.MODE_DISTRIBUTED_COMMAND,
    }
    assert manifest["spec"]["nodeName"] == "n1"
    assert manifest["spec"]["restartPolicy"] == "Never"
    container = manifest["spec"]["containers"][0]
    assert container["command"] == ["echo", "1"]
    assert container["image"] == "nginx:1.12"
    assert "volumes" not in manifest["spec"]
    assert spec.claim is None


def test_pod_manifest_without_command_or_node():
    manifest = workload_builder.build(constants.ROLE_BURST, index=0).to_manifest("ns")
    assert "command" not in manifest["spec"]["containers"][0]
    assert "nodeName" not in manifest["spec"]


def test_claim_policy():
    spec = workload_builder.build(
        constants.ROLE_COMMAND,
        node="n1",
        volume_policy=VolumePolicy.PERSISTENT_CLAIM,
        storage_class="fast",
        claim_size="5Gi",
    )
    pod_spec = spec.to_manifest("ns")["spec"]
    assert pod_spec["volumes"] == [
        {
            "name": constants.BENCHMARK_VOLUME_NAME,
            "persistentVolumeClaim": {"claimName": spec.name},
        }
    ]
    assert pod_spec["securityContext"] == {"fsGroup": 1000}
    assert pod_spec["containers"][0]["volumeMounts"][0]["mountPath"] == "/scratch"

    claim = spec.claim.to_manifest("ns")
    assert claim["kind"] == "PersistentVolumeClaim"
    assert claim["metadata"]["name"] == spec.name
    assert claim["spec"]["storageClassName"] == "fast"
    assert claim["spec"]["accessModes"] == ["ReadWriteOnce"]
    assert claim["spec"]["resources"]["requests"]["storage"] == "5Gi"


def test_claim_without_storage_class():
    spec = workload_builder.build(
        constants.ROLE_COMMAND, node="n1", volume_policy="claim"
    )
    assert "storageClassName" not in spec.claim.to_manifest("ns")["spec"]


def test_scratch_policy():
    spec = workload_builder.build(
        constants.ROLE_COMMAND,
        node="n1",
        volume_policy=VolumePolicy.EPHEMERAL_SCRATCH,
        scratch_mount_path="/data",
    )
    pod_spec = spec.to_manifest("ns")["spec"]
    assert pod_spec["volumes"] == [
        {"name": constants.BENCHMARK_VOLUME_NAME, "emptyDir": {}}
    ]
    assert pod_spec["containers"][0]["volumeMounts"][0]["mountPath"] == "/data"
    assert "securityContext" not in pod_spec
    assert spec.claim is None


def test_replica_group_manifest():
    template = WorkloadSpec(
        name="template",
        command=("sh", "-c", "sleep 1; echo 'done: yes'"),
        image="registry.k8s.io/pause:3.9",
        labels={"app": "perf", "kube-perf/mode": "Saturation"},
    )
    group = ReplicaGroupSpec(
        name="perf-saturate-group", desired_replicas=10, template=template
    )

    manifest = group.to_manifest("bench")

    assert group.selector == "app=perf-saturate-group"
    assert manifest["apiVersion"] == "apps/v1"
    assert manifest["kind"] == "Deployment"
    assert manifest["metadata"] == {
        "name": "perf-saturate-group",
        "namespace": "bench",
        "labels": {"app": "perf-saturate-group"},
    }
    assert manifest["spec"]["replicas"] == 10
    assert manifest["spec"]["selector"] == {
        "matchLabels": {"app": "perf-saturate-group"}
    }
    pod_template = manifest["spec"]["template"]
    assert pod_template["metadata"]["labels"] == {
        "app": "perf-saturate-group",
        "kube-perf/mode": "Saturation",
    }
    container = pod_template["spec"]["containers"][0]
    assert container["image"] == "registry.k8s.io/pause:3.9"
    assert container["command"] == ["sh", "-c", "sleep 1; echo 'done: yes'"]
    assert "nodeName" not in pod_template["spec"]
    assert group.to_manifest("bench", replicas=0)["spec"]["replicas"] == 0


def test_replica_group_without_command():
    group = ReplicaGroupSpec(
        name="g", desired_replicas=1, template=WorkloadSpec(name="t")
    )
    container = group.to_manifest("ns")["spec"]["template"]["spec"]["containers"][0]
    assert "command" not in container
