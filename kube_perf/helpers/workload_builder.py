"""
Builders of the workload descriptors submitted by the benchmark drivers.

Everything in this module is pure construction: descriptors are built from
their arguments and the packaged templates only, nothing is sent to the
cluster from here.
"""
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

from kube_perf.k8s import constants, defaults
from kube_perf.utility import templating

log = logging.getLogger(__name__)

INVALID_NAME_CHARS = re.compile(r"[^a-z0-9.-]+")


class VolumePolicy(Enum):
    NONE = constants.VOLUME_POLICY_NONE
    PERSISTENT_CLAIM = constants.VOLUME_POLICY_CLAIM
    EPHEMERAL_SCRATCH = constants.VOLUME_POLICY_SCRATCH


@dataclass(frozen=True)
class ClaimSpec:
    """
    Companion persistent volume claim of a workload, it has to be created
    before the workload mounting it.
    """

    name: str
    storage_class: Optional[str] = None
    size: str = defaults.CLAIM_SIZE
    access_mode: str = constants.ACCESS_MODE_RWO

    def to_manifest(self, namespace):
        pvc_data = templating.load_yaml(constants.WORKLOAD_PVC_YAML)
        pvc_data["metadata"]["name"] = self.name
        pvc_data["metadata"]["namespace"] = namespace
        pvc_data["spec"]["accessModes"] = [self.access_mode]
        pvc_data["spec"]["resources"]["requests"]["storage"] = self.size
        if self.storage_class:
            pvc_data["spec"]["storageClassName"] = self.storage_class
        return pvc_data


@dataclass(frozen=True)
class WorkloadSpec:
    """
    Complete description of a single benchmark workload (pod). Never mutated
    once submitted.
    """

    name: str
    command: Tuple[str, ...] = ()
    target_node: Optional[str] = None
    image: str = defaults.IMAGE
    volume_policy: VolumePolicy = VolumePolicy.NONE
    storage_class: Optional[str] = None
    claim_size: str = defaults.CLAIM_SIZE
    scratch_mount_path: str = defaults.SCRATCH_MOUNT_PATH
    fs_group: int = defaults.FS_GROUP
    labels: Dict[str, str] = field(default_factory=dict)
    restart_policy: str = constants.RESTART_POLICY_NEVER

    @property
    def claim(self):
        """
        ClaimSpec: The companion claim, None unless the volume policy is
            PERSISTENT_CLAIM
        """
        if self.volume_policy is not VolumePolicy.PERSISTENT_CLAIM:
            return None
        return ClaimSpec(
            name=self.name, storage_class=self.storage_class, size=self.claim_size
        )

    def pod_spec(self):
        """
        Build the 'spec' section of the pod, shared by standalone pods and the
        pod template of a replica group.

        Returns:
            dict: The pod spec

        """
        pod_data = templating.load_yaml(constants.WORKLOAD_POD_YAML)
        spec = pod_data["spec"]
        container = spec["containers"][0]
        container["name"] = defaults.CONTAINER_NAME
        container["image"] = self.image
        if self.command:
            container["command"] = list(self.command)
        else:
            del container["command"]
        spec["restartPolicy"] = self.restart_policy
        if self.target_node:
            spec["nodeName"] = self.target_node

        volume = {"name": constants.BENCHMARK_VOLUME_NAME}
        if self.volume_policy is VolumePolicy.PERSISTENT_CLAIM:
            volume["persistentVolumeClaim"] = {"claimName": self.name}
            spec["securityContext"] = {"fsGroup": self.fs_group}
        elif self.volume_policy is VolumePolicy.EPHEMERAL_SCRATCH:
            volume["emptyDir"] = {}
        else:
            return spec
        spec["volumes"] = [volume]
        container["volumeMounts"] = [
            {
                "name": constants.BENCHMARK_VOLUME_NAME,
                "mountPath": self.scratch_mount_path,
            }
        ]
        return spec

    def to_manifest(self, namespace):
        """
        Render the pod manifest of the workload

        Args:
            namespace (str): Namespace the pod is created in

        Returns:
            dict: The pod manifest

        """
        pod_data = templating.load_yaml(constants.WORKLOAD_POD_YAML)
        pod_data["metadata"]["name"] = self.name
        pod_data["metadata"]["namespace"] = namespace
        pod_data["metadata"]["labels"].update(self.labels)
        pod_data["spec"] = self.pod_spec()
        return pod_data


@dataclass(frozen=True)
class ReplicaGroupSpec:
    """
    A Deployment keeping `desired_replicas` copies of an unpinned workload
    """

    name: str
    desired_replicas: int
    template: WorkloadSpec

    @property
    def selector(self):
        return f"{constants.APP_LABEL_KEY}={self.name}"

    def to_manifest(self, namespace, replicas=None):
        labels = {
            key: value
            for key, value in self.template.labels.items()
            if key != constants.APP_LABEL_KEY
        }
        return templating.render_yaml_template(
            constants.SATURATION_DEPLOYMENT_YAML,
            name=self.name,
            namespace=namespace,
            replicas=self.desired_replicas if replicas is None else replicas,
            labels=labels,
            container_name=defaults.CONTAINER_NAME,
            image=self.template.image,
            command=list(self.template.command),
        )


def tokenize_command(command):
    """
    Turn the command into the argument list of the container. A string is
    split on whitespace, quoting is not interpreted, so arguments containing
    spaces have to be passed as a list.

    Args:
        command (str or list): The command

    Returns:
        tuple: The arguments

    """
    if not command:
        return ()
    if isinstance(command, str):
        return tuple(command.split())
    return tuple(str(arg) for arg in command)


def workload_name(prefix, role, suffix):
    """
    Deterministic name of a workload: '<prefix>-<role>-<node or index>'

    Args:
        prefix (str): Prefix shared by all the workloads of the tool
        role (str): Role of the workload in the benchmark
        suffix (str or int): Node name or index

    Returns:
        str: Valid Kubernetes object name

    """
    name = f"{prefix}-{role}-{suffix}".lower()
    return INVALID_NAME_CHARS.sub("-", name).strip("-.")


def build(
    role,
    node=None,
    command=None,
    volume_policy=VolumePolicy.NONE,
    storage_class=None,
    index=None,
    prefix=defaults.WORKLOAD_PREFIX,
    image=defaults.IMAGE,
    mode=None,
    **kwargs,
):
    """
    Build the descriptor of one workload.

    Args:
        role (str): Role of the workload, part of the name
        node (str): Node to pin the workload to, None lets the cluster
            place it
        command (str or list): Command of the container
        volume_policy (VolumePolicy): Volume wired into the workload
        storage_class (str): Storage class of the companion claim
        index (int): Used in the name instead of the node when given
        prefix (str): Prefix of the name
        image (str): Container image
        mode (str): Benchmark mode, stored as a label
        **kwargs: Other WorkloadSpec fields (claim_size, fs_group,
            scratch_mount_path)

    Returns:
        WorkloadSpec: The workload descriptor, its `claim` property holds the
            companion claim if any

    Raises:
        ValueError: When neither node nor index is given

    """
    suffix = index if index is not None else node
    if suffix is None:
        raise ValueError("Either node or index is needed to name the workload")
    labels = {constants.APP_LABEL_KEY: prefix}
    if mode:
        labels[constants.MODE_LABEL_KEY] = mode
    return WorkloadSpec(
        name=workload_name(prefix, role, suffix),
        command=tokenize_command(command),
        target_node=node,
        image=image,
        volume_policy=VolumePolicy(volume_policy),
        storage_class=storage_class,
        labels=labels,
        **kwargs,
    )
