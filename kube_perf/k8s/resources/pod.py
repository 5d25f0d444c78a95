"""
Pod related functionalities and context info

Each poll of the cluster turns the returned pods into WorkloadObservation
objects, nothing observed is kept beyond a single poll cycle.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from kube_perf.k8s import constants


@dataclass(frozen=True)
class WorkloadObservation:
    name: str
    phase: str = constants.STATUS_UNKNOWN
    assigned_address: Optional[str] = None
    node_name: Optional[str] = None
    ready_latency: Optional[float] = None
    present: bool = True

    @property
    def is_terminal(self):
        return self.phase not in constants.NON_TERMINAL_PHASES

    @property
    def is_scheduled(self):
        return bool(self.node_name) or self.is_terminal


def parse_kube_timestamp(timestamp):
    """
    Converting Kubernetes timestamp string to a datetime object

    Args:
        timestamp (str): e.g. '2022-01-01T12:34:56Z'

    Returns:
        datetime: naive UTC datetime, None for an empty value

    """
    if not timestamp:
        return None
    if isinstance(timestamp, datetime):
        return timestamp
    return datetime.strptime(timestamp, constants.KUBE_TIMESTAMP_FORMAT)


def get_pod_condition(pod_data, condition_type):
    """
    Args:
        pod_data (dict): The pod as returned by the cluster
        condition_type (str): e.g. Ready

    Returns:
        dict: The condition, None if the pod doesn't report it
    """
    conditions = (pod_data.get("status") or {}).get("conditions") or []
    for condition in conditions:
        if condition.get("type") == condition_type:
            return condition
    return None


def get_ready_latency(pod_data):
    """
    Time from the creation of the pod to its Ready condition turning True

    Args:
        pod_data (dict): The pod as returned by the cluster

    Returns:
        float: Seconds, never negative. None if the pod is not ready.

    """
    condition = get_pod_condition(pod_data, constants.CONDITION_READY)
    if not condition or condition.get("status") != "True":
        return None
    created = parse_kube_timestamp(pod_data["metadata"].get("creationTimestamp"))
    ready = parse_kube_timestamp(condition.get("lastTransitionTime"))
    if created is None or ready is None:
        return None
    # Both timestamps have a one second resolution and come from different
    # components, ready may be reported before created by clock skew
    return max(0.0, (ready - created).total_seconds())


def observe_pod(pod_data):
    """
    Build the observation of a single pod

    Args:
        pod_data (dict): The pod as returned by the cluster

    Returns:
        WorkloadObservation: The observation

    """
    status = pod_data.get("status") or {}
    spec = pod_data.get("spec") or {}
    return WorkloadObservation(
        name=pod_data["metadata"]["name"],
        phase=status.get("phase") or constants.STATUS_UNKNOWN,
        assigned_address=status.get("podIP") or None,
        node_name=spec.get("nodeName") or None,
        ready_latency=get_ready_latency(pod_data),
    )


def observe_pods(pods, names):
    """
    Observe the named workloads in a pod listing. A workload missing from the
    listing is observed in phase Unknown and not present.

    Args:
        pods (list): Pods as returned by the cluster
        names (list): Names of the workloads to observe

    Returns:
        dict: name -> WorkloadObservation, in the order of names

    """
    by_name = {pod["metadata"]["name"]: pod for pod in pods}
    observations = {}
    for name in names:
        pod_data = by_name.get(name)
        if pod_data is None:
            observations[name] = WorkloadObservation(name=name, present=False)
        else:
            observations[name] = observe_pod(pod_data)
    return observations


def is_being_deleted(pod_data):
    return bool(pod_data["metadata"].get("deletionTimestamp"))
