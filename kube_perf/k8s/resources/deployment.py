"""
General Deployment object, used as the replica group of the saturation test
"""
import logging

from kube_perf.k8s.resources.pod import is_being_deleted

logger = logging.getLogger(__name__)


class ReplicaGroup(object):
    """
    A Deployment created from a ReplicaGroupSpec. Every property re-reads the
    cluster, nothing is cached between two calls.
    """

    def __init__(self, gateway, namespace, spec):
        """
        Initializer function

        Args:
            gateway (ClusterGateway): The cluster
            namespace (str): Namespace of the Deployment
            spec (ReplicaGroupSpec): The replica group
        """
        self.gateway = gateway
        self.namespace = namespace
        self.spec = spec

    @property
    def name(self):
        return self.spec.name

    def get(self):
        return self.gateway.get_replica_group(self.namespace, self.name)

    @property
    def replicas(self):
        """
        Returns number of replicas for the deployment as defined in its spec

        Returns:
            int: Number of replicas
        """
        return self.get().get("spec").get("replicas")

    @property
    def available_replicas(self):
        """
        Returns number of available replicas for the deployment

        Returns:
            int: Number of replicas
        """
        return (self.get().get("status") or {}).get("availableReplicas", 0) or 0

    def scale(self, replicas):
        """
        Scale deployment to required number of replicas

        Args:
            replicas (int): number of required replicas
        """
        self.gateway.update_replica_group(self.namespace, self.name, replicas)

    def pods(self):
        """
        Returns list of live pods of the Deployment, oldest first

        Returns:
            list: Pods data
        """
        pods = self.gateway.list_workloads(self.namespace, selector=self.spec.selector)
        pods = [pod for pod in pods if not is_being_deleted(pod)]
        return sorted(
            pods, key=lambda pod: pod["metadata"].get("creationTimestamp") or ""
        )
