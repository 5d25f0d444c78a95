"""
Cluster gateway: the only place the benchmark drivers reach the cluster
through. Every failing call surfaces as GatewayError.
"""
import logging
import os
import tempfile
from functools import wraps

from kube_perf.k8s import constants, defaults
from kube_perf.k8s.exceptions import CommandFailed, GatewayError, ResourceNotFoundError
from kube_perf.k8s.kubectl import KubeCtl
from kube_perf.utility import templating

log = logging.getLogger(__name__)


def gateway_call(operation):
    """
    Decorator converting CommandFailed raised by the wrapped method into
    GatewayError (ResourceNotFoundError for missing resources).

    Args:
        operation (str): Name of the operation reported in the error
    """

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except CommandFailed as ex:
                if "NotFound" in str(ex):
                    raise ResourceNotFoundError(operation, ex) from ex
                raise GatewayError(operation, ex) from ex

        return wrapper

    return decorator


class ClusterGateway(object):
    """
    Workload, claim, replica group, event and log operations of one cluster,
    implemented with kubectl
    """

    def __init__(self, kubeconfig=None):
        """
        Initializer function

        Args:
            kubeconfig (str): Path to the kubeconfig, defaults to
                ENV_DATA['kubeconfig'] of the config
        """
        self.kubeconfig = kubeconfig

    def _kubectl(self, kind, namespace=None, api_version=defaults.API_VERSION):
        return KubeCtl(
            api_version=api_version,
            kind=kind,
            namespace=namespace,
            kubeconfig=self.kubeconfig,
        )

    def _create_from_manifest(self, kind, namespace, manifest, api_version):
        with tempfile.NamedTemporaryFile(
            mode="w+", prefix=f"{kind}_", suffix=".yaml", delete=False
        ) as temp_file_info:
            temp_yaml = temp_file_info.name
        try:
            templating.dump_yaml(manifest, temp_yaml)
            created = self._kubectl(kind, namespace, api_version).create(temp_yaml)
        finally:
            os.remove(temp_yaml)
        return created["metadata"]["name"]

    @gateway_call("list nodes")
    def list_nodes(self):
        """
        Returns:
            list: Names of all the nodes of the cluster, in API order
        """
        nodes = self._kubectl(constants.NODE).get_items()
        return [node["metadata"]["name"] for node in nodes]

    @gateway_call("create workload")
    def create_workload(self, namespace, spec):
        """
        Args:
            namespace (str): Namespace of the workload
            spec (WorkloadSpec): The workload to create

        Returns:
            str: Name of the created pod
        """
        log.info(f"Adding {constants.POD} with name {spec.name}")
        return self._create_from_manifest(
            constants.POD, namespace, spec.to_manifest(namespace), defaults.API_VERSION
        )

    @gateway_call("get workload")
    def get_workload(self, namespace, name):
        return self._kubectl(constants.POD, namespace).get(resource_name=name)

    @gateway_call("list workloads")
    def list_workloads(self, namespace, selector=None):
        return self._kubectl(constants.POD, namespace).get_items(selector=selector)

    @gateway_call("delete workload")
    def delete_workload(self, namespace, name, wait=True):
        """
        Delete the pod, a pod which doesn't exist counts as deleted
        """
        log.info(f"Deleting {constants.POD} {name}")
        self._kubectl(constants.POD, namespace).delete(resource_name=name, wait=wait)

    @gateway_call("create claim")
    def create_claim(self, namespace, claim):
        log.info(f"Adding {constants.PVC} with name {claim.name}")
        return self._create_from_manifest(
            constants.PVC, namespace, claim.to_manifest(namespace), defaults.API_VERSION
        )

    @gateway_call("list claims")
    def list_claims(self, namespace):
        return self._kubectl(constants.PVC, namespace).get_items()

    @gateway_call("delete claim")
    def delete_claim(self, namespace, name):
        log.info(f"Deleting {constants.PVC} {name}")
        self._kubectl(constants.PVC, namespace).delete(resource_name=name)

    @gateway_call("create replica group")
    def create_replica_group(self, namespace, group):
        log.info(
            f"Adding {constants.DEPLOYMENT} with name {group.name} and "
            f"{group.desired_replicas} replicas"
        )
        return self._create_from_manifest(
            constants.DEPLOYMENT,
            namespace,
            group.to_manifest(namespace),
            defaults.APPS_API_VERSION,
        )

    @gateway_call("get replica group")
    def get_replica_group(self, namespace, name):
        return self._kubectl(
            constants.DEPLOYMENT, namespace, defaults.APPS_API_VERSION
        ).get(resource_name=name)

    @gateway_call("update replica group")
    def update_replica_group(self, namespace, name, replicas):
        log.info(f"Scaling {constants.DEPLOYMENT} {name} to {replicas} replicas")
        self._kubectl(constants.DEPLOYMENT, namespace, defaults.APPS_API_VERSION).scale(
            replicas, resource_name=name
        )

    @gateway_call("delete replica group")
    def delete_replica_group(self, namespace, name):
        log.info(f"Deleting {constants.DEPLOYMENT} {name}")
        self._kubectl(
            constants.DEPLOYMENT, namespace, defaults.APPS_API_VERSION
        ).delete(resource_name=name)

    @gateway_call("list scheduling events")
    def list_scheduling_events(self, namespace, field_selector):
        """
        Args:
            namespace (str): Namespace of the events
            field_selector (str): e.g.
                'involvedObject.kind=Pod,source=default-scheduler'

        Returns:
            list: The events
        """
        return self._kubectl(constants.EVENT, namespace).get_items(
            field_selector=field_selector
        )

    def stream_log(self, namespace, name):
        """
        Stream the whole log output of a pod

        Args:
            namespace (str): Namespace of the pod
            name (str): Name of the pod

        Yields:
            bytes: Chunks of the log

        Raises:
            GatewayError: In case the logs can't be retrieved

        """
        try:
            yield from self._kubectl(constants.POD, namespace).logs(name)
        except CommandFailed as ex:
            raise GatewayError("stream log", ex) from ex
