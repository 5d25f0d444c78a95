"""
General Kubernetes object
"""
import logging
import shlex

import yaml

from kube_perf.framework import config
from kube_perf.k8s import defaults
from kube_perf.k8s.exceptions import CommandFailed
from kube_perf.utility.utils import run_cmd, stream_cmd


log = logging.getLogger(__name__)


class KubeCtl(object):
    """
    A basic Kubernetes object to run basic 'kubectl' commands
    """

    def __init__(
        self,
        api_version=defaults.API_VERSION,
        kind="Pod",
        namespace=None,
        resource_name="",
        selector=None,
        field_selector=None,
        kubeconfig=None,
        silent=False,
    ):
        """
        Initializer function

        Args:
            api_version (str): API version of the resource
            kind (str): The kind of the resource, e.g. Pod
            namespace (str): The name of the namespace to use
            resource_name (str): Resource name
            selector (str): The label selector to look for. It has higher
                priority than resource_name and is used instead of the name.
            field_selector (str): Selector (field query) to filter on, supports
                '=', '==', and '!='. (e.g. status.phase=Running)
            kubeconfig (str): Path to the kubeconfig, defaults to
                ENV_DATA['kubeconfig'] of the config
            silent (bool): If True will silent errors from the server, default false
        """
        self._api_version = api_version
        self._kind = kind
        self._namespace = namespace
        self._resource_name = resource_name
        self.selector = selector
        self.field_selector = field_selector
        self.kubeconfig = kubeconfig
        self.silent = silent

    @property
    def api_version(self):
        return self._api_version

    @property
    def kind(self):
        return self._kind

    @property
    def namespace(self):
        return self._namespace

    @property
    def resource_name(self):
        return self._resource_name

    def base_cmd(self):
        """
        Build the 'kubectl' prefix shared by all the commands of this object

        Returns:
            list: kubectl binary followed by the global flags

        """
        cmd = [config.RUN.get("kubectl_bin", defaults.KUBECTL_BIN)]
        kubeconfig = self.kubeconfig or config.ENV_DATA.get("kubeconfig")
        if kubeconfig:
            cmd += ["--kubeconfig", kubeconfig]
        if self.namespace:
            cmd += ["-n", self.namespace]
        return cmd

    def exec_kubectl_cmd(
        self, command, out_yaml_format=True, timeout=None, silent=False
    ):
        """
        Executing 'kubectl' command

        Args:
            command (str or list): The command to execute (e.g. create -f
                file.yaml) without the initial 'kubectl' at the beginning
            out_yaml_format (bool): whether to return  yaml loaded python
                object or raw output
            timeout (int): timeout for the kubectl command, defaults to
                RUN['cmd_timeout'] of the config
            silent (bool): If True will silent errors from the server, default false

        Returns:
            dict: Dictionary represents a returned yaml file.
            str: If out_yaml_format is False.

        """
        if isinstance(command, str):
            command = shlex.split(command)
        timeout = timeout or config.RUN.get("cmd_timeout", defaults.CMD_TIMEOUT)
        out = run_cmd(
            self.base_cmd() + list(command),
            timeout=timeout,
            silent=silent or self.silent,
        )
        if out_yaml_format:
            return yaml.safe_load(out)
        return out

    def get(self, resource_name="", selector=None, field_selector=None, silent=False):
        """
        Get command - 'kubectl get <resource>'

        Args:
            resource_name (str): The resource name to fetch
            selector (str): The label selector to look for.
            field_selector (str): Selector (field query) to filter on, supports
                '=', '==', and '!='. (e.g. status.phase=Running)

        Example:
            get('my-pod')

        Returns:
            dict: Dictionary represents a returned yaml file

        """
        resource_name = resource_name if resource_name else self.resource_name
        selector = selector if selector else self.selector
        field_selector = field_selector if field_selector else self.field_selector
        if selector or field_selector:
            resource_name = ""
        command = ["get", self.kind]
        if resource_name:
            command.append(resource_name)
        if selector is not None:
            command.append(f"--selector={selector}")
        if field_selector is not None:
            command.append(f"--field-selector={field_selector}")
        command += ["-o", "yaml"]
        try:
            return self.exec_kubectl_cmd(command, silent=silent)
        except CommandFailed as ex:
            if not silent:
                log.warning(
                    f"Failed to get resource: {resource_name} of kind: "
                    f"{self.kind}, selector: {selector}, Error: {ex}"
                )
            raise

    def get_items(self, selector=None, field_selector=None):
        """
        List the resources of this kind

        Returns:
            list: The 'items' of the returned list, empty if there are none

        """
        data = self.get(selector=selector, field_selector=field_selector)
        return (data or {}).get("items") or []

    def create(self, yaml_file):
        """
        Creates a new resource

        Args:
            yaml_file (str): Path to a yaml file to use in 'kubectl create -f
                file.yaml

        Returns:
            dict: Dictionary represents a returned yaml file
        """
        output = self.exec_kubectl_cmd(["create", "-f", yaml_file, "-o", "yaml"])
        log.debug(f"{yaml.dump(output)}")
        return output

    def delete(self, resource_name="", wait=True, ignore_not_found=True):
        """
        Deletes a resource

        Args:
            resource_name (str): Name of the resource you want to delete
            wait (bool): Determines if the delete command should wait to
                completion
            ignore_not_found (bool): Treat an already deleted resource as a
                successful deletion

        Returns:
            str: Output of the delete command, empty if the resource was
                already gone

        Raises:
            CommandFailed: In case resource_name wasn't provided
        """
        resource_name = resource_name or self.resource_name
        if not resource_name:
            raise CommandFailed("resource_name has to be provided")
        command = ["delete", self.kind, resource_name]
        if ignore_not_found:
            command.append("--ignore-not-found")
        # kubectl default for wait is True
        if not wait:
            command.append("--wait=false")
        return self.exec_kubectl_cmd(command, out_yaml_format=False)

    def scale(self, replicas, resource_name=""):
        """
        Scale resource to required number of replicas

        Args:
            replicas (int): number of required replicas
            resource_name (str): name of resource to scale
        """
        resource_name = resource_name or self.resource_name
        command = ["scale", f"--replicas={replicas}", f"{self.kind}/{resource_name}"]
        return self.exec_kubectl_cmd(command, out_yaml_format=False)

    def logs(self, resource_name=""):
        """
        Stream the logs of a pod - 'kubectl logs <pod>'

        Args:
            resource_name (str): Name of the pod

        Returns:
            generator: Yields the log output as bytes chunks

        """
        resource_name = resource_name or self.resource_name
        return stream_cmd(self.base_cmd() + ["logs", resource_name])
