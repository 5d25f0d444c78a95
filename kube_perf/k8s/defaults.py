"""
Defaults module. All the defaults used by kube-perf framework should
reside in this module.
"""

import os

API_VERSION = "v1"
APPS_API_VERSION = "apps/v1"

# Be aware that variables defined above and below are not used anywhere in the
# config files and their sections when we rendering config!

KUBECTL_BIN = "kubectl"
NAMESPACE = "kubernetes-performance"
KUBECONFIG_LOCATION = os.path.join(".kube", "config")  # relative from home dir
WORKLOAD_PREFIX = "kubernetes-performance"
CONTAINER_NAME = "kubernetes-performance"

IMAGE = "nginx:1.12"
SATURATION_IMAGE = "registry.k8s.io/pause:3.9"
NETWORK_IMAGE = "networkstatic/iperf3"

POLL_INTERVAL = 5
CMD_TIMEOUT = 600

FS_GROUP = 1000
CLAIM_SIZE = "1Gi"
SCRATCH_MOUNT_PATH = "/scratch"

SATURATION_REPLICAS = 10
BURST_FACTOR = 5
DEFAULT_SCHEDULER_NAME = "default-scheduler"

NETWORK_PORT = 5201
NETWORK_DURATION = 30
