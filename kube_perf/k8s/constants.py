"""
Constants module.

This module contains any values that are widely used across the framework,
utilities, or tests that will predominantly remain unchanged.

In the event values here have to be changed it should be under careful review
and with consideration of the entire project.

"""

import os

# Logging
LOG_FORMAT = "%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s"

# Directories
TOP_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
FRAMEWORK_CONF_DIR = os.path.join(TOP_DIR, "kube_perf", "framework", "conf")
TEMPLATE_DIR = os.path.join(TOP_DIR, "kube_perf", "templates")
TEMPLATE_WORKLOAD_DIR = os.path.join(TEMPLATE_DIR, "workloads")

# Workload templates
WORKLOAD_POD_YAML = os.path.join(TEMPLATE_WORKLOAD_DIR, "pod.yaml")
WORKLOAD_PVC_YAML = os.path.join(TEMPLATE_WORKLOAD_DIR, "pvc.yaml")
SATURATION_DEPLOYMENT_YAML = os.path.join(TEMPLATE_WORKLOAD_DIR, "deployment.yaml.j2")

# Resource kinds
NODE = "Node"
POD = "Pod"
PVC = "PersistentVolumeClaim"
DEPLOYMENT = "Deployment"
EVENT = "Event"

# Pod phases
STATUS_PENDING = "Pending"
STATUS_RUNNING = "Running"
STATUS_SUCCEEDED = "Succeeded"
STATUS_FAILED = "Failed"
STATUS_UNKNOWN = "Unknown"
NON_TERMINAL_PHASES = (STATUS_PENDING, STATUS_RUNNING)

# Pod conditions
CONDITION_READY = "Ready"
CONDITION_POD_SCHEDULED = "PodScheduled"

# Restart policy of every benchmark workload
RESTART_POLICY_NEVER = "Never"

# Volume policies
VOLUME_POLICY_NONE = "none"
VOLUME_POLICY_CLAIM = "claim"
VOLUME_POLICY_SCRATCH = "scratch"
VOLUME_POLICIES = (VOLUME_POLICY_NONE, VOLUME_POLICY_CLAIM, VOLUME_POLICY_SCRATCH)
BENCHMARK_VOLUME_NAME = "benchmark-volume"
ACCESS_MODE_RWO = "ReadWriteOnce"

# Benchmark modes
MODE_DISTRIBUTED_COMMAND = "DistributedCommand"
MODE_SATURATION = "Saturation"
MODE_NETWORK_TEST = "NetworkTest"

# Workload roles, used in the deterministic workload names
ROLE_COMMAND = "run"
ROLE_SATURATION = "saturate"
ROLE_BURST = "burst"
ROLE_NETWORK_SERVER = "network-server"
ROLE_NETWORK_CLIENT = "network-client"

# Saturation strategies
SATURATION_REPLICA_GROUP = "replica-group"
SATURATION_BURST = "burst"
SATURATION_STRATEGIES = (SATURATION_REPLICA_GROUP, SATURATION_BURST)

# Labels
APP_LABEL_KEY = "app"
MODE_LABEL_KEY = "kube-perf/mode"

# Results
LOG_FILE_SUFFIX = ".log"
POD_STARTUP_TIMES_FILE = "pod-startup-times.json"

# Kubernetes timestamps, e.g. 2022-01-01T12:34:56Z
KUBE_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Exit codes of the kube-perf entry point
EXIT_FAILURE = 1
EXIT_CANCELLED = 130
