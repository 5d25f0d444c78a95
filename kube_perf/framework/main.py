"""
kube-perf command line entry point
"""
import argparse
import logging
import os
import signal
import sys
import threading

import yaml

from kube_perf import framework
from kube_perf.framework.exceptions import ConfigError
from kube_perf.helpers.workload_builder import VolumePolicy
from kube_perf.k8s import constants
from kube_perf.k8s.exceptions import (
    GatewayError,
    HarvestError,
    RunCancelled,
    SelectionError,
    TimeoutExpiredError,
    UnexpectedBehaviour,
)
from kube_perf.k8s.gateway import ClusterGateway
from kube_perf.k8s.node import get_node_set
from kube_perf.utility.results import ResultsSink
from kube_perf.workloads.distributed import DistributedCommandRunner
from kube_perf.workloads.network import REQUIRED_NODES, NetworkTestDriver
from kube_perf.workloads.run import BenchmarkRun
from kube_perf.workloads.saturation import get_strategy

log = logging.getLogger(__name__)

CMD_RUN = "run"
CMD_SATURATE = "saturate"
CMD_NETWORK = "network"
CMD_NODES = "nodes"


def load_config(config_files):
    """
    This function load the config files in the order defined in config_files
    list.

    Args:
        config_files (list): config file paths

    Raises:
        ConfigError: A config file can't be read or parsed
    """
    for config_file in config_files:
        try:
            with open(
                os.path.abspath(os.path.expanduser(config_file))
            ) as file_stream:
                custom_config_data = yaml.safe_load(file_stream)
        except (OSError, yaml.YAMLError) as ex:
            raise ConfigError(f"Can't load config file {config_file}: {ex}")
        try:
            framework.config.update(custom_config_data)
        except ValueError as ex:
            raise ConfigError(f"Invalid config file {config_file}: {ex}")


def add_selection_arguments(parser, default=None):
    parser.add_argument(
        "--namespace", default=default, help="Namespace the workloads are created in"
    )
    parser.add_argument(
        "--nodes",
        default=default,
        help="Comma separated node names to run on, all nodes by default",
    )


def build_parser():
    selection_parser = argparse.ArgumentParser(add_help=False)
    add_selection_arguments(selection_parser, default=argparse.SUPPRESS)

    parser = argparse.ArgumentParser(
        prog="kube-perf",
        description="Benchmark a Kubernetes cluster with workloads run on its nodes",
    )
    parser.add_argument(
        "--kube-config",
        help="Path to the kubeconfig, defaults to $KUBECONFIG then ~/.kube/config",
    )
    add_selection_arguments(parser)
    parser.add_argument(
        "--conf",
        action="append",
        default=[],
        help="YAML config file overriding the defaults, can be repeated",
    )
    parser.add_argument("--results-dir", help="Directory of the collected results")
    parser.add_argument(
        "--poll-interval", type=int, help="Seconds between two status polls"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    subparsers = parser.add_subparsers(title="subcommand", dest="subcommand")
    subparsers.required = True

    run_parser = subparsers.add_parser(
        CMD_RUN,
        parents=[selection_parser],
        allow_abbrev=False,
        description="Run the same command on every selected node",
    )
    run_parser.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        help="Command and its arguments, everything after the options",
    )
    run_parser.add_argument("--volume", choices=constants.VOLUME_POLICIES)
    run_parser.add_argument("--storage-class", help="Storage class of the claims")
    run_parser.add_argument(
        "--cleanup",
        action="store_true",
        help="Delete the workloads once their logs are collected",
    )

    saturate_parser = subparsers.add_parser(
        CMD_SATURATE,
        parents=[selection_parser],
        description="Load the control plane with many pods",
    )
    saturate_parser.add_argument("--replicas", type=int)
    saturate_parser.add_argument(
        "--strategy", choices=constants.SATURATION_STRATEGIES
    )
    saturate_parser.add_argument(
        "--no-cleanup",
        action="store_true",
        help="Keep the created objects in the namespace",
    )

    network_parser = subparsers.add_parser(
        CMD_NETWORK,
        parents=[selection_parser],
        description="Measure throughput between two nodes",
    )
    network_parser.add_argument(
        "--duration", type=int, help="Seconds the client sends data"
    )
    network_parser.add_argument("--cleanup", action="store_true")

    subparsers.add_parser(
        CMD_NODES, parents=[selection_parser], description="List the cluster nodes"
    )
    return parser


def process_arguments(args):
    """
    Update the config with the config files and the options of the command
    line, command line options win.

    Args:
        args (argparse.Namespace): Parsed arguments
    """
    load_config(args.conf)
    overrides = {
        ("ENV_DATA", "kubeconfig"): args.kube_config,
        ("ENV_DATA", "namespace"): args.namespace,
        ("ENV_DATA", "nodes"): args.nodes,
        ("RUN", "results_dir"): args.results_dir,
        ("RUN", "poll_interval"): args.poll_interval,
        ("RUN", "log_level"): args.log_level,
        ("PERF", "volume_policy"): getattr(args, "volume", None),
        ("PERF", "storage_class"): getattr(args, "storage_class", None),
        ("PERF", "saturation_replicas"): getattr(args, "replicas", None),
        ("PERF", "saturation_strategy"): getattr(args, "strategy", None),
        ("PERF", "network_duration"): getattr(args, "duration", None),
    }
    for (section, key), value in overrides.items():
        if value is not None:
            getattr(framework.config, section)[key] = value
    framework.config.validate()


def install_signal_handlers(cancel_event):
    """
    Make SIGINT and SIGTERM cancel the run instead of killing the process

    Returns:
        dict: signal number -> previous handler
    """

    def cancel(signum, frame):
        log.warning(f"Received signal {signum}, cancelling the run")
        cancel_event.set()

    previous = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.signal(signum, cancel)
    return previous


def restore_signal_handlers(previous):
    for signum, handler in previous.items():
        signal.signal(signum, handler)


def log_namespace_state(gateway):
    namespace = framework.config.ENV_DATA["namespace"]
    pods = gateway.list_workloads(namespace)
    log.info(f"There are {len(pods)} pods in the namespace {namespace}")


def run_distributed(gateway, nodes, args, cancel_event):
    perf = framework.config.PERF
    with BenchmarkRun.from_config(
        constants.MODE_DISTRIBUTED_COMMAND,
        gateway,
        nodes,
        cleanup_requested=args.cleanup,
        cancel_event=cancel_event,
    ) as run:
        DistributedCommandRunner(
            run,
            args.command,
            ResultsSink(framework.config.RUN["results_dir"]),
            volume_policy=VolumePolicy(perf["volume_policy"]),
            storage_class=perf.get("storage_class"),
            image=perf["image"],
            prefix=perf["workload_prefix"],
            claim_size=perf["claim_size"],
            fs_group=perf["fs_group"],
            scratch_mount_path=perf["scratch_mount_path"],
        ).execute()
    return run


def run_saturation(gateway, nodes, args, cancel_event):
    perf = framework.config.PERF
    strategy = get_strategy(
        perf["saturation_strategy"],
        replicas=perf["saturation_replicas"],
        sink=ResultsSink(framework.config.RUN["results_dir"]),
        image=perf["saturation_image"],
        prefix=perf["workload_prefix"],
        burst_factor=perf["burst_factor"],
        scheduler_name=perf["scheduler_name"],
    )
    with BenchmarkRun.from_config(
        constants.MODE_SATURATION,
        gateway,
        nodes,
        cleanup_requested=not args.no_cleanup,
        cancel_event=cancel_event,
    ) as run:
        strategy.run(run)
    return run


def run_network(gateway, nodes, args, cancel_event):
    perf = framework.config.PERF
    with BenchmarkRun.from_config(
        constants.MODE_NETWORK_TEST,
        gateway,
        nodes,
        cleanup_requested=args.cleanup,
        cancel_event=cancel_event,
    ) as run:
        NetworkTestDriver(
            run,
            ResultsSink(framework.config.RUN["results_dir"]),
            duration=perf["network_duration"],
            image=perf["network_image"],
            port=perf["network_port"],
            prefix=perf["workload_prefix"],
        ).execute()
    return run


RUNNERS = {
    CMD_RUN: run_distributed,
    CMD_SATURATE: run_saturation,
    CMD_NETWORK: run_network,
}


def execute(args, cancel_event):
    """
    Select the nodes and run the requested benchmark

    Args:
        args (argparse.Namespace): Parsed arguments
        cancel_event (threading.Event): Cancels the run once set
    """
    kubeconfig = framework.config.resolve_kubeconfig()
    gateway = ClusterGateway(kubeconfig)
    minimum = REQUIRED_NODES if args.subcommand == CMD_NETWORK else 1
    nodes = get_node_set(gateway, framework.config.ENV_DATA["nodes"], minimum)
    if args.subcommand == CMD_NODES:
        for node in nodes:
            print(node)
        return
    log_namespace_state(gateway)
    run = RUNNERS[args.subcommand](gateway, nodes, args, cancel_event)
    print(run.report())


def main(argv=None):
    """
    Returns:
        int: Exit code of the process
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.subcommand == CMD_RUN and not args.command:
        parser.error("the command to run is missing")
    logging.basicConfig(format=constants.LOG_FORMAT, level=logging.INFO)
    try:
        process_arguments(args)
    except ConfigError as ex:
        log.error(f"Configuration error: {ex}")
        return constants.EXIT_FAILURE
    logging.getLogger().setLevel(framework.config.RUN["log_level"])

    cancel_event = threading.Event()
    previous_handlers = install_signal_handlers(cancel_event)
    try:
        execute(args, cancel_event)
    except RunCancelled as ex:
        log.error(f"{ex}")
        return constants.EXIT_CANCELLED
    except ConfigError as ex:
        log.error(f"Configuration error: {ex}")
        return constants.EXIT_FAILURE
    except SelectionError as ex:
        log.error(f"Node selection failed: {ex}")
        return constants.EXIT_FAILURE
    except (
        GatewayError,
        HarvestError,
        TimeoutExpiredError,
        UnexpectedBehaviour,
    ) as ex:
        if cancel_event.is_set():
            log.error(f"Run cancelled, interrupted operation failed: {ex}")
            return constants.EXIT_CANCELLED
        log.error(f"Benchmark failed: {ex}")
        return constants.EXIT_FAILURE
    except OSError as ex:
        log.error(f"Failed to write the results: {ex}")
        return constants.EXIT_FAILURE
    finally:
        restore_signal_handlers(previous_handlers)
    return 0


def entrypoint():
    sys.exit(main())
