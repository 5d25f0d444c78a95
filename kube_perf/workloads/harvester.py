"""
Log harvester: collects the output of completed workloads and optionally
deletes them with their companion claim.
"""
import logging

from kube_perf.k8s.exceptions import GatewayError

log = logging.getLogger(__name__)


def collect(run, workload_name, sink, delete_after=False):
    """
    Stream the full log of a workload into the sink, then delete the
    workload if requested. The log is always written before the deletion.

    Args:
        run (BenchmarkRun): The run
        workload_name (str): Name of the workload
        sink (ResultsSink): Where '<workload_name>.log' is written
        delete_after (bool): Delete the workload and its companion claim

    Returns:
        str: Path of the log artifact

    Raises:
        GatewayError: The log couldn't be streamed or the deletion failed
        OSError: The artifact couldn't be written

    """
    artifact = sink.write_log(
        workload_name, run.gateway.stream_log(run.namespace, workload_name)
    )
    if delete_after:
        run.delete_workload(workload_name)
        if workload_name in run.claims:
            run.delete_claim(workload_name)
    return artifact


def collect_all(run, workload_names, sink, delete_after=False):
    """
    Harvest every workload, a failing workload doesn't stop the harvesting of
    the remaining ones.

    Args:
        run (BenchmarkRun): The run
        workload_names (list): Names of the workloads, harvested in this order
        sink (ResultsSink): Where the logs are written
        delete_after (bool): Delete each workload once its log is written

    Returns:
        tuple: (dict name -> artifact path, dict name -> failure cause)

    """
    artifacts = {}
    failures = {}
    for name in workload_names:
        try:
            artifacts[name] = collect(run, name, sink, delete_after=delete_after)
        except (GatewayError, OSError) as ex:
            log.error(f"Failed to harvest {name}: {ex}")
            failures[name] = str(ex)
    if failures:
        log.warning(
            f"Harvested {len(artifacts)} of {len(workload_names)} workload(s), "
            f"failed: {sorted(failures)}"
        )
    return artifacts, failures
