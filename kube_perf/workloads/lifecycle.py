"""
Lifecycle waiter: blocks until workloads reach the phase the caller waits for.

Every wait re-fetches the full state of the namespace, observations are never
reused across two poll cycles.
"""
import logging

from kube_perf.k8s.resources.pod import observe_pod, observe_pods

log = logging.getLogger(__name__)


def is_terminal(observation):
    """
    Default terminal predicate: phase is neither Pending nor Running.
    Succeeded and Failed are both terminal, so is Unknown.
    """
    return observation.is_terminal


def observe(run, names):
    """
    Args:
        run (BenchmarkRun): The run
        names (list): Workload names

    Returns:
        dict: name -> WorkloadObservation
    """
    return observe_pods(run.list_workloads(), names)


def await_terminal(run, names, poll_interval=None, terminal_predicate=is_terminal):
    """
    Wait until every named workload satisfies the terminal predicate. A
    workload missing from the listing is terminal (phase Unknown) once it was
    listed by an earlier poll, until then it is still waited for.

    There is no upper bound on the wait unless the run has max_wait set; the
    wait ends early with RunCancelled once the run's cancel event is set.

    Args:
        run (BenchmarkRun): The run
        names (list): Names of the workloads to wait for
        poll_interval (int): Seconds between two polls, defaults to the run's
        terminal_predicate (function): Called with a WorkloadObservation

    Returns:
        dict: name -> WorkloadObservation of the last poll

    Raises:
        GatewayError: Listing the workloads failed
        RunCancelled: The run was cancelled
        TimeoutExpiredError: max_wait of the run elapsed

    """
    names = list(names)
    if not names:
        return {}
    sampler = run.poll(
        observe,
        func_args=[run, names],
        message=f"Waiting for {len(names)} workload(s) to complete...",
        sleep=poll_interval,
    )
    seen = set()

    def all_terminal(observed):
        for obs in observed.values():
            if obs.present:
                seen.add(obs.name)
            elif obs.name in seen:
                log.warning(f"Workload {obs.name} is missing from the namespace")
        return all(
            (obs.present or obs.name in seen) and terminal_predicate(obs)
            for obs in observed.values()
        )

    observations = sampler.wait_for(all_terminal)
    phases = {}
    for obs in observations.values():
        phases[obs.phase] = phases.get(obs.phase, 0) + 1
    log.info(f"All {len(names)} workload(s) completed: {phases}")
    return observations


def await_workload(run, name, predicate, message, poll_interval=None):
    """
    Wait for a single workload, fetched by name at every poll

    Args:
        run (BenchmarkRun): The run
        name (str): Name of the workload
        predicate (function): Called with a WorkloadObservation
        message (str): Progress message logged at every unsatisfied poll

    Returns:
        WorkloadObservation: The first observation accepted by the predicate

    """
    sampler = run.poll(
        lambda: observe_pod(run.gateway.get_workload(run.namespace, name)),
        message=message,
        sleep=poll_interval,
    )
    return sampler.wait_for(predicate)
