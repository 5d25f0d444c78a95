class CommandFailed(Exception):
    pass


class TimeoutExpiredError(Exception):
    message = "Timed Out"

    def __init__(self, value, custom_message=None):
        self.value = value
        self.custom_message = custom_message

    def __str__(self):
        if self.custom_message is None:
            self.message = f"{self.__class__.message}: {self.value}"
        else:
            self.message = self.custom_message
        return self.message


class RunCancelled(Exception):
    def __str__(self):
        return "Benchmark run was cancelled"


class GatewayError(Exception):
    """
    Any failed call against the cluster: create, get, list, delete or log
    streaming.
    """

    def __init__(self, operation, cause=None):
        self.operation = operation
        self.cause = cause

    def __str__(self):
        if self.cause is None:
            return f"Cluster operation '{self.operation}' failed"
        return f"Cluster operation '{self.operation}' failed: {self.cause}"


class ResourceNotFoundError(GatewayError):
    pass


class SelectionError(Exception):
    pass


class EmptySelection(SelectionError):
    def __init__(self, allow_list=""):
        self.allow_list = allow_list

    def __str__(self):
        if self.allow_list:
            return f"No cluster node matches the allow-list '{self.allow_list}'"
        return "The cluster has no nodes to run the benchmark on"


class InsufficientNodes(SelectionError):
    def __init__(self, required, got):
        self.required = required
        self.got = got

    def __str__(self):
        return (
            f"The benchmark requires at least {self.required} nodes "
            f"but only {self.got} were selected"
        )


class HarvestError(Exception):
    """
    Raised once harvesting finished when the log of one or more workloads
    could not be collected.
    """

    def __init__(self, failures):
        self.failures = failures

    def __str__(self):
        summary = ", ".join(
            f"{name} ({cause})" for name, cause in sorted(self.failures.items())
        )
        return f"Failed to harvest {len(self.failures)} workload log(s): {summary}"


class UnexpectedBehaviour(Exception):
    pass
