import logging
import shlex
import subprocess
import time

from kube_perf.k8s.exceptions import (
    CommandFailed,
    RunCancelled,
    TimeoutExpiredError,
)


log = logging.getLogger(__name__)

STREAM_CHUNK_SIZE = 64 * 1024


def _split_cmd(cmd):
    if isinstance(cmd, str):
        return shlex.split(cmd)
    return list(cmd)


def _cmd_string(cmd):
    if isinstance(cmd, str):
        return cmd
    return " ".join(shlex.quote(part) for part in cmd)


def exec_cmd(cmd, timeout=600, ignore_error=False, silent=False, **kwargs):
    """
    Run an arbitrary command locally

    Args:
        cmd (str or list): command to run, a string is split the way a shell
            would do it
        timeout (int): Timeout for the command, defaults to 600 seconds.
        ignore_error (bool): True if ignore non zero return code and do not
            raise the exception.
        silent (bool): If True will silent errors from the server, default false

    Raises:
        CommandFailed: In case the command execution fails

    Returns:
        (CompletedProcess) A CompletedProcess object of the command that was executed
        CompletedProcess attributes:
        args: The list or str args passed to run().
        returncode (str): The exit code of the process, negative for signals.
        stdout     (str): The standard output (None if not captured).
        stderr     (str): The standard error (None if not captured).

    """
    log.info(f"Executing command: {_cmd_string(cmd)}")
    try:
        completed_process = subprocess.run(
            _split_cmd(cmd),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            stdin=subprocess.PIPE,
            timeout=timeout,
            **kwargs,
        )
    except (OSError, subprocess.TimeoutExpired) as ex:
        raise CommandFailed(f"Error during execution of command: {cmd}.\n{ex}")
    stdout = completed_process.stdout.decode()
    if stdout:
        log.debug(f"Command stdout: {stdout}")
    else:
        log.debug("Command stdout is empty")

    stderr = completed_process.stderr.decode()
    if stderr:
        if not silent:
            log.warning(f"Command stderr: {stderr}")
    else:
        log.debug("Command stderr is empty")
    log.debug(f"Command return code: {completed_process.returncode}")
    if completed_process.returncode and not ignore_error:
        raise CommandFailed(
            f"Error during execution of command: {_cmd_string(cmd)}."
            f"\nError is {stderr.strip()}"
        )
    return completed_process


def run_cmd(cmd, timeout=600, ignore_error=False, silent=False, **kwargs):
    """
    Run an arbitrary command locally

    Args:
        cmd (str or list): command to run
        timeout (int): Timeout for the command, defaults to 600 seconds.
        ignore_error (bool): True if ignore non zero return code and do not
            raise the exception.
        silent (bool): If True will silent errors from the server, default false

    Raises:
        CommandFailed: In case the command execution fails

    Returns:
        (str) Decoded stdout of command
    """
    completed_process = exec_cmd(
        cmd, timeout=timeout, ignore_error=ignore_error, silent=silent, **kwargs
    )
    return completed_process.stdout.decode()


def stream_cmd(cmd, chunk_size=STREAM_CHUNK_SIZE):
    """
    Run a command and yield its standard output while it is produced, so the
    output never has to fit in memory.

    Args:
        cmd (str or list): command to run
        chunk_size (int): Maximal size of a single yielded chunk

    Yields:
        bytes: Chunks of the standard output

    Raises:
        CommandFailed: In case the command can't be started or exits non zero

    """
    log.info(f"Streaming output of command: {_cmd_string(cmd)}")
    try:
        proc = subprocess.Popen(
            _split_cmd(cmd),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            stdin=subprocess.DEVNULL,
        )
    except OSError as ex:
        raise CommandFailed(f"Error during execution of command: {cmd}.\n{ex}")
    with proc:
        while True:
            chunk = proc.stdout.read(chunk_size)
            if not chunk:
                break
            yield chunk
        stderr = proc.stderr.read().decode()
        returncode = proc.wait()
    if returncode:
        raise CommandFailed(
            f"Error during execution of command: {_cmd_string(cmd)}."
            f"\nError is {stderr.strip()}"
        )


class PollSampler(object):
    """
    Samples the function output at a fixed interval.

    This is a generator object that at first yields the output of function
    `func`. After the yield, it sleeps `sleep` seconds while watching the
    cancel event. Exceptions raised by `func` are not swallowed, they end the
    iteration.

    Args:
        sleep (int): Sleep interval in seconds
        func (function): The function to sample
        func_args (list): Arguments for the function
        func_kwargs (dict): Keyword arguments for the function
        timeout (int): Timeout in seconds, None to sample until the consumer
            stops the iteration
        cancel_event (threading.Event): Event which, once set, makes the next
            sleep or sample raise RunCancelled
        message (str): Progress message logged once per unsatisfied sample
    """

    def __init__(
        self,
        sleep,
        func,
        func_args=None,
        func_kwargs=None,
        timeout=None,
        cancel_event=None,
        message=None,
    ):
        self.sleep = sleep
        self.timeout = timeout
        # check that given timeout and sleep values makes sense
        if self.timeout is not None and self.timeout < self.sleep:
            raise ValueError("timeout should be larger than sleep time")

        self.func = func
        self.func_args = func_args or []
        self.func_kwargs = func_kwargs or {}
        self.cancel_event = cancel_event
        self.message = message

        # Timestamps of the first and most recent samples
        self.start_time = None
        self.last_sample_time = None
        self.iterations = 0

    def _timeout_error(self):
        return TimeoutExpiredError(
            self.timeout,
            f"Timed out after {self.timeout}s running {self.func.__name__}",
        )

    def _check_cancelled(self):
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise RunCancelled()

    def _timed_out(self, now):
        return self.timeout is not None and self.timeout <= (now - self.start_time)

    def _wait(self):
        log.debug("Going to sleep for %s seconds before next iteration", self.sleep)
        if self.cancel_event is None:
            time.sleep(self.sleep)
        elif self.cancel_event.wait(self.sleep):
            raise RunCancelled()

    def __iter__(self):
        if self.start_time is None:
            self.start_time = time.time()
        while True:
            self._check_cancelled()
            self.last_sample_time = time.time()
            if self._timed_out(self.last_sample_time):
                raise self._timeout_error()
            self.iterations += 1
            yield self.func(*self.func_args, **self.func_kwargs)
            if self.message:
                log.info(self.message)
            if self._timed_out(time.time()):
                raise self._timeout_error()
            self._wait()

    def wait_for(self, predicate):
        """
        Sample until the predicate accepts a sample.

        Args:
            predicate (function): Called with every sample, returns bool

        Returns:
            The first sample accepted by the predicate

        """
        for sample in self:
            if predicate(sample):
                return sample

    def wait_for_func_value(self, value):
        """
        Implements common usecase of PollSampler: waiting until func (given
        function) returns a given value.

        Args:
            value: Expected return value of func we are waiting for.
        """
        try:
            return self.wait_for(lambda sample: sample == value)
        except TimeoutExpiredError:
            log.error(
                "function %s failed to return expected value %s "
                "after multiple retries during %s second timeout",
                self.func.__name__,
                value,
                self.timeout,
            )
            raise
