"""
Results sink: where harvested logs and measurements end up on disk
"""
import json
import logging
import os

from kube_perf.k8s import constants

log = logging.getLogger(__name__)


class ResultsSink(object):
    """
    Writes every artifact as a file of the results directory
    """

    def __init__(self, directory="."):
        """
        Args:
            directory (str): Directory of the artifacts, created if missing
        """
        self.directory = os.path.abspath(os.path.expanduser(directory))

    def path(self, filename):
        return os.path.join(self.directory, filename)

    def write_log(self, workload_name, chunks):
        """
        Write a log stream to '<workload_name>.log'

        Args:
            workload_name (str): Name of the workload the log belongs to
            chunks (iterable): bytes chunks of the log

        Returns:
            str: Path of the written file

        """
        os.makedirs(self.directory, exist_ok=True)
        log_path = self.path(f"{workload_name}{constants.LOG_FILE_SUFFIX}")
        size = 0
        with open(log_path, "wb") as log_file:
            for chunk in chunks:
                log_file.write(chunk)
                size += len(chunk)
        log.info(f"Logs of {workload_name} ({size} bytes) written to {log_path}")
        return log_path

    def write_json(self, filename, data):
        """
        Args:
            filename (str): Name of the file in the results directory
            data (dict or list): JSON serializable data

        Returns:
            str: Path of the written file
        """
        os.makedirs(self.directory, exist_ok=True)
        json_path = self.path(filename)
        with open(json_path, "w") as json_file:
            json.dump(data, json_file, indent=2)
        log.info(f"Results written to {json_path}")
        return json_path
