# -*- coding: utf8 -*-
import json
import logging
import threading
from unittest import mock

import jinja2
import pytest

from kube_perf.k8s.exceptions import CommandFailed
from kube_perf.utility import templating, utils
from kube_perf.utility.results import ResultsSink
from kube_perf.utility.retry import retry


def test_run_cmd():
    assert utils.run_cmd("echo 'hello world'") == "hello world\n"


def test_run_cmd_list():
    assert utils.run_cmd(["echo", "a b"]) == "a b\n"


def test_run_cmd_failure():
    with pytest.raises(CommandFailed):
        utils.run_cmd("false")


def test_run_cmd_ignore_error():
    assert utils.run_cmd("false", ignore_error=True) == ""


def test_run_cmd_missing_binary():
    with pytest.raises(CommandFailed):
        utils.run_cmd("kube-perf-no-such-binary")


def test_stream_cmd():
    chunks = list(utils.stream_cmd(["printf", "abcdef"], chunk_size=4))
    assert chunks == [b"abcd", b"ef"]


def test_stream_cmd_failure():
    with pytest.raises(CommandFailed):
        list(utils.stream_cmd("false"))


def test_retry_gives_up(caplog):
    caplog.set_level(logging.WARNING)
    func = mock.Mock(side_effect=CommandFailed("nope"))
    func.__name__ = "func"
    with pytest.raises(CommandFailed):
        retry(CommandFailed, tries=3, delay=0)(func)()
    assert func.call_count == 3
    assert len(caplog.records) == 2


def test_retry_recovers():
    func = mock.Mock(side_effect=[CommandFailed("nope"), "ok"])
    func.__name__ = "func"
    assert retry(CommandFailed, tries=3, delay=0)(func)() == "ok"
    assert func.call_count == 2


def test_retry_single_try():
    func = mock.Mock(side_effect=CommandFailed("nope"))
    func.__name__ = "func"
    with pytest.raises(CommandFailed):
        retry(CommandFailed, tries=1, delay=0)(func)()
    assert func.call_count == 1


def test_retry_stops_once_cancelled():
    cancel_event = threading.Event()
    cancel_event.set()
    func = mock.Mock(side_effect=CommandFailed("nope"))
    func.__name__ = "func"
    with pytest.raises(CommandFailed):
        retry(CommandFailed, tries=3, delay=60, cancel_event=cancel_event)(func)()
    assert func.call_count == 1


def test_dump_and_load_yaml(tmp_path):
    yaml_file = str(tmp_path / "data.yaml")
    templating.dump_yaml({"kind": "Pod", "items": [1, 2]}, yaml_file)
    assert templating.load_yaml(yaml_file) == {"kind": "Pod", "items": [1, 2]}


def test_jinja2_template(tmp_path):
    template = tmp_path / "template.yaml.j2"
    template.write_text(
        "name: {{ name }}\n"
        "args:\n"
        "{% for a in args %}  - {{ a | tojson }}\n{% endfor %}"
    )
    data = templating.render_yaml_template(
        str(template), name="test", args=["-c", "a: b"]
    )
    assert data == {"name": "test", "args": ["-c", "a: b"]}


def test_jinja2_template_missing_variable(tmp_path):
    template = tmp_path / "template.yaml.j2"
    template.write_text("name: {{ name }}\nimage: {{ image }}\n")
    with pytest.raises(jinja2.UndefinedError):
        templating.render_yaml_template(str(template), name="test")


class TestResultsSink(object):
    def test_write_log(self, tmp_path):
        sink = ResultsSink(str(tmp_path / "results"))
        path = sink.write_log("workload-1", iter([b"line 1\n", b"line 2\n"]))
        assert path == str(tmp_path / "results" / "workload-1.log")
        assert (tmp_path / "results" / "workload-1.log").read_bytes() == (
            b"line 1\nline 2\n"
        )

    def test_write_empty_log(self, tmp_path):
        path = ResultsSink(str(tmp_path)).write_log("empty", iter([]))
        assert (tmp_path / "empty.log").read_bytes() == b""
        assert path.endswith("empty.log")

    def test_write_json(self, tmp_path):
        path = ResultsSink(str(tmp_path)).write_json("times.json", [1.0, 2.5])
        with open(path) as fd:
            assert json.load(fd) == [1.0, 2.5]
