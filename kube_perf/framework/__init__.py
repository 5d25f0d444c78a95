"""
Framework configuration. The module level `config` holds the settings of the
current invocation: the packaged defaults overlaid with the --conf files and
the command line options.
"""
import os
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, fields

import yaml

from kube_perf.framework.exceptions import (
    ClusterKubeconfigNotFoundError,
    InvalidConfigValue,
)
from kube_perf.k8s import constants, defaults

THIS_DIR = os.path.dirname(os.path.abspath(__file__))
DEFAULT_CONFIG_PATH = os.path.join(THIS_DIR, "conf/default_config.yaml")
POSITIVE_KEYS = ("saturation_replicas", "burst_factor", "network_duration")

logger = logging.getLogger(__name__)


@dataclass
class Config:
    ENV_DATA: dict = field(default_factory=dict)
    RUN: dict = field(default_factory=dict)
    PERF: dict = field(default_factory=dict)

    def __post_init__(self):
        self.reset()

    def reset(self):
        """
        Clear all configuration data and load defaults
        """
        for f in fields(self):
            setattr(self, f.name, f.default_factory())
        self.update(self.get_defaults())

    def get_defaults(self):
        """
        Return a fresh copy of the default configuration
        """
        with open(DEFAULT_CONFIG_PATH) as file_stream:
            return {
                k: (v if v is not None else {})
                for (k, v) in yaml.safe_load(file_stream).items()
            }

    def update(self, user_dict: dict):
        """
        Override configuration items with items in user_dict, without wiping
        out non-overridden items
        """
        field_names = [f.name for f in fields(self)]
        if user_dict is None:
            return
        for k, v in user_dict.items():
            if k not in field_names:
                raise ValueError(
                    f"{k} is not a valid config section. "
                    f"Valid sections: {field_names}"
                )
            if v is None:
                continue
            section = getattr(self, k)
            merge_dict(section, v)

    def to_dict(self):
        # We don't use dataclasses.asdict() here, because that function appears
        # to create copies of fields - meaning changes to the return value of
        # this method will not be reflected in the field themselves.
        field_names = [f.name for f in fields(self)]
        return {name: getattr(self, name) for name in field_names}

    def validate(self):
        """
        Check the values the benchmark drivers rely on before anything is
        sent to the cluster.

        Raises:
            InvalidConfigValue: In case of an unsupported value

        """
        volume_policy = self.PERF.get("volume_policy")
        if volume_policy not in constants.VOLUME_POLICIES:
            raise InvalidConfigValue(
                "PERF", "volume_policy", volume_policy, constants.VOLUME_POLICIES
            )
        strategy = self.PERF.get("saturation_strategy")
        if strategy not in constants.SATURATION_STRATEGIES:
            raise InvalidConfigValue(
                "PERF",
                "saturation_strategy",
                strategy,
                constants.SATURATION_STRATEGIES,
            )
        for section, key in (
            ("RUN", "poll_interval"),
            ("RUN", "gateway_retries"),
            ("PERF", "saturation_replicas"),
            ("PERF", "burst_factor"),
            ("PERF", "network_duration"),
        ):
            value = getattr(self, section).get(key)
            if not isinstance(value, (int, float)) or value < 0:
                raise InvalidConfigValue(section, key, value)
            if key in POSITIVE_KEYS and value == 0:
                raise InvalidConfigValue(section, key, value)
        if self.RUN["gateway_retries"] < 1:
            raise InvalidConfigValue("RUN", "gateway_retries", 0)
        max_wait = self.RUN.get("max_wait")
        if max_wait is not None and (
            not isinstance(max_wait, (int, float))
            or max_wait < self.RUN["poll_interval"]
        ):
            raise InvalidConfigValue("RUN", "max_wait", max_wait)

    def resolve_kubeconfig(self):
        """
        Find the kubeconfig to use, in order: ENV_DATA['kubeconfig'],
        $KUBECONFIG and ~/.kube/config

        Returns:
            str: Absolute path to an existing kubeconfig

        Raises:
            ClusterKubeconfigNotFoundError: In case the file doesn't exist

        """
        kubeconfig = (
            self.ENV_DATA.get("kubeconfig")
            or os.getenv("KUBECONFIG")
            or os.path.join(
                os.getenv("HOME") or os.getenv("USERPROFILE") or "~",
                defaults.KUBECONFIG_LOCATION,
            )
        )
        kubeconfig = os.path.abspath(os.path.expanduser(kubeconfig))
        if not os.path.isfile(kubeconfig):
            raise ClusterKubeconfigNotFoundError(kubeconfig)
        logger.debug(f"Using kubeconfig {kubeconfig}")
        self.ENV_DATA["kubeconfig"] = kubeconfig
        return kubeconfig


def merge_dict(orig: dict, new: dict) -> dict:
    """
    Update a dict recursively, with values from 'new' being merged into 'orig'.

    Args:
        orig (dict): The object that will receive the update
        new  (dict): The object which is the source of the update

    Example::

            orig = {
                'dict': {'one': 1, 'two': 2},
                'list': [1, 2],
                'string': 's',
            }
            new = {
                'dict': {'one': 'one', 'three': 3},
                'list': [0],
                'string': 'x',
            }
            merge_dict(orig, new) ->
            {
                'dict': {'one': 'one', 'two': 2, 'three': 3}
                'list': [0],
                'string', 'x',
            }

    """
    for k, v in new.items():
        if isinstance(orig, Mapping):
            if isinstance(v, Mapping):
                r = merge_dict(orig.get(k, dict()), v)
                orig[k] = r
            else:
                orig[k] = v
        else:
            orig = {k: v}
    return orig


config = Config()
