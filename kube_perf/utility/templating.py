"""
Manifest templates: the YAML files and Jinja2 templates the workload
manifests are built from, and the temporary YAML files handed to kubectl
"""
import logging

import yaml
from jinja2 import StrictUndefined, Template

logger = logging.getLogger(__name__)


def render_yaml_template(template_path, **kwargs):
    """
    Render a Jinja2 template of a YAML document

    Args:
        template_path (str): Path of the template

    Keyword Args:
        Variables of the template, a variable missing here fails the rendering

    Returns:
        dict: The rendered document

    """
    with open(template_path, "r") as template_file:
        template = Template(
            template_file.read(), undefined=StrictUndefined, trim_blocks=True
        )
    return yaml.safe_load(template.render(**kwargs))


def load_yaml(path):
    """
    Returns:
        dict: The single document of the YAML file
    """
    with open(path, "r") as yaml_file:
        return yaml.safe_load(yaml_file)


def dump_yaml(manifest, path):
    """
    Write a manifest to a YAML file, e.g. before `kubectl create -f`

    Args:
        manifest (dict): The manifest
        path (str): Path of the written file

    """
    with open(path, "w") as yaml_file:
        yaml.dump(manifest, yaml_file, default_flow_style=False)
    logger.debug(f"Manifest {manifest.get('kind')} written to {path}")
