# -*- coding: utf-8 -*-
from setuptools import setup, find_packages

setup(
    name="kube-perf",
    version="0.1.0",
    description=(
        "Kubernetes benchmark orchestration: distributed commands, control "
        "plane saturation and node to node network tests"
    ),
    author="kube-perf developers",
    license="MIT",
    python_requires=">=3.8",
    install_requires=[
        "pyyaml>=4.2b1",
        "jinja2>=3.0.3",
        "tabulate>=0.9.0",
    ],
    extras_require={
        "test": [
            "pytest>=6.2.5",
        ],
    },
    entry_points={
        "console_scripts": [
            "kube-perf=kube_perf.framework.main:entrypoint",
        ],
    },
    zip_safe=False,
    include_package_data=True,
    package_data={
        "kube_perf": [
            "framework/conf/*.yaml",
            "templates/workloads/*.yaml",
            "templates/workloads/*.j2",
        ],
    },
    packages=find_packages(include=["kube_perf", "kube_perf.*"]),
)
