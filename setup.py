#!/usr/bin/env python
#  -*- coding: utf-8 -*-
# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2021 John Mille<john@compose-x.io>

"""The setup script for ECS Topology"""

import os

from setuptools import find_packages, setup

DIR_HERE = os.path.abspath(os.path.dirname(__file__))

try:
    with open(f"{DIR_HERE}/README.rst", encoding="utf-8") as readme_file:
        readme = readme_file.read()
except FileNotFoundError:
    readme = "ECS Topology"

requirements = []
with open(f"{DIR_HERE}/requirements.txt", "r") as req_fd:
    for line in req_fd:
        if line.strip():
            requirements.append(line.strip())

test_requirements = []
try:
    with open(f"{DIR_HERE}/requirements_dev.txt", "r") as req_fd:
        for line in req_fd:
            if line.strip():
                test_requirements.append(line.strip())
except FileNotFoundError:
    print("Failed to load dev requirements. Skipping")

setup(
    author="John Preston",
    author_email="john@compose-x.io",
    python_requires=">=3.8",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: System Administrators",
        "Intended Audience :: Information Technology",
        "License :: OSI Approved :: Mozilla Public License 2.0 (MPL 2.0)",
        "Natural Language :: English",
        "Programming Language :: Python :: 3",
    ],
    description="Derives a complete AWS ECS Fargate service behind a public ALB from a handful of parameters",
    entry_points={
        "console_scripts": [
            "ecs-topology=ecs_topology.cli:main",
        ]
    },
    install_requires=requirements,
    extras_require={"dev": test_requirements},
    license="MPL-2.0",
    long_description=readme,
    long_description_content_type="text/x-rst",
    include_package_data=True,
    package_data={"ecs_topology": ["specs/*.json"]},
    keywords="ecs_topology aws cloudformation iac ecs fargate alb",
    name="ecs_topology",
    packages=find_packages(include=["ecs_topology", "ecs_topology.*"]),
    url="https://github.com/compose-x/ecs_topology",
    version="0.1.0",
    zip_safe=False,
)
