#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

import json
from os import path

from pytest import raises

from ecs_topology.common.files import TemplateFile
from ecs_topology.ecs_topology import generate_topology


def test_write_json(tmp_path):
    graph = generate_topology()
    template_file = TemplateFile("helloecs-stack", graph.to_template())
    output_dir = tmp_path / "outputs"
    file_path = template_file.write(str(output_dir))
    assert file_path == path.abspath(str(output_dir / "helloecs-stack.json"))
    assert template_file.mime == "application/json"
    with open(file_path) as template_fd:
        content = json.loads(template_fd.read())
    assert content == json.loads(graph.to_json())


def test_write_yaml(tmp_path):
    graph = generate_topology()
    template_file = TemplateFile("helloecs-stack", graph.to_template(), "yaml")
    file_path = template_file.write(str(tmp_path))
    assert file_path.endswith("helloecs-stack.yaml")
    with open(file_path) as template_fd:
        content = template_fd.read()
    assert content == template_file.body
    assert "AWSTemplateFormatVersion" in content


def test_invalid_inputs():
    with raises(TypeError):
        TemplateFile("stack", {"Resources": {}})
    with raises(ValueError):
        TemplateFile("stack", generate_topology().to_template(), "toml")
