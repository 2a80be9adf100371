#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Module for the TopologySettings class
"""

from __future__ import annotations

from copy import deepcopy
from datetime import datetime as dt
from os import path

import boto3
import yaml
from compose_x_common.compose_x_common import keyisset, set_else_none

from ecs_topology.common.logging import LOG
from ecs_topology.exceptions import InvalidParameter


def parse_context_pairs(pairs: list) -> dict:
    """
    Parses the key=value context pairs given on the command line

    :param list[str] pairs:
    :return: the context values, as strings
    :raises InvalidParameter: if a pair has no = or no key
    """
    context = {}
    if not pairs:
        return context
    for pair in pairs:
        if not isinstance(pair, str) or "=" not in pair:
            raise InvalidParameter(f"Context value {pair!r} must be of the form key=value")
        key, value = pair.split("=", 1)
        if not key.strip():
            raise InvalidParameter(f"Context value {pair!r} has no key")
        context[key.strip()] = value.strip()
    return context


def load_context_file(file_path: str) -> dict:
    """
    Loads the context from a YAML or JSON file. The values can be at the top level, or under a
    top-level "context" key, as in cdk.json.

    :param str file_path:
    :return: the context values
    :raises InvalidParameter: if the file cannot be parsed or its content is not a mapping
    """
    if not path.exists(file_path):
        raise FileNotFoundError(f"Context file {file_path} not found")
    with open(file_path, "r") as context_fd:
        try:
            content = yaml.safe_load(context_fd.read())
        except yaml.YAMLError as error:
            raise InvalidParameter(f"Context file {file_path} is not valid YAML/JSON", error) from error
    if content is None:
        return {}
    if not isinstance(content, dict):
        raise InvalidParameter(
            f"Context file {file_path} must contain a mapping. Got {type(content)}"
        )
    if keyisset("context", content) and isinstance(content["context"], dict):
        return deepcopy(content["context"])
    return deepcopy(content)


class TopologySettings:
    """
    Class to handle the settings to use for ECS Topology.
    """

    name_arg = "Name"
    command_arg = "command"
    context_arg = "Context"
    context_file_arg = "ContextFile"
    output_dir_arg = "OutputDirectory"
    format_arg = "TemplateFormat"
    region_arg = "RegionName"
    profile_arg = "ProfileName"
    wait_arg = "Wait"
    yes_arg = "AutoApprove"

    render_arg = "render"
    deploy_arg = "up"
    plan_arg = "plan"
    version_arg = "version"

    default_format = "json"
    allowed_formats = ["json", "yaml"]
    default_output_dir = f"/tmp/{int(dt.utcnow().timestamp())}"

    active_commands = [
        {
            "name": deploy_arg,
            "help": "Derives the topology, writes the template and creates/updates the stack in CFN",
        },
        {
            "name": render_arg,
            "help": "Derives the topology and writes the template locally",
        },
        {
            "name": plan_arg,
            "help": "Creates a change-set to show the diff prior to an update",
        },
    ]
    neutral_commands = [{"name": version_arg, "help": "ECS Topology Version"}]
    all_commands = active_commands + neutral_commands

    def __init__(self, session=None, **kwargs):
        """
        Class to init the configuration
        """
        self.__args = deepcopy(kwargs)
        self.command = set_else_none(self.command_arg, kwargs, self.render_arg)
        self.name = set_else_none(self.name_arg, kwargs)
        self.aws_region = set_else_none(self.region_arg, kwargs)
        self.profile_name = set_else_none(self.profile_arg, kwargs)
        self.output_dir = set_else_none(
            self.output_dir_arg, kwargs, self.default_output_dir
        )
        self.format = set_else_none(self.format_arg, kwargs, self.default_format)
        if self.format not in self.allowed_formats:
            raise ValueError(
                f"Format {self.format} is not valid. Must be one of", self.allowed_formats
            )
        self.wait = keyisset(self.wait_arg, kwargs)
        self.auto_approve = keyisset(self.yes_arg, kwargs)
        self.context = self.set_context(kwargs)
        self._session = session

    def __repr__(self):
        return f"TopologySettings({self.command}, name={self.name}, context={self.context})"

    @property
    def disable_rollback(self) -> bool:
        return bool(set_else_none("DisableRollback", self.__args, alt_value=False))

    @property
    def deploy(self) -> bool:
        return self.command == self.deploy_arg

    @property
    def plan(self) -> bool:
        return self.command == self.plan_arg

    @property
    def session(self) -> boto3.session.Session:
        """
        boto3 session for the CloudFormation calls. Only created when first needed.
        """
        if self._session is None:
            self._session = boto3.session.Session(
                profile_name=self.profile_name, region_name=self.aws_region
            )
        return self._session

    def set_context(self, kwargs: dict) -> dict:
        """
        Merges the context file values with the command line ones, the latter taking precedence.

        :param dict kwargs:
        :return: the raw context
        """
        context = {}
        if keyisset(self.context_file_arg, kwargs):
            context.update(load_context_file(kwargs[self.context_file_arg]))
            LOG.debug(f"Context from {kwargs[self.context_file_arg]}: {context}")
        context.update(parse_context_pairs(set_else_none(self.context_arg, kwargs, [])))
        return context

    def set_default_name(self, app_name: str) -> None:
        if not self.name:
            self.name = f"{app_name}-stack"
            LOG.info(f"No stack name set. Using {self.name}")
