#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
The topology graph: the derived resources, the references between them and the outputs.
Built once from the parameters, read-only thereafter. Only attached to a troposphere Template when rendered.
"""

from __future__ import annotations

import re
from collections import OrderedDict
from copy import deepcopy
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_topology.ecs.ecs_image import ImageSelection
    from ecs_topology.parameters import AppParameters

from troposphere import Template

from ecs_topology.common.logging import LOG
from ecs_topology.exceptions import CompositionError

SUB_VARIABLE_RE = re.compile(r"\$\{(?!!)([^}]+)\}")
PSEUDO_PARAMETERS_PREFIX = "AWS::"
TEMPLATE_VERSION = "2010-09-09"


def find_sub_references(sub_value, found: set) -> None:
    """
    Finds the resources referenced by the variables of a Fn::Sub, either "string" or ["string", {vars}]
    """
    if isinstance(sub_value, str):
        string, variables = sub_value, {}
    elif isinstance(sub_value, list) and sub_value:
        string = sub_value[0]
        variables = sub_value[1] if len(sub_value) > 1 else {}
        walk_references(variables, found)
    else:
        return
    for name in SUB_VARIABLE_RE.findall(string):
        base_name = name.split(".")[0]
        if base_name not in variables:
            found.add(base_name)


def walk_references(value, found: set) -> None:
    if isinstance(value, dict):
        for key, sub_value in value.items():
            if key == "Ref" and isinstance(sub_value, str):
                found.add(sub_value)
            elif key == "Fn::GetAtt" and isinstance(sub_value, list) and sub_value:
                found.add(sub_value[0])
            elif key == "Fn::GetAtt" and isinstance(sub_value, str):
                found.add(sub_value.split(".")[0])
            elif key == "Fn::Sub":
                find_sub_references(sub_value, found)
            else:
                walk_references(sub_value, found)
    elif isinstance(value, list):
        for item in value:
            walk_references(item, found)


def find_references(definition) -> set:
    """
    Finds the logical IDs referenced with Ref, Fn::GetAtt and Fn::Sub in a rendered definition.
    Pseudo parameters (AWS::Region etc.) are not resources and are left out.

    :param definition: rendered (to_dict()) resource, output or property
    :return: set of logical IDs
    :rtype: set
    """
    found = set()
    walk_references(definition, found)
    return {ref for ref in found if not ref.startswith(PSEUDO_PARAMETERS_PREFIX)}


def find_resource_dependencies(definition: dict) -> set:
    """
    :param dict definition: rendered resource
    :return: the logical IDs the resource references or explicitly depends on
    """
    dependencies = find_references(definition)
    depends_on = definition.get("DependsOn", [])
    if isinstance(depends_on, str):
        depends_on = [depends_on]
    dependencies.update(depends_on)
    return dependencies


class TopologyGraph:
    """
    Immutable graph of the topology resources.

    :ivar AppParameters parameters: the parameters the graph is derived from
    :ivar ImageSelection image_selection: the image decision the graph was built with
    """

    def __init__(
        self,
        parameters: AppParameters,
        resources: list,
        outputs: OrderedDict,
        image_selection: ImageSelection,
        names: dict = None,
    ):
        self._parameters = parameters
        self._image_selection = image_selection
        ordered = OrderedDict()
        for resource in resources:
            if resource.title in ordered:
                raise CompositionError(
                    f"Resource {resource.title} is defined more than once"
                )
            ordered[resource.title] = resource
        self._resources = MappingProxyType(
            OrderedDict((title, deepcopy(resource)) for title, resource in ordered.items())
        )
        self._outputs = MappingProxyType(
            OrderedDict((title, deepcopy(output)) for title, output in outputs.items())
        )
        self._names = MappingProxyType(OrderedDict(names if names else {}))
        try:
            self._definitions = MappingProxyType(
                OrderedDict(
                    (title, resource.to_dict())
                    for title, resource in self._resources.items()
                )
            )
            self._outputs_definitions = MappingProxyType(
                OrderedDict(
                    (title, output.to_dict()) for title, output in self._outputs.items()
                )
            )
        except (ValueError, TypeError, AttributeError) as error:
            raise CompositionError(f"Invalid resource definition - {error}") from error
        self._dependencies = MappingProxyType(
            OrderedDict(
                (title, frozenset(find_resource_dependencies(definition)))
                for title, definition in self._definitions.items()
            )
        )

    def __repr__(self):
        return f"TopologyGraph({self._parameters.app_name}, {len(self._resources)} resources)"

    def __eq__(self, other):
        if not isinstance(other, TopologyGraph):
            return NotImplemented
        return (
            self._parameters == other.parameters
            and list(self._resources.keys()) == list(other.resources.keys())
            and self.to_dict() == other.to_dict()
        )

    __hash__ = None

    @property
    def parameters(self) -> AppParameters:
        return self._parameters

    @property
    def image_selection(self) -> ImageSelection:
        return self._image_selection

    @property
    def resources(self) -> MappingProxyType:
        """
        Copies of the resources the graph was validated with. Changing them does not change the graph.
        """
        return MappingProxyType(
            OrderedDict((title, deepcopy(resource)) for title, resource in self._resources.items())
        )

    @property
    def outputs(self) -> MappingProxyType:
        return MappingProxyType(
            OrderedDict((title, deepcopy(output)) for title, output in self._outputs.items())
        )

    @property
    def names(self) -> MappingProxyType:
        return self._names

    @property
    def dependencies(self) -> MappingProxyType:
        """
        :return: for each resource, the logical IDs of the resources it references
        """
        return self._dependencies

    def definition(self, title: str) -> dict:
        """
        :param str title: logical ID of the resource
        :return: the rendered resource
        :raises CompositionError: if there is no such resource in the graph
        """
        if title not in self._definitions:
            raise CompositionError(f"Resource {title} is missing from the topology")
        return self._definitions[title]

    def definitions_of_type(self, resource_type: str) -> OrderedDict:
        return OrderedDict(
            (title, definition)
            for title, definition in self._definitions.items()
            if definition["Type"] == resource_type
        )

    def check_references(self) -> None:
        """
        :raises CompositionError: if a resource or an output references a resource not in the graph
        """
        for title, dependencies in self._dependencies.items():
            missing = sorted(dep for dep in dependencies if dep not in self._resources)
            if missing:
                raise CompositionError(
                    f"Resource {title} references resources not in the topology", missing
                )
        for title, definition in self._outputs_definitions.items():
            missing = sorted(
                dep for dep in find_references(definition) if dep not in self._resources
            )
            if missing:
                raise CompositionError(
                    f"Output {title} references resources not in the topology", missing
                )

    @property
    def ordered_titles(self) -> list:
        """
        Logical IDs sorted so that every resource comes after the ones it depends on.
        Ties keep the creation order.

        :raises CompositionError: if the references form a cycle
        """
        pending = OrderedDict(
            (title, set(dependencies) & set(self._resources.keys()))
            for title, dependencies in self._dependencies.items()
        )
        ordered = []
        while pending:
            ready = [title for title, deps in pending.items() if deps.issubset(ordered)]
            if not ready:
                raise CompositionError(
                    "The topology resources references form a cycle", list(pending.keys())
                )
            for title in ready:
                ordered.append(title)
                del pending[title]
        return ordered

    def to_template(self, description: str = None) -> Template:
        """
        Renders the graph into a new troposphere Template, from copies of the validated resources

        :param str description: description of the template
        :rtype: troposphere.Template
        """
        if description is None:
            description = f"ECS Topology for {self._parameters.app_name}"
        template = Template(Description=description)
        template.set_version(TEMPLATE_VERSION)
        for title in self._resources:
            template.add_resource(deepcopy(self._resources[title]))
        for output in self._outputs.values():
            template.add_output(deepcopy(output))
        LOG.debug(f"{self} - Rendered template with {len(template.resources)} resources")
        return template

    def to_dict(self) -> dict:
        return self.to_template().to_dict()

    def to_json(self) -> str:
        return self.to_template().to_json()

    def to_yaml(self) -> str:
        return self.to_template().to_yaml()
