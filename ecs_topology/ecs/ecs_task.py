#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Fargate Task Definition with the application container
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_topology.ecs.ecs_image import ImageSelection
    from ecs_topology.parameters import AppParameters

from troposphere import GetAtt
from troposphere.ecs import ContainerDefinition, Environment, PortMapping, TaskDefinition
from troposphere.iam import Role
from troposphere.logs import LogGroup

from ecs_topology.ecs.ecs_logging import define_log_configuration
from ecs_topology.ecs.ecs_params import DEFAULT_ENVIRONMENT, TASK_T


def define_container(
    parameters: AppParameters, image_selection: ImageSelection, log_group: LogGroup
) -> ContainerDefinition:
    """
    The single, essential, container of the task. Named after the application.

    :param AppParameters parameters:
    :param ImageSelection image_selection: gives the image and the command override
    :param troposphere.logs.LogGroup log_group: the log group the container logs into
    :rtype: troposphere.ecs.ContainerDefinition
    """
    props = {}
    if image_selection.command is not None:
        props["Command"] = image_selection.command
    return ContainerDefinition(
        Name=parameters.app_name,
        Image=image_selection.image,
        Essential=True,
        PortMappings=[
            PortMapping(ContainerPort=parameters.container_port, Protocol="tcp")
        ],
        Environment=[
            Environment(Name=name, Value=value)
            for name, value in sorted(DEFAULT_ENVIRONMENT.items())
        ],
        LogConfiguration=define_log_configuration(log_group),
        **props,
    )


def define_task_definition(
    parameters: AppParameters,
    image_selection: ImageSelection,
    execution_role: Role,
    log_group: LogGroup,
) -> TaskDefinition:
    """
    Creates the Fargate task definition, sized with the parameters CPU and memory

    :rtype: troposphere.ecs.TaskDefinition
    """
    return TaskDefinition(
        TASK_T,
        Family=parameters.app_name,
        Cpu=str(parameters.cpu),
        Memory=str(parameters.memory_mib),
        NetworkMode="awsvpc",
        RequiresCompatibilities=["FARGATE"],
        ExecutionRoleArn=GetAtt(execution_role, "Arn"),
        ContainerDefinitions=[
            define_container(parameters, image_selection, log_group)
        ],
    )
