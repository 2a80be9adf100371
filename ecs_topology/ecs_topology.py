#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Main module to derive the full topology: VPC, ECR repository, logging, IAM, task definition, security groups,
load balancer and ECS service, from the application parameters.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Union

from ecs_topology.common.graph import TopologyGraph
from ecs_topology.common.logging import LOG
from ecs_topology.common.outputs import define_outputs
from ecs_topology.ecr import define_repository
from ecs_topology.ecs.ecs_cluster import define_cluster
from ecs_topology.ecs.ecs_image import select_image
from ecs_topology.ecs.ecs_logging import define_log_group
from ecs_topology.ecs.ecs_networking import define_security_boundaries
from ecs_topology.ecs.ecs_service import define_service
from ecs_topology.ecs.ecs_task import define_task_definition
from ecs_topology.elbv2.elbv2_routing import define_routing
from ecs_topology.iam import define_execution_role
from ecs_topology.parameters import AppParameters, resolve_parameters
from ecs_topology.topology_checks import validate_topology
from ecs_topology.vpc.vpc_template import Network


def define_names(parameters: AppParameters) -> OrderedDict:
    """
    :return: the names of the named resources, all derived from the application name
    """
    app_name = parameters.app_name
    return OrderedDict(
        (
            ("cluster", f"{app_name}-cluster"),
            ("repository", f"{app_name}-repo"),
            ("service", f"{app_name}-service"),
            ("load_balancer", f"{app_name}-alb"),
            ("log_group", f"/ecs/{app_name}"),
        )
    )


def generate_topology(parameters: Union[AppParameters, dict, None] = None) -> TopologyGraph:
    """
    Derives the topology graph from the parameters. Deterministic: equal parameters give equal graphs.

    :param parameters: the resolved parameters, or the raw context values to resolve
    :return: the validated graph
    :rtype: TopologyGraph
    :raises InvalidParameter: if the raw parameters are not valid
    :raises ConfigurationError: if the parameters cannot be combined
    :raises CompositionError: if the assembled graph is not consistent
    """
    if not isinstance(parameters, AppParameters):
        parameters = resolve_parameters(parameters)
    names = define_names(parameters)
    LOG.info(
        f"{parameters.app_name} - Deriving topology with {', '.join(names.values())}"
    )
    network = Network(parameters.app_name)
    repository = define_repository(parameters.app_name)
    log_group = define_log_group(parameters.app_name)
    execution_role = define_execution_role()
    image_selection = select_image(
        parameters.bootstrap_mode, repository, parameters.container_port
    )
    task_definition = define_task_definition(
        parameters, image_selection, execution_role, log_group
    )
    boundaries = define_security_boundaries(network.vpc, parameters.container_port)
    routing = define_routing(
        parameters.app_name,
        network.vpc,
        network.public_subnets,
        boundaries.public,
        image_selection,
        parameters.container_port,
        internet_route=network.public_route,
    )
    cluster = define_cluster(parameters.app_name)
    service = define_service(
        parameters,
        cluster,
        task_definition,
        network.private_subnets,
        boundaries.service,
        routing.target_group,
        routing.listener,
    )
    resources = (
        network.resources
        + [cluster, repository, log_group, execution_role, task_definition]
        + list(boundaries)
        + routing.resources
        + [service]
    )
    graph = TopologyGraph(
        parameters,
        resources,
        define_outputs(routing.load_balancer, repository, cluster, service),
        image_selection,
        names,
    )
    validate_topology(graph)
    LOG.info(f"{graph} - Derived and validated")
    return graph
