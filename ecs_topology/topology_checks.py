#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Cross-resources consistency checks of the assembled topology.

These only make sense on the whole graph, as each of them compares properties of several resources.
All raise CompositionError.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_topology.common.graph import TopologyGraph

from troposphere import encode_to_dict

from ecs_topology.common.logging import LOG
from ecs_topology.ecs.ecs_image import PublicBootstrapImage
from ecs_topology.ecs.ecs_params import ALB_SG_T, SERVICE_SG_T, SERVICE_T, TASK_T
from ecs_topology.elbv2.elbv2_params import (
    LB_T,
    LISTENER_PORT,
    LISTENER_T,
    TARGET_GROUP_T,
)
from ecs_topology.exceptions import CompositionError
from ecs_topology.vpc.vpc_params import DEFAULT_ROUTE_CIDR, PRIVATE_TIER, PUBLIC_TIER

SUBNET_ASSOCIATION_TYPE = "AWS::EC2::SubnetRouteTableAssociation"
ROUTE_TYPE = "AWS::EC2::Route"
ADDRESS_SOURCES = ["CidrIp", "CidrIpv6", "SourcePrefixListId"]


def get_property(graph: TopologyGraph, title: str, name: str):
    """
    :return: the property of the rendered resource
    :raises CompositionError: if the resource or the property is missing
    """
    value = graph.definition(title).get("Properties", {}).get(name)
    if value is None:
        raise CompositionError(f"{title} has no {name}")
    return value


def get_port(owner: str, definition: dict, name: str) -> int:
    if not isinstance(definition, dict) or name not in definition:
        raise CompositionError(f"{owner} has no {name}")
    return definition[name]


def get_main_container(graph: TopologyGraph) -> dict:
    containers = get_property(graph, TASK_T, "ContainerDefinitions")
    if (
        not isinstance(containers, list)
        or len(containers) != 1
        or not isinstance(containers[0], dict)
    ):
        raise CompositionError(f"{TASK_T} must have exactly one container. Got {containers}")
    return containers[0]


def get_service_binding(graph: TopologyGraph) -> dict:
    """
    :return: the only load balancer binding of the service
    :raises CompositionError: if the service is not bound to exactly one target group
    """
    service_lbs = get_property(graph, SERVICE_T, "LoadBalancers")
    if not isinstance(service_lbs, list) or len(service_lbs) != 1:
        raise CompositionError(f"{SERVICE_T} must be registered in {TARGET_GROUP_T} only")
    return service_lbs[0]


def get_ingress_rules(graph: TopologyGraph, title: str) -> list:
    rules = graph.definition(title).get("Properties", {}).get("SecurityGroupIngress", [])
    if not rules:
        raise CompositionError(f"{title} has no ingress rule")
    return rules


def check_container_port(graph: TopologyGraph) -> None:
    """
    The container port is the same on the container, the service ingress rule, the target group and the
    service load balancer binding. The listener and public ingress stay on the listener port.
    """
    expected = graph.parameters.container_port
    container = get_main_container(graph)
    mappings_location = f"{TASK_T}.{container.get('Name')}.PortMappings"
    mappings = container.get("PortMappings")
    if not mappings:
        raise CompositionError(f"{mappings_location} - no port mapping")
    ports = [
        (mappings_location, get_port(mappings_location, mappings[0], "ContainerPort")),
        (f"{TARGET_GROUP_T}.Port", get_property(graph, TARGET_GROUP_T, "Port")),
        (
            f"{SERVICE_T}.LoadBalancers",
            get_port(SERVICE_T, get_service_binding(graph), "ContainerPort"),
        ),
    ]
    for rule in get_ingress_rules(graph, SERVICE_SG_T):
        ports.append((f"{SERVICE_SG_T}.FromPort", get_port(SERVICE_SG_T, rule, "FromPort")))
        ports.append((f"{SERVICE_SG_T}.ToPort", get_port(SERVICE_SG_T, rule, "ToPort")))
    for location, port in ports:
        if port != expected:
            raise CompositionError(
                f"{location} - port {port} is not the containerPort {expected}"
            )
    listener_port = get_property(graph, LISTENER_T, "Port")
    if listener_port != LISTENER_PORT:
        raise CompositionError(
            f"{LISTENER_T} - port {listener_port} is not {LISTENER_PORT}"
        )
    for rule in get_ingress_rules(graph, ALB_SG_T):
        if rule.get("FromPort") != LISTENER_PORT or rule.get("ToPort") != LISTENER_PORT:
            raise CompositionError(
                f"{ALB_SG_T} - ingress must be on the listener port {LISTENER_PORT}. Got {rule}"
            )


def check_target_binding(graph: TopologyGraph) -> None:
    """
    The listener forwards to the target group, the service registers its only container into it.
    """
    target_ref = {"Ref": TARGET_GROUP_T}
    actions = get_property(graph, LISTENER_T, "DefaultActions")
    if not any(
        isinstance(action, dict) and action.get("TargetGroupArn") == target_ref
        for action in actions
    ):
        raise CompositionError(f"{LISTENER_T} does not forward to {TARGET_GROUP_T}")
    binding = get_service_binding(graph)
    container_name = get_main_container(graph).get("Name")
    if binding.get("TargetGroupArn") != target_ref:
        raise CompositionError(f"{SERVICE_T} must be registered in {TARGET_GROUP_T} only")
    if binding.get("ContainerName") != container_name:
        raise CompositionError(
            f"{SERVICE_T} registers container {binding.get('ContainerName')}, task has {container_name}"
        )


def check_service_boundary_source(graph: TopologyGraph) -> None:
    """
    The service security group admits traffic from the load balancer security group, never from addresses.
    """
    expected_source = {"Fn::GetAtt": [ALB_SG_T, "GroupId"]}
    for rule in get_ingress_rules(graph, SERVICE_SG_T):
        address_sources = [key for key in ADDRESS_SOURCES if key in rule]
        if address_sources:
            raise CompositionError(
                f"{SERVICE_SG_T} - ingress must not use address ranges. Got {address_sources}"
            )
        if rule.get("SourceSecurityGroupId") != expected_source:
            raise CompositionError(
                f"{SERVICE_SG_T} - ingress source must be {ALB_SG_T}. Got {rule.get('SourceSecurityGroupId')}"
            )


def check_image_selection(graph: TopologyGraph) -> None:
    """
    The image, the command override and the health check path all come from the one image selection,
    which matches the bootstrap mode parameter.
    """
    selection = graph.image_selection
    if selection.is_bootstrap != graph.parameters.bootstrap_mode:
        raise CompositionError(
            f"Image selection {selection!r} does not match bootstrapMode={graph.parameters.bootstrap_mode}"
        )
    if (
        isinstance(selection.image_ref, PublicBootstrapImage)
        and selection.image_ref.container_port != graph.parameters.container_port
    ):
        raise CompositionError(
            f"Bootstrap image listens on {selection.image_ref.container_port},"
            f" not the containerPort {graph.parameters.container_port}"
        )
    container = get_main_container(graph)
    if container.get("Image") != encode_to_dict(selection.image):
        raise CompositionError(
            f"{TASK_T} - image {container.get('Image')} is not the selected image {selection.image}"
        )
    if selection.command is None and "Command" in container:
        raise CompositionError(f"{TASK_T} - {selection!r} has no command override")
    if selection.command is not None and container.get("Command") != selection.command:
        raise CompositionError(
            f"{TASK_T} - command {container.get('Command')} is not {selection.command}"
        )
    health_path = graph.definition(TARGET_GROUP_T).get("Properties", {}).get("HealthCheckPath")
    if health_path != selection.health_check_path:
        raise CompositionError(
            f"{TARGET_GROUP_T} - health check path {health_path} is not {selection.health_check_path}"
        )


def get_subnet_tier(graph: TopologyGraph, subnet_title: str):
    """
    Finds the tier of a subnet from its default route: via a NAT gateway for private with egress,
    via the internet gateway for public.

    :return: the tier name, None if the subnet has no default route
    """
    route_tables = [
        definition.get("Properties", {}).get("RouteTableId")
        for definition in graph.definitions_of_type(SUBNET_ASSOCIATION_TYPE).values()
        if definition.get("Properties", {}).get("SubnetId") == {"Ref": subnet_title}
    ]
    for route in graph.definitions_of_type(ROUTE_TYPE).values():
        props = route.get("Properties", {})
        if (
            props.get("RouteTableId") not in route_tables
            or props.get("DestinationCidrBlock") != DEFAULT_ROUTE_CIDR
        ):
            continue
        if "NatGatewayId" in props:
            return PRIVATE_TIER
        if "GatewayId" in props:
            return PUBLIC_TIER
    return None


def check_subnets_tiers(graph: TopologyGraph) -> None:
    """
    The service only runs in private subnets with egress, without public IP. The load balancer is in the public ones.
    """
    network_config = get_property(graph, SERVICE_T, "NetworkConfiguration").get(
        "AwsvpcConfiguration", {}
    )
    if network_config.get("AssignPublicIp") != "DISABLED":
        raise CompositionError(f"{SERVICE_T} must not have a public IP")
    for title, subnets, expected_tier in (
        (SERVICE_T, network_config.get("Subnets"), PRIVATE_TIER),
        (LB_T, graph.definition(LB_T).get("Properties", {}).get("Subnets"), PUBLIC_TIER),
    ):
        if not subnets:
            raise CompositionError(f"{title} has no subnets")
        for subnet in subnets:
            if not isinstance(subnet, dict) or "Ref" not in subnet:
                raise CompositionError(f"{title} - subnet {subnet} is not in the topology")
            tier = get_subnet_tier(graph, subnet["Ref"])
            if tier != expected_tier:
                raise CompositionError(
                    f"{title} - subnet {subnet['Ref']} is {tier}. Expected {expected_tier}"
                )


def validate_topology(graph: TopologyGraph) -> None:
    """
    Runs all the checks on the fully assembled graph. Must pass before the graph is handed to CloudFormation.

    :param TopologyGraph graph:
    :raises CompositionError: on the first violation found
    """
    graph.check_references()
    ordered = graph.ordered_titles
    check_container_port(graph)
    check_target_binding(graph)
    check_service_boundary_source(graph)
    check_image_selection(graph)
    check_subnets_tiers(graph)
    LOG.debug(f"{graph} - consistent. Creation order {ordered}")
