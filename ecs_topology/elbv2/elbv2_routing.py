#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Internet facing load balancer, its HTTP listener and the target group the service registers into.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_topology.ecs.ecs_image import ImageSelection

from troposphere import GetAtt, Ref
from troposphere.ec2 import VPC, Route, SecurityGroup
from troposphere.elasticloadbalancingv2 import (
    Action,
    Listener,
    LoadBalancer,
    Matcher,
    TargetGroup,
    TargetGroupAttribute,
)

from ecs_topology.common.logging import LOG
from ecs_topology.elbv2.elbv2_params import (
    DEREGISTRATION_DELAY_TIMEOUT_SECONDS,
    HEALTHY_HTTP_CODES,
    LB_T,
    LISTENER_PORT,
    LISTENER_PROTOCOL,
    LISTENER_T,
    TARGET_GROUP_T,
)


class Routing:
    """
    :ivar troposphere.elasticloadbalancingv2.LoadBalancer load_balancer:
    :ivar troposphere.elasticloadbalancingv2.Listener listener:
    :ivar troposphere.elasticloadbalancingv2.TargetGroup target_group:
    """

    def __init__(
        self, load_balancer: LoadBalancer, listener: Listener, target_group: TargetGroup
    ):
        self.load_balancer = load_balancer
        self.listener = listener
        self.target_group = target_group

    @property
    def resources(self) -> list:
        return [self.load_balancer, self.target_group, self.listener]


def define_target_group(
    vpc: VPC, container_port: int, health_check_path: str
) -> TargetGroup:
    """
    Target group of IP targets, as Fargate tasks use awsvpc networking.
    The targets are healthy only if they answer HTTP 200 on the health check path.
    """
    return TargetGroup(
        TARGET_GROUP_T,
        Port=container_port,
        Protocol="HTTP",
        TargetType="ip",
        VpcId=Ref(vpc),
        HealthCheckEnabled=True,
        HealthCheckProtocol="HTTP",
        HealthCheckPath=health_check_path,
        Matcher=Matcher(HttpCode=HEALTHY_HTTP_CODES),
        TargetGroupAttributes=[
            TargetGroupAttribute(Key=DEREGISTRATION_DELAY_TIMEOUT_SECONDS, Value="60")
        ],
    )


def define_routing(
    app_name: str,
    vpc: VPC,
    public_subnets: list,
    lb_security_group: SecurityGroup,
    image_selection: ImageSelection,
    container_port: int,
    internet_route: Route = None,
) -> Routing:
    """
    Creates the load balancer in the public subnets, the HTTP listener on port 80 and the target group
    forwarding to the container port.

    :param str app_name:
    :param troposphere.ec2.VPC vpc:
    :param list[troposphere.ec2.Subnet] public_subnets:
    :param troposphere.ec2.SecurityGroup lb_security_group: the public security boundary
    :param ImageSelection image_selection: gives the health check path
    :param int container_port:
    :param troposphere.ec2.Route internet_route: when set, the load balancer waits for the route to exist
    :rtype: Routing
    """
    lb_props = {}
    if internet_route is not None:
        lb_props["DependsOn"] = [internet_route.title]
    load_balancer = LoadBalancer(
        LB_T,
        Name=f"{app_name}-alb",
        Scheme="internet-facing",
        Type="application",
        IpAddressType="ipv4",
        SecurityGroups=[GetAtt(lb_security_group, "GroupId")],
        Subnets=[Ref(subnet) for subnet in public_subnets],
        **lb_props,
    )
    target_group = define_target_group(
        vpc, container_port, image_selection.health_check_path
    )
    listener = Listener(
        LISTENER_T,
        LoadBalancerArn=Ref(load_balancer),
        Port=LISTENER_PORT,
        Protocol=LISTENER_PROTOCOL,
        DefaultActions=[Action(Type="forward", TargetGroupArn=Ref(target_group))],
    )
    LOG.debug(
        f"{LISTENER_T} - {LISTENER_PROTOCOL}:{LISTENER_PORT} to {TARGET_GROUP_T} port {container_port}"
        f" health check {image_selection.health_check_path}"
    )
    return Routing(load_balancer, listener, target_group)
