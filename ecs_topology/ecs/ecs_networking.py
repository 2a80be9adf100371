#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Security groups scoping the traffic: the public boundary of the load balancer, and the
service boundary which only admits traffic coming from the load balancer.
"""

from __future__ import annotations

from troposphere import GetAtt, Ref, Sub
from troposphere.ec2 import VPC, SecurityGroup, SecurityGroupRule

from ecs_topology.common.logging import LOG
from ecs_topology.ecs.ecs_params import ALB_SG_T, SERVICE_SG_T
from ecs_topology.elbv2.elbv2_params import LISTENER_PORT
from ecs_topology.exceptions import ConfigurationError

ANY_IPV4 = "0.0.0.0/0"


def allow_all_egress() -> list:
    return [
        SecurityGroupRule(
            IpProtocol="-1",
            CidrIp=ANY_IPV4,
            Description="Allow all outbound traffic by default",
        )
    ]


class SecurityBoundaries:
    """
    The two traffic boundaries.

    :ivar troposphere.ec2.SecurityGroup public: boundary A, HTTP from anywhere, for the load balancer
    :ivar troposphere.ec2.SecurityGroup service: boundary B, the container port from boundary A only
    """

    def __init__(self, public: SecurityGroup, service: SecurityGroup):
        self.public = public
        self.service = service

    def __iter__(self):
        return iter((self.public, self.service))


def define_security_boundaries(vpc: VPC, container_port: int) -> SecurityBoundaries:
    """
    Creates the load balancer and service security groups. The service ingress source is the load
    balancer security group itself, never an address range.

    :param troposphere.ec2.VPC vpc:
    :param int container_port:
    :rtype: SecurityBoundaries
    :raises ConfigurationError: if the container port is the listener port
    """
    if container_port == LISTENER_PORT:
        raise ConfigurationError(
            f"containerPort {container_port} collides with the load balancer listener port {LISTENER_PORT}."
            " Use another container port."
        )
    public = SecurityGroup(
        ALB_SG_T,
        GroupDescription=Sub("${AWS::StackName} - Load balancer public access"),
        VpcId=Ref(vpc),
        SecurityGroupIngress=[
            SecurityGroupRule(
                IpProtocol="tcp",
                FromPort=LISTENER_PORT,
                ToPort=LISTENER_PORT,
                CidrIp=ANY_IPV4,
                Description="HTTP from internet",
            )
        ],
        SecurityGroupEgress=allow_all_egress(),
    )
    service = SecurityGroup(
        SERVICE_SG_T,
        GroupDescription=Sub("${AWS::StackName} - Service access from load balancer"),
        VpcId=Ref(vpc),
        SecurityGroupIngress=[
            SecurityGroupRule(
                IpProtocol="tcp",
                FromPort=container_port,
                ToPort=container_port,
                SourceSecurityGroupId=GetAtt(public, "GroupId"),
                Description="ALB to ECS",
            )
        ],
        SecurityGroupEgress=allow_all_egress(),
    )
    LOG.debug(f"{SERVICE_SG_T} - Ingress tcp/{container_port} from {ALB_SG_T}")
    return SecurityBoundaries(public, service)
