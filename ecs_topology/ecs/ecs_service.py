#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
The ECS Service running the task definition in the private subnets, registered into the target group.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_topology.parameters import AppParameters

from troposphere import GetAtt, Ref
from troposphere.ec2 import SecurityGroup
from troposphere.ecs import (
    AwsvpcConfiguration,
    Cluster,
    DeploymentConfiguration,
    DeploymentController,
)
from troposphere.ecs import LoadBalancer as EcsLoadBalancer
from troposphere.ecs import NetworkConfiguration, Service, TaskDefinition
from troposphere.elasticloadbalancingv2 import Listener, TargetGroup

from ecs_topology.ecs.ecs_params import (
    HEALTH_CHECK_GRACE_PERIOD,
    MAX_HEALTHY_PERCENT,
    MIN_HEALTHY_PERCENT,
    SERVICE_T,
)


def define_deployment_configuration() -> DeploymentConfiguration:
    """
    Keeps all the desired tasks running while the new ones start, which reduces the chances of the
    deployment not stabilizing.
    """
    return DeploymentConfiguration(
        MinimumHealthyPercent=MIN_HEALTHY_PERCENT,
        MaximumPercent=MAX_HEALTHY_PERCENT,
    )


def define_service(
    parameters: AppParameters,
    cluster: Cluster,
    task_definition: TaskDefinition,
    private_subnets: list,
    service_security_group: SecurityGroup,
    target_group: TargetGroup,
    listener: Listener,
) -> Service:
    """
    Creates the Fargate service. No public IP, only in the private subnets, within the service security boundary.
    The service is created after the listener so the target group is attached to the load balancer.

    :param AppParameters parameters:
    :param troposphere.ecs.Cluster cluster:
    :param troposphere.ecs.TaskDefinition task_definition:
    :param list[troposphere.ec2.Subnet] private_subnets:
    :param troposphere.ec2.SecurityGroup service_security_group:
    :param troposphere.elasticloadbalancingv2.TargetGroup target_group:
    :param troposphere.elasticloadbalancingv2.Listener listener:
    :rtype: troposphere.ecs.Service
    """
    return Service(
        SERVICE_T,
        ServiceName=f"{parameters.app_name}-service",
        Cluster=Ref(cluster),
        TaskDefinition=Ref(task_definition),
        DesiredCount=parameters.desired_count,
        LaunchType="FARGATE",
        DeploymentController=DeploymentController(Type="ECS"),
        DeploymentConfiguration=define_deployment_configuration(),
        EnableECSManagedTags=False,
        HealthCheckGracePeriodSeconds=HEALTH_CHECK_GRACE_PERIOD,
        NetworkConfiguration=NetworkConfiguration(
            AwsvpcConfiguration=AwsvpcConfiguration(
                AssignPublicIp="DISABLED",
                SecurityGroups=[GetAtt(service_security_group, "GroupId")],
                Subnets=[Ref(subnet) for subnet in private_subnets],
            )
        ),
        LoadBalancers=[
            EcsLoadBalancer(
                ContainerName=parameters.app_name,
                ContainerPort=parameters.container_port,
                TargetGroupArn=Ref(target_group),
            )
        ],
        DependsOn=[listener.title],
    )
