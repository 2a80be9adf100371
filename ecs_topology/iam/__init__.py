#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
IAM identities of the topology
"""

from troposphere import Sub
from troposphere.iam import Role

from ecs_topology.common.logging import LOG
from ecs_topology.ecs.ecs_params import EXEC_ROLE_T, EXECUTION_ROLE_MANAGED_POLICY


def service_role_trust_policy(service_name: str) -> dict:
    """
    Simple function to format the trust relationship for a Role and an AWS Service

    :param str service_name: name of the AWS service principal, without the domain suffix, i.e. ecs-tasks
    :return: policy document
    :rtype: dict
    """
    statement = {
        "Effect": "Allow",
        "Principal": {"Service": [Sub(f"{service_name}.${{AWS::URLSuffix}}")]},
        "Action": ["sts:AssumeRole"],
    }
    policy_doc = {"Version": "2012-10-17", "Statement": [statement]}
    return policy_doc


def aws_managed_policy_arn(policy_name: str) -> Sub:
    """
    :param str policy_name: name of the AWS managed policy, including its path, i.e. service-role/MyPolicy
    :return: partition aware ARN of the policy
    """
    return Sub(f"arn:${{AWS::Partition}}:iam::aws:policy/{policy_name}")


def define_execution_role() -> Role:
    """
    Role assumed by the ECS agent to pull the image and write the logs.
    Only trusted by ECS Tasks, with only the AmazonECSTaskExecutionRolePolicy managed policy.

    :rtype: troposphere.iam.Role
    """
    LOG.debug(f"{EXEC_ROLE_T} - Managed policy {EXECUTION_ROLE_MANAGED_POLICY}")
    return Role(
        EXEC_ROLE_T,
        AssumeRolePolicyDocument=service_role_trust_policy("ecs-tasks"),
        ManagedPolicyArns=[aws_managed_policy_arn(EXECUTION_ROLE_MANAGED_POLICY)],
    )
