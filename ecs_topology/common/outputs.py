#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Functions to format the CFN template Outputs of the topology
"""

from collections import OrderedDict

from troposphere import GetAtt, Output, Ref, Sub
from troposphere.ecr import Repository
from troposphere.ecs import Cluster, Service
from troposphere.elasticloadbalancingv2 import LoadBalancer

ALB_URL_T = "AlbUrl"
ECR_REPO_URI_T = "EcrRepoUri"
ECR_REPO_NAME_T = "EcrRepoName"
CLUSTER_NAME_T = "ClusterName"
SERVICE_NAME_T = "ServiceName"

OUTPUTS_NAMES = [
    ALB_URL_T,
    ECR_REPO_URI_T,
    ECR_REPO_NAME_T,
    CLUSTER_NAME_T,
    SERVICE_NAME_T,
]


def define_outputs(
    load_balancer: LoadBalancer,
    repository: Repository,
    cluster: Cluster,
    service: Service,
) -> OrderedDict:
    """
    Defines the addressable values of the topology, resolved by CloudFormation once deployed.

    :return: the outputs, by name
    :rtype: OrderedDict[str, troposphere.Output]
    """
    values = (
        (
            ALB_URL_T,
            Sub(f"http://${{{load_balancer.title}.DNSName}}"),
            "URL of the public load balancer",
        ),
        (
            ECR_REPO_URI_T,
            GetAtt(repository, "RepositoryUri"),
            "URI of the ECR repository to push the application image to",
        ),
        (ECR_REPO_NAME_T, Ref(repository), "Name of the ECR repository"),
        (CLUSTER_NAME_T, Ref(cluster), "Name of the ECS cluster"),
        (SERVICE_NAME_T, GetAtt(service, "Name"), "Name of the ECS service"),
    )
    outputs = OrderedDict()
    for name, value, description in values:
        outputs[name] = Output(name, Value=value, Description=description)
    return outputs
