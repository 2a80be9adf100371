#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
The ECS Cluster the service runs in
"""

from troposphere.ecs import Cluster

from ecs_topology.ecs.ecs_params import CLUSTER_T


def define_cluster(app_name: str) -> Cluster:
    return Cluster(CLUSTER_T, ClusterName=f"{app_name}-cluster")
