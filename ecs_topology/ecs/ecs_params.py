#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Titles and settings bound to ecs_topology.ecs
All the titles, marked `_T`, are the logical IDs of the resources in the template. They are
re-used across imports so that references between resources always use the same names.

You can change the names *values* so you like so long as you keep it [a-zA-Z0-9]
"""

CLUSTER_T = "EcsCluster"
LOG_GROUP_T = "ServicesLogGroup"
EXEC_ROLE_T = "EcsExecutionRole"
TASK_T = "EcsTaskDefinition"
SERVICE_T = "EcsServiceDefinition"
ALB_SG_T = "AlbSecurityGroup"
SERVICE_SG_T = "ServiceSecurityGroup"

LOG_GROUP_RETENTION_DAYS = 7
LOG_STREAM_PREFIX = "app"

MIN_HEALTHY_PERCENT = 100
MAX_HEALTHY_PERCENT = 200
HEALTH_CHECK_GRACE_PERIOD = 60

DEFAULT_ENVIRONMENT = {"SPRING_PROFILES_ACTIVE": "default"}

EXECUTION_ROLE_MANAGED_POLICY = "service-role/AmazonECSTaskExecutionRolePolicy"

FARGATE_MODES = {
    256: [2**i for i in [9, 10, 11]],
    512: [(2**10) * i for i in range(1, 5)],
    1024: [(2**10) * i for i in range(2, 9)],
    2048: [(2**10) * i for i in range(4, 17)],
    4096: [(2**10) * i for i in range(8, 31)],
    8192: [(2**10) * i for i in range(16, 61, 4)],
    16384: [(2**10) * i for i in range(32, 121, 8)],
}


def is_valid_fargate_mode(cpu: int, ram: int) -> bool:
    """
    Checks whether the CPU/RAM couple is one that AWS Fargate accepts.

    :param int cpu: CPU units, i.e. 256 for .25 vCPU
    :param int ram: memory in MiB
    :rtype: bool
    """
    return cpu in FARGATE_MODES and ram in FARGATE_MODES[cpu]
