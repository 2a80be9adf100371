#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
CloudWatch log group the containers log into, and the awslogs configuration pointing to it.
"""

from troposphere import Ref, Region
from troposphere.ecs import LogConfiguration
from troposphere.logs import LogGroup

from ecs_topology.ecs.ecs_params import (
    LOG_GROUP_RETENTION_DAYS,
    LOG_GROUP_T,
    LOG_STREAM_PREFIX,
)


def define_log_group(app_name: str) -> LogGroup:
    """
    Function to create a new Log Group for the service, with a one week retention.
    """
    return LogGroup(
        LOG_GROUP_T,
        LogGroupName=f"/ecs/{app_name}",
        RetentionInDays=LOG_GROUP_RETENTION_DAYS,
        DeletionPolicy="Delete",
        UpdateReplacePolicy="Delete",
    )


def define_log_configuration(log_group: LogGroup) -> LogConfiguration:
    return LogConfiguration(
        LogDriver="awslogs",
        Options={
            "awslogs-group": Ref(log_group),
            "awslogs-region": Region,
            "awslogs-stream-prefix": LOG_STREAM_PREFIX,
        },
    )
