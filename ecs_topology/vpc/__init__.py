#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
ECS Topology - VPC module, defines the network the service and load balancer are deployed into
"""

metadata = {"Type": "ecs-topology", "Properties": {"Module": "vpc"}}
