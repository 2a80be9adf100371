#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Titles and settings of the load balancing resources
"""

LB_T = "PublicLoadBalancer"
LISTENER_T = "HttpListener"
TARGET_GROUP_T = "ServiceTargetGroup"

LISTENER_PORT = 80
LISTENER_PROTOCOL = "HTTP"
HEALTHY_HTTP_CODES = "200"
DEREGISTRATION_DELAY_TIMEOUT_SECONDS = "deregistration_delay.timeout_seconds"
