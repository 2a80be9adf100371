#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Package defining the ECS resources: cluster, logging, task definition, security boundaries and service.
"""
