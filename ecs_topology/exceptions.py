#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Custom exceptions for ecs-topology
"""


class TopologyBaseException(Exception):
    """
    Top class for ECS Topology Exceptions
    """

    def __init__(self, msg, *args):
        super().__init__(msg, *args)


class InvalidParameter(TopologyBaseException):
    """
    Exception when an input parameter is malformed or out of range, i.e. containerPort=0
    """


class ConfigurationError(TopologyBaseException):
    """
    Exception when valid parameters cannot be combined, i.e. the container port collides with the listener port
    """


class CompositionError(TopologyBaseException):
    """
    Exception when the assembled graph is not internally consistent, i.e. a dangling reference
    """
