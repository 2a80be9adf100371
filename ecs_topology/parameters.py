#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Resolves the raw context values into the validated, immutable parameters the topology is derived from.
"""

from __future__ import annotations

import jsonschema
from compose_x_common.compose_x_common import keypresent, set_else_none

from ecs_topology.common.logging import LOG
from ecs_topology.ecs.ecs_params import FARGATE_MODES, is_valid_fargate_mode
from ecs_topology.exceptions import InvalidParameter
from ecs_topology.specs import load_spec

APP_NAME_ARG = "appName"
CONTAINER_PORT_ARG = "containerPort"
DESIRED_COUNT_ARG = "desiredCount"
CPU_ARG = "cpu"
MEMORY_ARG = "memoryMiB"
BOOTSTRAP_ARG = "usePublicBootstrapImage"
BOOTSTRAP_ALIAS_ARG = "bootstrapMode"

DEFAULTS = {
    APP_NAME_ARG: "helloecs",
    CONTAINER_PORT_ARG: 8080,
    DESIRED_COUNT_ARG: 1,
    CPU_ARG: 256,
    MEMORY_ARG: 512,
    BOOTSTRAP_ARG: "true",
}
INTEGER_ARGS = [CONTAINER_PORT_ARG, DESIRED_COUNT_ARG, CPU_ARG, MEMORY_ARG]
KNOWN_ARGS = list(DEFAULTS.keys()) + [BOOTSTRAP_ALIAS_ARG]


class AppParameters:
    """
    Immutable set of parameters a topology is derived from.
    Two instances with the same values are equal and hash the same.
    """

    __slots__ = (
        "_app_name",
        "_container_port",
        "_desired_count",
        "_cpu",
        "_memory_mib",
        "_bootstrap_mode",
    )

    def __init__(
        self,
        app_name: str,
        container_port: int,
        desired_count: int,
        cpu: int,
        memory_mib: int,
        bootstrap_mode: bool,
    ):
        object.__setattr__(self, "_app_name", app_name)
        object.__setattr__(self, "_container_port", container_port)
        object.__setattr__(self, "_desired_count", desired_count)
        object.__setattr__(self, "_cpu", cpu)
        object.__setattr__(self, "_memory_mib", memory_mib)
        object.__setattr__(self, "_bootstrap_mode", bootstrap_mode)

    def __setattr__(self, key, value):
        raise AttributeError(f"{self.__class__.__name__} is immutable. Cannot set {key}")

    def __delattr__(self, key):
        raise AttributeError(f"{self.__class__.__name__} is immutable. Cannot delete {key}")

    def __repr__(self):
        return (
            f"{self.__class__.__name__}(app_name={self.app_name!r}, container_port={self.container_port}, "
            f"desired_count={self.desired_count}, cpu={self.cpu}, memory_mib={self.memory_mib}, "
            f"bootstrap_mode={self.bootstrap_mode})"
        )

    def __eq__(self, other):
        if not isinstance(other, AppParameters):
            return NotImplemented
        return self._values == other._values

    def __hash__(self):
        return hash(self._values)

    @property
    def _values(self) -> tuple:
        return (
            self.app_name,
            self.container_port,
            self.desired_count,
            self.cpu,
            self.memory_mib,
            self.bootstrap_mode,
        )

    @property
    def app_name(self) -> str:
        return self._app_name

    @property
    def container_port(self) -> int:
        return self._container_port

    @property
    def desired_count(self) -> int:
        return self._desired_count

    @property
    def cpu(self) -> int:
        return self._cpu

    @property
    def memory_mib(self) -> int:
        return self._memory_mib

    @property
    def bootstrap_mode(self) -> bool:
        return self._bootstrap_mode

    def as_dict(self) -> dict:
        """
        :return: the parameters, keyed with the context names
        :rtype: dict
        """
        return {
            APP_NAME_ARG: self.app_name,
            CONTAINER_PORT_ARG: self.container_port,
            DESIRED_COUNT_ARG: self.desired_count,
            CPU_ARG: self.cpu,
            MEMORY_ARG: self.memory_mib,
            BOOTSTRAP_ALIAS_ARG: self.bootstrap_mode,
        }


def coerce_integer(name: str, value) -> int:
    """
    Context values come in as strings from the CLI, or typed from a context file.

    :raises InvalidParameter: if the value is not an integer
    """
    if isinstance(value, bool):
        raise InvalidParameter(f"{name} must be an integer. Got boolean {value}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip(), 10)
        except ValueError:
            raise InvalidParameter(f"{name} must be an integer. Got {value!r}")
    raise InvalidParameter(
        f"{name} must be an integer. Got {value!r} of type {type(value)}"
    )


def coerce_boolean(name: str, value) -> bool:
    """
    Accepts a boolean or its "true"/"false" string representation, case-insensitive.

    :raises InvalidParameter: for any other value
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ["true", "false"]:
        return value.strip().lower() == "true"
    raise InvalidParameter(f"{name} must be one of true/false. Got {value!r}")


def get_bootstrap_value(raw: dict):
    """
    The bootstrap flag can be set as usePublicBootstrapImage or bootstrapMode, not both.
    """
    if keypresent(BOOTSTRAP_ARG, raw) and keypresent(BOOTSTRAP_ALIAS_ARG, raw):
        raise InvalidParameter(
            f"Only one of {BOOTSTRAP_ARG} and {BOOTSTRAP_ALIAS_ARG} can be set"
        )
    if keypresent(BOOTSTRAP_ALIAS_ARG, raw):
        return raw[BOOTSTRAP_ALIAS_ARG]
    return set_else_none(BOOTSTRAP_ARG, raw, DEFAULTS[BOOTSTRAP_ARG], eval_bool=True)


def validate_parameters(definition: dict) -> None:
    """
    JSON Validation of the coerced parameters, then of the Fargate CPU/RAM couple

    :raises InvalidParameter:
    """
    try:
        jsonschema.validate(definition, load_spec())
    except jsonschema.exceptions.ValidationError as error:
        path = ".".join(str(part) for part in error.absolute_path) or "parameters"
        raise InvalidParameter(f"{path} - {error.message}") from error
    if not is_valid_fargate_mode(definition[CPU_ARG], definition[MEMORY_ARG]):
        raise InvalidParameter(
            f"cpu={definition[CPU_ARG]} and memoryMiB={definition[MEMORY_ARG]} is not a valid Fargate combination",
            (
                f"Valid memory values for cpu {definition[CPU_ARG]}"
                if definition[CPU_ARG] in FARGATE_MODES
                else "Valid cpu values"
            ),
            (
                FARGATE_MODES[definition[CPU_ARG]]
                if definition[CPU_ARG] in FARGATE_MODES
                else list(FARGATE_MODES.keys())
            ),
        )


def resolve_parameters(raw: dict = None) -> AppParameters:
    """
    Validates and defaults the raw context values into AppParameters. Pure, no side effects.

    :param dict raw: context values, i.e. {"appName": "helloecs", "containerPort": "8080"}
    :return: the immutable parameters
    :rtype: AppParameters
    :raises InvalidParameter: if any value is malformed or out of range
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise InvalidParameter(f"Parameters must be a mapping. Got {type(raw)}")
    for key in raw.keys():
        if key not in KNOWN_ARGS:
            LOG.warning(f"Parameter {key} is not used. Valid parameters: {KNOWN_ARGS}")

    definition = {
        APP_NAME_ARG: set_else_none(
            APP_NAME_ARG, raw, DEFAULTS[APP_NAME_ARG], eval_bool=True
        ),
        BOOTSTRAP_ALIAS_ARG: coerce_boolean(BOOTSTRAP_ARG, get_bootstrap_value(raw)),
    }
    for name in INTEGER_ARGS:
        definition[name] = coerce_integer(
            name, set_else_none(name, raw, DEFAULTS[name], eval_bool=True)
        )
    validate_parameters(definition)
    parameters = AppParameters(
        app_name=definition[APP_NAME_ARG],
        container_port=definition[CONTAINER_PORT_ARG],
        desired_count=definition[DESIRED_COUNT_ARG],
        cpu=definition[CPU_ARG],
        memory_mib=definition[MEMORY_ARG],
        bootstrap_mode=definition[BOOTSTRAP_ALIAS_ARG],
    )
    LOG.debug(parameters)
    return parameters
