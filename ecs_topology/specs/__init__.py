#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
JSON Schema specifications shipped with the package
"""

import json

from importlib_resources import files as pkg_files

PARAMETERS_SPEC = "topology-parameters.spec.json"


def load_spec(spec_file: str = PARAMETERS_SPEC) -> dict:
    """
    Loads a JSON schema from the specs folder of the package

    :param str spec_file: file name of the schema
    :return: the schema
    :rtype: dict
    """
    source = pkg_files("ecs_topology").joinpath("specs").joinpath(spec_file)
    return json.loads(source.read_text())
