#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

from tempfile import TemporaryDirectory

from behave import given, then

from ecs_topology.common.files import TemplateFile
from ecs_topology.common.settings import TopologySettings
from ecs_topology.ecs_topology import generate_topology
from ecs_topology.parameters import resolve_parameters


@given("I use the context values {context_values}")
def step_impl(context, context_values):
    """
    Function to build the settings from comma separated key=value pairs, as given with -c

    :param context:
    :param str context_values:
    """
    context.settings = TopologySettings(
        **{TopologySettings.context_arg: context_values.split(",")}
    )


@then("I derive the topology")
def step_impl(context):
    context.graph = generate_topology(context.settings.context)


@then("I render the template in {file_format}")
def step_impl(context, file_format):
    parameters = resolve_parameters(context.settings.context)
    context.settings.set_default_name(parameters.app_name)
    template_file = TemplateFile(
        context.settings.name,
        generate_topology(parameters).to_template(),
        file_format=file_format,
    )
    with TemporaryDirectory() as output_dir:
        assert template_file.write(output_dir).endswith(f"rendered-stack.{file_format}")
