#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Console script for ecs_topology.
"""

import argparse
import sys

from ecs_topology import __version__
from ecs_topology.common.aws import deploy, plan
from ecs_topology.common.files import TemplateFile
from ecs_topology.common.logging import LOG, set_log_level
from ecs_topology.common.settings import TopologySettings
from ecs_topology.ecs_topology import generate_topology
from ecs_topology.exceptions import TopologyBaseException
from ecs_topology.parameters import resolve_parameters


class ArgparseHelper(argparse._HelpAction):
    """
    Used to help print top level '--help' arguments from argparse
    when used with subparsers
    """

    def __call__(self, parser, namespace, values, option_string=None):
        parser.print_help()
        print()
        subparsers_actions = [
            action
            for action in parser._actions
            if isinstance(action, argparse._SubParsersAction)
        ]
        for subparsers_action in subparsers_actions:
            for choice, subparser in list(subparsers_action.choices.items()):
                if choice in [cmd["name"] for cmd in TopologySettings.active_commands]:
                    print(f"Command '{choice}'")
                    print(subparser.format_usage())
        parser.exit()


def main_parser():
    """
    Console script for ecs_topology.
    """
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument(
        "-h",
        "--help",
        action=ArgparseHelper,
        help="show this help message and exit",
    )

    cmd_parsers = parser.add_subparsers(
        dest=TopologySettings.command_arg, help="Command to execute."
    )
    base_command_parser = argparse.ArgumentParser(add_help=False)
    base_command_parser.add_argument(
        "-n",
        "--name",
        help="Name of the CloudFormation stack. Defaults to <appName>-stack",
        required=False,
        type=str,
        dest=TopologySettings.name_arg,
    )
    base_command_parser.add_argument(
        "-c",
        "--context",
        help="Context value, as key=value, i.e. appName=myapp. Can be repeated",
        action="append",
        default=[],
        dest=TopologySettings.context_arg,
    )
    base_command_parser.add_argument(
        "--context-file",
        help="Path to a YAML/JSON file with the context values. --context values take precedence",
        required=False,
        type=str,
        dest=TopologySettings.context_file_arg,
    )
    base_command_parser.add_argument(
        "-d",
        "--output-dir",
        required=False,
        help="Output directory to write the template to.",
        type=str,
        dest=TopologySettings.output_dir_arg,
        default=TopologySettings.default_output_dir,
    )
    base_command_parser.add_argument(
        "--format",
        help="Defines the format you want to use.",
        type=str,
        dest=TopologySettings.format_arg,
        choices=TopologySettings.allowed_formats,
        default=TopologySettings.default_format,
    )
    base_command_parser.add_argument(
        "--region",
        required=False,
        dest=TopologySettings.region_arg,
        help="Specify the region you want to deploy to. "
        "Defaults to the region from config or environment vars",
    )
    base_command_parser.add_argument(
        "--profile",
        required=False,
        dest=TopologySettings.profile_arg,
        help="AWS profile to use for the API calls",
    )
    base_command_parser.add_argument(
        "--disable-rollback",
        dest="DisableRollback",
        help="On create/plan, disable stack automatic rollback.",
        required=False,
        action="store_true",
    )
    base_command_parser.add_argument(
        "--wait",
        dest=TopologySettings.wait_arg,
        help="On up, wait for the stack to complete and display its outputs",
        required=False,
        action="store_true",
    )
    base_command_parser.add_argument(
        "-y",
        "--yes",
        dest=TopologySettings.yes_arg,
        help="On plan, apply the change set without asking for confirmation",
        required=False,
        action="store_true",
    )
    base_command_parser.add_argument(
        "--loglevel", type=str, help="Log level. Defaults to INFO", required=False
    )
    for command in TopologySettings.active_commands:
        cmd_parsers.add_parser(
            name=command["name"],
            help=command["help"],
            parents=[base_command_parser],
        )
    for command in TopologySettings.neutral_commands:
        cmd_parsers.add_parser(name=command["name"], help=command["help"])
    return parser


def process_command(settings: TopologySettings) -> int:
    """
    Derives the topology from the context, writes the template and deploys or plans it.

    :param TopologySettings settings:
    :return: status code
    """
    parameters = resolve_parameters(settings.context)
    settings.set_default_name(parameters.app_name)
    graph = generate_topology(parameters)
    template_file = TemplateFile(
        settings.name, graph.to_template(), file_format=settings.format
    )
    template_file.write(settings.output_dir)
    if settings.deploy:
        deploy(settings, graph, template_file.body)
    elif settings.plan:
        plan(settings, graph, template_file.body)
    return 0


def main(args=None):
    """
    Main entry point for CLI
    :return: status code
    """
    parser = main_parser()
    if args is None:
        args = sys.argv[1:]
    if not args:
        parser.print_help()
        sys.exit()
    args = parser.parse_args(args)
    if args.command == TopologySettings.version_arg:
        print(__version__)
        return 0
    if args.loglevel and not set_log_level(args.loglevel):
        print(f"Log level value {args.loglevel} is invalid. Using INFO")
    LOG.debug(args)
    try:
        settings = TopologySettings(**vars(args))
        LOG.debug(settings)
        return process_command(settings)
    except (TopologyBaseException, FileNotFoundError) as error:
        LOG.error(error)
        sys.exit(1)


if __name__ == "__main__":
    sys.exit(main())  # pragma: no cover
