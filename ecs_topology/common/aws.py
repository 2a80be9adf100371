#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Hands the topology to AWS CloudFormation, which creates and updates the resources.
Errors from CloudFormation are not handled here and reach the caller as raised by botocore.
"""

from __future__ import annotations

import secrets
from string import ascii_lowercase
from time import sleep
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_topology.common.graph import TopologyGraph
    from ecs_topology.common.settings import TopologySettings

from botocore.exceptions import ClientError
from compose_x_common.compose_x_common import keyisset
from tabulate import tabulate

from ecs_topology.common.logging import LOG

CAPABILITIES = ["CAPABILITY_IAM"]
CAN_UPDATE_STATUSES = [
    "CREATE_COMPLETE",
    "ROLLBACK_COMPLETE",
    "UPDATE_COMPLETE",
    "UPDATE_ROLLBACK_COMPLETE",
]


def assert_can_create_stack(client, name):
    """
    Checks whether a stack already exists or not

    :return: True if the stack does not exist, the stack if under review, False otherwise
    """
    try:
        stack_r = client.describe_stacks(StackName=name)
        if not keyisset("Stacks", stack_r):
            return True
        stacks = stack_r["Stacks"]
        if len(stacks) != 1:
            raise LookupError("Too many stacks found with machine name", name)
        stack = stacks[0]
        if stack["StackStatus"] == "REVIEW_IN_PROGRESS":
            return stack
        return False
    except ClientError as error:
        if (
            error.response["Error"]["Code"] == "ValidationError"
            and error.response["Error"]["Message"].find("does not exist") > 0
        ):
            return True
        raise error


def assert_can_update_stack(client, name):
    """
    Checks whether the existing stack is in a state that allows an update
    """
    res = client.describe_stacks(StackName=name)
    if not res["Stacks"]:
        return False
    stack = res["Stacks"][0]
    LOG.info(f"Stack {name} status {stack['StackStatus']}")
    if stack["StackStatus"] in CAN_UPDATE_STATUSES:
        return True
    return False


def get_stack_outputs(client, name) -> dict:
    """
    :return: the stack outputs, by output key
    """
    stack = client.describe_stacks(StackName=name)["Stacks"][0]
    return {
        output["OutputKey"]: output["OutputValue"]
        for output in stack.get("Outputs", [])
    }


def wait_for_stack(client, name, waiter_name):
    """
    Waits for the stack to reach a complete status and logs its outputs.
    A WaiterError is raised if CloudFormation reports a failure or takes too long.
    """
    LOG.info(f"Waiting for stack {name} - {waiter_name}")
    client.get_waiter(waiter_name).wait(StackName=name)
    outputs = get_stack_outputs(client, name)
    for key, value in outputs.items():
        LOG.info(f"{name} - {key}: {value}")
    return outputs


def deploy(settings: TopologySettings, graph: TopologyGraph, template_body: str = None):
    """
    Function to deploy (create or update) the stack to CFN.

    :param TopologySettings settings:
    :param TopologyGraph graph: the validated topology
    :param str template_body: the rendered template. Rendered from the graph if not set
    :return: the stack ID. None if the stack cannot be updated, i.e. under review with a pending change set
    """
    if template_body is None:
        template_body = graph.to_json()
    client = settings.session.client("cloudformation")
    if assert_can_create_stack(client, settings.name) is True:
        res = client.create_stack(
            StackName=settings.name,
            Capabilities=CAPABILITIES,
            TemplateBody=template_body,
            DisableRollback=settings.disable_rollback,
        )
        LOG.info(f"Stack {settings.name} successfully deployed.")
        LOG.info(res["StackId"])
        if settings.wait:
            wait_for_stack(client, settings.name, "stack_create_complete")
        return res["StackId"]
    elif assert_can_update_stack(client, settings.name):
        LOG.warning(f"Stack {settings.name} already exists. Updating.")
        res = client.update_stack(
            StackName=settings.name,
            Capabilities=CAPABILITIES,
            TemplateBody=template_body,
            DisableRollback=settings.disable_rollback,
        )
        LOG.info(f"Stack {settings.name} successfully updating.")
        LOG.info(res["StackId"])
        if settings.wait:
            wait_for_stack(client, settings.name, "stack_update_complete")
        return res["StackId"]
    LOG.error(f"Stack {settings.name} cannot be created nor updated.")
    return None


def get_change_set_status(client, change_set_name, settings):
    pending_statuses = [
        "CREATE_PENDING",
        "CREATE_IN_PROGRESS",
        "DELETE_PENDING",
        "DELETE_IN_PROGRESS",
        "REVIEW_IN_PROGRESS",
    ]
    success_statuses = ["CREATE_COMPLETE", "DELETE_COMPLETE"]
    failed_statuses = ["DELETE_FAILED", "FAILED"]
    ready = False
    status = None
    while not ready:
        status = client.describe_change_set(
            ChangeSetName=change_set_name, StackName=settings.name
        )
        if status["Status"] in failed_statuses:
            raise SystemExit(
                "Change set is unsuccessful", status["Status"], status.get("StatusReason")
            )
        if status["Status"] in pending_statuses:
            print(
                "ChangeSet creation in progress. Waiting 10 seconds",
                end="\r",
                flush=True,
            )
            sleep(10)
        elif status["Status"] in success_statuses:
            ready = True

    print(
        tabulate(
            [
                [
                    change["ResourceChange"]["LogicalResourceId"],
                    change["ResourceChange"]["ResourceType"],
                    change["ResourceChange"]["Action"],
                ]
                for change in status["Changes"]
            ],
            ["LogicalResourceId", "ResourceType", "Action"],
            tablefmt="rst",
        )
    )
    return status


def plan(settings: TopologySettings, graph: TopologyGraph, template_body: str = None):
    """
    Function to create a change-set and show the differences with the deployed stack

    :param TopologySettings settings:
    :param TopologyGraph graph: the validated topology
    :param str template_body: the rendered template. Rendered from the graph if not set
    """
    if template_body is None:
        template_body = graph.to_json()
    client = settings.session.client("cloudformation")
    change_set_name = f"{settings.name}" + "".join(
        secrets.choice(ascii_lowercase) for _ in range(10)
    )
    can_create = assert_can_create_stack(client, settings.name)
    if not can_create and not assert_can_update_stack(client, settings.name):
        LOG.error(f"Stack {settings.name} cannot be created nor updated.")
        return None
    client.create_change_set(
        StackName=settings.name,
        Capabilities=CAPABILITIES,
        TemplateBody=template_body,
        ChangeSetType="CREATE" if can_create else "UPDATE",
        ChangeSetName=change_set_name,
    )
    status = get_change_set_status(client, change_set_name, settings)
    if not status:
        return None
    if settings.auto_approve:
        apply_q = "y"
    else:
        apply_q = input("Want to apply? [yN]: ")
    if apply_q in ["y", "Y", "YES", "Yes", "yes"]:
        client.execute_change_set(
            ChangeSetName=change_set_name,
            StackName=settings.name,
            DisableRollback=settings.disable_rollback,
        )
        LOG.info(f"Change set {change_set_name} executing on {settings.name}")
    else:
        delete_q = input("Cleanup ChangeSet ? [yN]: ")
        if delete_q in ["y", "Y", "YES", "Yes", "yes"]:
            client.delete_change_set(
                ChangeSetName=change_set_name, StackName=settings.name
            )
    return status
