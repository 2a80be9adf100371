#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Module to test the CloudFormation create/update/change-set calls against recorded responses
"""

from os import path

import boto3
import placebo
from botocore.exceptions import ClientError
from pytest import fixture, raises

from ecs_topology.common.aws import (
    assert_can_create_stack,
    assert_can_update_stack,
    deploy,
    get_stack_outputs,
    plan,
)
from ecs_topology.common.settings import TopologySettings
from ecs_topology.ecs_topology import generate_topology

HERE = path.abspath(path.dirname(__file__))
STACK_ID = "arn:aws:cloudformation:eu-west-1:012345678912:stack/myapp-stack/5a1b2c30-6d4e-11ee-8f3a-0a1b2c3d4e5f"


@fixture()
def graph():
    return generate_topology({"appName": "myapp"})


def create_settings(case_path, **kwargs):
    session = boto3.session.Session(
        aws_access_key_id="AKIAEXAMPLEPLACEBO",
        aws_secret_access_key="placebo",
        region_name="eu-west-1",
    )
    pill = placebo.attach(session, data_path=f"{HERE}/placebo/{case_path}")
    pill.playback()
    kwargs.update({TopologySettings.name_arg: "myapp-stack"})
    return TopologySettings(session=session, **kwargs)


def test_deploy_new_stack(graph):
    settings = create_settings("create", command="up")
    client = settings.session.client("cloudformation")
    assert assert_can_create_stack(client, settings.name) is True
    assert deploy(settings, graph) == STACK_ID


def test_deploy_existing_stack(graph):
    settings = create_settings("update", command="up")
    client = settings.session.client("cloudformation")
    assert assert_can_update_stack(client, settings.name) is True
    assert get_stack_outputs(client, settings.name) == {
        "AlbUrl": "http://myapp-alb-123456789.eu-west-1.elb.amazonaws.com"
    }
    assert deploy(settings, graph, graph.to_json()) == STACK_ID


def test_plan_new_stack(graph):
    settings = create_settings(
        "plan_create", command="plan", **{TopologySettings.yes_arg: True}
    )
    status = plan(settings, graph)
    assert status["Status"] == "CREATE_COMPLETE"
    assert len(status["Changes"]) == 2


def test_errors_are_not_wrapped():
    settings = create_settings("create")
    client = settings.session.client("cloudformation")
    with raises(ClientError):
        assert_can_update_stack(client, settings.name)


def test_deploy_stack_under_review(graph):
    settings = create_settings("review_in_progress", command="up")
    client = settings.session.client("cloudformation")
    stack = assert_can_create_stack(client, settings.name)
    assert stack["StackStatus"] == "REVIEW_IN_PROGRESS"
    assert deploy(settings, graph) is None
