#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

from behave import then

from ecs_topology import exceptions
from ecs_topology.ecs.ecs_params import SERVICE_SG_T, SERVICE_T, TASK_T
from ecs_topology.ecs_topology import generate_topology
from ecs_topology.elbv2.elbv2_params import LISTENER_T, TARGET_GROUP_T


def get_container(graph):
    return graph.definition(TASK_T)["Properties"]["ContainerDefinitions"][0]


@then("the container image is {image}")
def step_impl(context, image):
    container = get_container(context.graph)
    if image == "registry":
        assert container["Image"] == {
            "Fn::Sub": "${EcrRepository.RepositoryUri}:latest"
        }
        assert "Command" not in container
    else:
        assert container["Image"] == image
        assert container["Command"]


@then("the target group health check path is {path}")
def step_impl(context, path):
    props = context.graph.definition(TARGET_GROUP_T)["Properties"]
    assert props["HealthCheckPath"] == path


@then("all the container ports are {port:d}")
def step_impl(context, port):
    graph = context.graph
    rule = graph.definition(SERVICE_SG_T)["Properties"]["SecurityGroupIngress"][0]
    assert get_container(graph)["PortMappings"][0]["ContainerPort"] == port
    assert graph.definition(TARGET_GROUP_T)["Properties"]["Port"] == port
    assert (
        graph.definition(SERVICE_T)["Properties"]["LoadBalancers"][0]["ContainerPort"]
        == port
    )
    assert rule["FromPort"] == port and rule["ToPort"] == port


@then("the listener port is {port:d}")
def step_impl(context, port):
    assert context.graph.definition(LISTENER_T)["Properties"]["Port"] == port


@then("deriving the topology fails with {error}")
def step_impl(context, error):
    error_class = getattr(exceptions, error)
    try:
        generate_topology(context.settings.context)
    except error_class:
        return
    raise AssertionError(f"No {error} raised for {context.settings.context}")
