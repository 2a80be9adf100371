#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Module to test the topology derived from the parameters, end to end.
"""

from pytest import fixture, raises

from ecs_topology.common.outputs import OUTPUTS_NAMES
from ecs_topology.ecr import REPOSITORY_T
from ecs_topology.ecs.ecs_image import BOOTSTRAP_IMAGE
from ecs_topology.ecs.ecs_params import (
    ALB_SG_T,
    CLUSTER_T,
    EXEC_ROLE_T,
    LOG_GROUP_T,
    SERVICE_SG_T,
    SERVICE_T,
    TASK_T,
)
from ecs_topology.ecs_topology import generate_topology
from ecs_topology.elbv2.elbv2_params import LB_T, LISTENER_T, TARGET_GROUP_T
from ecs_topology.exceptions import ConfigurationError, InvalidParameter
from ecs_topology.parameters import resolve_parameters


@fixture()
def graph():
    return generate_topology()


@fixture()
def registry_graph():
    return generate_topology({"appName": "shop", "bootstrapMode": "false"})


def get_container(graph):
    return graph.definition(TASK_T)["Properties"]["ContainerDefinitions"][0]


def test_default_topology_resources(graph):
    for title in [
        "Vpc",
        "PublicSubnetA",
        "PublicSubnetB",
        "PrivateSubnetA",
        "PrivateSubnetB",
        "NatGatewayAzA",
        CLUSTER_T,
        REPOSITORY_T,
        LOG_GROUP_T,
        EXEC_ROLE_T,
        TASK_T,
        ALB_SG_T,
        SERVICE_SG_T,
        LB_T,
        TARGET_GROUP_T,
        LISTENER_T,
        SERVICE_T,
    ]:
        assert title in graph.resources
    assert list(graph.outputs.keys()) == OUTPUTS_NAMES


def test_derived_names(graph):
    assert dict(graph.names) == {
        "cluster": "helloecs-cluster",
        "repository": "helloecs-repo",
        "service": "helloecs-service",
        "load_balancer": "helloecs-alb",
        "log_group": "/ecs/helloecs",
    }
    assert graph.definition(CLUSTER_T)["Properties"]["ClusterName"] == "helloecs-cluster"
    assert graph.definition(REPOSITORY_T)["Properties"]["RepositoryName"] == "helloecs-repo"
    assert graph.definition(SERVICE_T)["Properties"]["ServiceName"] == "helloecs-service"
    assert graph.definition(LB_T)["Properties"]["Name"] == "helloecs-alb"
    assert graph.definition(LOG_GROUP_T)["Properties"]["LogGroupName"] == "/ecs/helloecs"


def test_bootstrap_topology(graph):
    container = get_container(graph)
    assert container["Image"] == BOOTSTRAP_IMAGE
    assert container["Command"] == ["-listen=:8080", "-text=bootstrap-ok"]
    assert container["PortMappings"][0]["ContainerPort"] == 8080
    assert graph.definition(TARGET_GROUP_T)["Properties"]["HealthCheckPath"] == "/"


def test_registry_topology(registry_graph):
    container = get_container(registry_graph)
    assert container["Image"] == {"Fn::Sub": "${EcrRepository.RepositoryUri}:latest"}
    assert "Command" not in container
    assert (
        registry_graph.definition(TARGET_GROUP_T)["Properties"]["HealthCheckPath"]
        == "/actuator/health"
    )


def test_container_port_everywhere():
    graph = generate_topology({"containerPort": 3000})
    assert get_container(graph)["PortMappings"][0]["ContainerPort"] == 3000
    assert graph.definition(TARGET_GROUP_T)["Properties"]["Port"] == 3000
    assert graph.definition(SERVICE_T)["Properties"]["LoadBalancers"][0]["ContainerPort"] == 3000
    rule = graph.definition(SERVICE_SG_T)["Properties"]["SecurityGroupIngress"][0]
    assert rule["FromPort"] == 3000 and rule["ToPort"] == 3000
    assert graph.definition(LISTENER_T)["Properties"]["Port"] == 80


def test_task_sizing_and_environment():
    graph = generate_topology({"cpu": 1024, "memoryMiB": 2048, "desiredCount": 3})
    task = graph.definition(TASK_T)["Properties"]
    assert task["Cpu"] == "1024"
    assert task["Memory"] == "2048"
    assert task["NetworkMode"] == "awsvpc"
    assert task["RequiresCompatibilities"] == ["FARGATE"]
    assert task["ExecutionRoleArn"] == {"Fn::GetAtt": [EXEC_ROLE_T, "Arn"]}
    assert get_container(graph)["Environment"] == [
        {"Name": "SPRING_PROFILES_ACTIVE", "Value": "default"}
    ]
    assert graph.definition(SERVICE_T)["Properties"]["DesiredCount"] == 3


def test_service_in_private_subnets(graph):
    service = graph.definition(SERVICE_T)
    network = service["Properties"]["NetworkConfiguration"]["AwsvpcConfiguration"]
    assert network["AssignPublicIp"] == "DISABLED"
    assert network["Subnets"] == [{"Ref": "PrivateSubnetA"}, {"Ref": "PrivateSubnetB"}]
    assert service["DependsOn"] == [LISTENER_T]


def test_execution_role(graph):
    role = graph.definition(EXEC_ROLE_T)["Properties"]
    statement = role["AssumeRolePolicyDocument"]["Statement"][0]
    assert statement["Principal"]["Service"] == [
        {"Fn::Sub": "ecs-tasks.${AWS::URLSuffix}"}
    ]
    assert role["ManagedPolicyArns"] == [
        {
            "Fn::Sub": "arn:${AWS::Partition}:iam::aws:policy/service-role/AmazonECSTaskExecutionRolePolicy"
        }
    ]


def test_deletion_policies(graph):
    assert graph.definition(REPOSITORY_T)["DeletionPolicy"] == "Delete"
    assert graph.definition(REPOSITORY_T)["Properties"]["EmptyOnDelete"] is True
    assert graph.definition(LOG_GROUP_T)["DeletionPolicy"] == "Delete"
    assert graph.definition(LOG_GROUP_T)["Properties"]["RetentionInDays"] == 7


def test_outputs(graph):
    outputs = graph.to_dict()["Outputs"]
    assert outputs["AlbUrl"]["Value"] == {"Fn::Sub": f"http://${{{LB_T}.DNSName}}"}
    assert outputs["EcrRepoUri"]["Value"] == {"Fn::GetAtt": [REPOSITORY_T, "RepositoryUri"]}
    assert outputs["EcrRepoName"]["Value"] == {"Ref": REPOSITORY_T}
    assert outputs["ClusterName"]["Value"] == {"Ref": CLUSTER_T}
    assert outputs["ServiceName"]["Value"] == {"Fn::GetAtt": [SERVICE_T, "Name"]}


def test_deterministic_derivation():
    parameters = resolve_parameters({"appName": "myapp", "containerPort": "9000"})
    first = generate_topology(parameters)
    second = generate_topology(dict(appName="myapp", containerPort=9000))
    assert first == second
    assert first.to_json() == second.to_json()
    assert generate_topology() != first


def test_graph_is_read_only(graph):
    with raises(TypeError):
        graph.resources["Extra"] = graph.resources[CLUSTER_T]
    with raises(TypeError):
        del graph.outputs["AlbUrl"]


def test_creation_order(graph):
    ordered = graph.ordered_titles
    assert set(ordered) == set(graph.resources.keys())
    for title, dependencies in graph.dependencies.items():
        for dependency in dependencies:
            assert ordered.index(dependency) < ordered.index(title)
    assert ordered.index(LISTENER_T) < ordered.index(SERVICE_T)
    assert ordered.index("PublicDefaultRoute") < ordered.index(LB_T)


def test_listener_port_collision():
    with raises(ConfigurationError):
        generate_topology({"containerPort": 80})


def test_invalid_input():
    with raises(InvalidParameter):
        generate_topology({"cpu": 256, "memoryMiB": 8192})
    with raises(InvalidParameter):
        generate_topology({"containerPort": "http"})
