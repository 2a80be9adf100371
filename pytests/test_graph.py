#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Module to test that the consistency checks reject graphs assembled with broken links.
"""

from pytest import fixture, raises
from troposphere import GetAtt, Ref
from troposphere.ec2 import SecurityGroup, SecurityGroupRule
from troposphere.ecs import Cluster

from ecs_topology.common.graph import TopologyGraph, find_references
from ecs_topology.ecr import define_repository
from ecs_topology.ecs.ecs_image import select_image
from ecs_topology.ecs.ecs_params import CLUSTER_T, SERVICE_SG_T, SERVICE_T, TASK_T
from ecs_topology.ecs.ecs_service import define_service
from ecs_topology.ecs_topology import generate_topology
from ecs_topology.elbv2.elbv2_params import LB_T, LISTENER_T, TARGET_GROUP_T
from ecs_topology.elbv2.elbv2_routing import define_target_group
from ecs_topology.exceptions import CompositionError
from ecs_topology.topology_checks import validate_topology


@fixture()
def graph():
    return generate_topology({"appName": "myapp"})


def rebuild(graph, replacements=None, excluded=None, image_selection=None):
    """
    Builds a new graph from the resources of the given one, with some of them swapped or left out
    """
    replacements = replacements if replacements else {}
    excluded = excluded if excluded else []
    resources = [
        replacements.get(title, resource)
        for title, resource in graph.resources.items()
        if title not in excluded
    ]
    return TopologyGraph(
        graph.parameters,
        resources,
        graph.outputs,
        image_selection if image_selection else graph.image_selection,
        graph.names,
    )


def test_find_references():
    definition = {
        "Properties": {
            "A": {"Ref": "Vpc"},
            "B": {"Fn::GetAtt": ["Role", "Arn"]},
            "C": {"Fn::Sub": "${AWS::StackName}-${Repo.RepositoryUri}-${!Literal}"},
            "D": [{"Ref": "AWS::Region"}],
        }
    }
    assert find_references(definition) == {"Vpc", "Role", "Repo"}


def test_valid_graph(graph):
    validate_topology(rebuild(graph))


def test_duplicate_title(graph):
    resources = list(graph.resources.values())
    with raises(CompositionError):
        TopologyGraph(
            graph.parameters,
            resources + [resources[0]],
            graph.outputs,
            graph.image_selection,
        )


def test_dangling_reference(graph):
    with raises(CompositionError):
        validate_topology(rebuild(graph, excluded=[CLUSTER_T]))


def test_missing_resource(graph):
    broken = rebuild(graph)
    with raises(CompositionError):
        broken.definition("NotInTheTopology")


def test_references_cycle(graph):
    cluster = Cluster(CLUSTER_T, ClusterName="myapp-cluster", DependsOn=[SERVICE_T])
    with raises(CompositionError):
        rebuild(graph, {CLUSTER_T: cluster}).ordered_titles


def test_target_group_port_mismatch(graph):
    target_group = define_target_group(graph.resources["Vpc"], 9090, "/")
    with raises(CompositionError):
        validate_topology(rebuild(graph, {TARGET_GROUP_T: target_group}))


def test_service_boundary_from_address_range(graph):
    service_sg = SecurityGroup(
        SERVICE_SG_T,
        GroupDescription="Open service",
        VpcId=Ref(graph.resources["Vpc"]),
        SecurityGroupIngress=[
            SecurityGroupRule(
                IpProtocol="tcp", FromPort=8080, ToPort=8080, CidrIp="0.0.0.0/0"
            )
        ],
    )
    with raises(CompositionError):
        validate_topology(rebuild(graph, {SERVICE_SG_T: service_sg}))


def test_image_selection_mismatch(graph):
    registry = select_image(False, define_repository("myapp"), 8080)
    with raises(CompositionError):
        validate_topology(rebuild(graph, image_selection=registry))


def test_service_in_public_subnets(graph):
    resources = graph.resources
    service = define_service(
        graph.parameters,
        resources[CLUSTER_T],
        resources[TASK_T],
        [resources["PublicSubnetA"], resources["PublicSubnetB"]],
        resources[SERVICE_SG_T],
        resources[TARGET_GROUP_T],
        resources[LISTENER_T],
    )
    with raises(CompositionError):
        validate_topology(rebuild(graph, {SERVICE_T: service}))


def test_invalid_resource_definition(graph):
    service_sg = SecurityGroup(SERVICE_SG_T, VpcId=GetAtt("Vpc", "VpcId"))
    with raises(CompositionError):
        rebuild(graph, {SERVICE_SG_T: service_sg})


def test_service_without_load_balancers(graph):
    service = graph.resources[SERVICE_T]
    del service.properties["LoadBalancers"]
    with raises(CompositionError):
        validate_topology(rebuild(graph, {SERVICE_T: service}))


def test_container_without_port_mappings(graph):
    task = graph.resources[TASK_T]
    del task.properties["ContainerDefinitions"][0].properties["PortMappings"]
    with raises(CompositionError):
        validate_topology(rebuild(graph, {TASK_T: task}))


def test_load_balancer_in_private_subnets(graph):
    load_balancer = graph.resources[LB_T]
    load_balancer.Subnets = [Ref("PrivateSubnetA"), Ref("PrivateSubnetB")]
    with raises(CompositionError):
        validate_topology(rebuild(graph, {LB_T: load_balancer}))


@fixture()
def open_ingress():
    return [
        SecurityGroupRule(IpProtocol="tcp", FromPort=8080, ToPort=8080, CidrIp="0.0.0.0/0")
    ]


def test_graph_resources_are_copies(graph, open_ingress):
    rendered = graph.to_dict()
    graph.resources[SERVICE_SG_T].SecurityGroupIngress = open_ingress
    graph.to_template().resources[SERVICE_SG_T].SecurityGroupIngress = open_ingress
    assert graph.to_dict() == rendered


def test_render_only_validated_resources(graph, open_ingress):
    resources = list(graph.resources.values())
    validated = TopologyGraph(
        graph.parameters, resources, graph.outputs, graph.image_selection, graph.names
    )
    validate_topology(validated)
    rendered = validated.to_json()
    for resource in resources:
        if resource.title == SERVICE_SG_T:
            resource.SecurityGroupIngress = open_ingress
    assert validated.to_json() == rendered
    rule = validated.to_dict()["Resources"][SERVICE_SG_T]["Properties"][
        "SecurityGroupIngress"
    ][0]
    assert "CidrIp" not in rule
    assert rule == validated.definition(SERVICE_SG_T)["Properties"]["SecurityGroupIngress"][0]
