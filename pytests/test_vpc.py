#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Module to test the VPC subnets maths and the network resources
"""

from pytest import raises

from ecs_topology.common import az_index_letters
from ecs_topology.vpc.vpc_maths import get_subnet_layers, get_subnets, nxtpow2
from ecs_topology.vpc.vpc_params import PRIVATE_TIER, PUBLIC_TIER
from ecs_topology.vpc.vpc_template import Network


def test_nxtpow2():
    assert nxtpow2(3) == 4
    assert nxtpow2(4) == 4
    assert nxtpow2(5) == 8


def test_default_layers():
    layers = get_subnet_layers("10.0.0.0/16", 2)
    assert layers[PUBLIC_TIER] == ["10.0.0.0/18", "10.0.64.0/18"]
    assert layers[PRIVATE_TIER] == ["10.0.128.0/18", "10.0.192.0/18"]


def test_three_azs_layers():
    layers = get_subnets("10.0.0.0/16", 3)
    assert all(subnet.prefixlen == 19 for subnet in layers[PUBLIC_TIER])
    assert len(layers[PRIVATE_TIER]) == 3


def test_too_small_vpc():
    with raises(ValueError):
        get_subnets("10.0.0.0/27", 2)
    with raises(ValueError):
        get_subnets("10.0.0.0/16", 0)


def test_az_letters():
    assert az_index_letters(3) == ["A", "B", "C"]


def test_network_resources():
    network = Network("myapp")
    titles = [resource.title for resource in network.resources]
    assert len(titles) == len(set(titles))
    assert [subnet.title for subnet in network.public_subnets] == [
        "PublicSubnetA",
        "PublicSubnetB",
    ]
    assert [subnet.title for subnet in network.private_subnets] == [
        "PrivateSubnetA",
        "PrivateSubnetB",
    ]
    assert len(network.nat_gateways) == 1
    nat = network.nat_gateways[0].to_dict()
    assert nat["Properties"]["SubnetId"] == {"Ref": "PublicSubnetA"}


def test_private_routes_via_nat():
    network = Network("myapp")
    routes = [
        resource.to_dict()
        for resource in network.resources
        if resource.title.startswith("PrivateDefaultRoute")
    ]
    assert len(routes) == 2
    for route in routes:
        assert route["Properties"]["NatGatewayId"] == {"Ref": "NatGatewayAzA"}
        assert route["Properties"]["DestinationCidrBlock"] == "0.0.0.0/0"


def test_subnets_availability_zones():
    network = Network("myapp")
    azs = [
        subnet.to_dict()["Properties"]["AvailabilityZone"]
        for subnet in network.public_subnets
    ]
    assert azs == [
        {"Fn::Select": [0, {"Fn::GetAZs": ""}]},
        {"Fn::Select": [1, {"Fn::GetAZs": ""}]},
    ]


def test_invalid_nat_gateways_count():
    with raises(ValueError):
        Network("myapp", nat_gateways=3)
