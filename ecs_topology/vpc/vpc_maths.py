#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Subnets calculator for the 2 tiers (public, private with egress) VPC
"""

import ipaddress
from math import ceil, log

from ecs_topology.vpc.vpc_params import SUBNET_TIERS


def nxtpow2(x):
    """Function to find the next power of two from given x number

    :param x: number to look for the next power of two

    :returns: next power of two number
    """
    return int(pow(2, ceil(log(x, 2))))


def get_subnets(cidr, azs, tiers=None):
    """
    Cuts the VPC range in equal parts, one per tier and per AZ.
    Subnets are allocated tier by tier, so that all the public subnets come first.

    :param str cidr: the VPC CIDR, i.e. 10.0.0.0/16
    :param int azs: number of availability zones
    :param list tiers: names of the subnet tiers
    :return: dict of tier name to list of ipaddress.IPv4Network
    :raises ValueError: if the VPC range is too small to fit all the subnets
    """
    if tiers is None:
        tiers = SUBNET_TIERS
    vpc_net = ipaddress.IPv4Network(f"{cidr}")
    if azs < 1:
        raise ValueError("There must be at least one AZ. Got", azs)
    prefix_diff = int(log(nxtpow2(azs * len(tiers)), 2))
    new_prefix = vpc_net.prefixlen + prefix_diff
    if new_prefix > 28:
        raise ValueError(
            f"VPC CIDR {cidr} is too small for {azs * len(tiers)} subnets. Smallest subnet is /28"
        )
    subnets = list(vpc_net.subnets(new_prefix=new_prefix))
    layers_cidr = {}
    for count, tier in enumerate(tiers):
        layers_cidr[tier] = subnets[count * azs : (count + 1) * azs]
    return layers_cidr


def get_subnet_layers(cidr, azs, tiers=None):
    """
    Get Subnets layers CIDRs as strings based on number of AZs
    """
    layers = get_subnets(cidr, azs, tiers)
    return {layer: [f"{subnet}" for subnet in subnets] for layer, subnets in layers.items()}
