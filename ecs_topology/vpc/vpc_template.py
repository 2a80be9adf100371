#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Create the VPC and its associated resources

RTB -> Route Table

Public subnet type: All subnets use the same RTB, route to 0.0.0.0/0 via InternetGateway
Private subnet type: Each subnet has its own RTB, each RTB points to the NAT Gateway(s). With a single
NAT gateway, all the private RTBs route through the one in the first public subnet.
"""

from __future__ import annotations

from troposphere import GetAZs, GetAtt, Ref, Select, Sub, Tags
from troposphere.ec2 import EIP
from troposphere.ec2 import VPC as VPCType
from troposphere.ec2 import (
    InternetGateway,
    NatGateway,
    Route,
    RouteTable,
    Subnet,
    SubnetRouteTableAssociation,
    VPCGatewayAttachment,
)

from ecs_topology.common import az_index_letters
from ecs_topology.common.logging import LOG
from ecs_topology.vpc import metadata
from ecs_topology.vpc.vpc_maths import get_subnet_layers
from ecs_topology.vpc.vpc_params import (
    AZS_COUNT,
    DEFAULT_ROUTE_CIDR,
    DEFAULT_VPC_CIDR,
    IGW_ATTACHMENT_T,
    IGW_T,
    NAT_EIP_T,
    NAT_GATEWAY_T,
    NAT_GATEWAYS_COUNT,
    PRIVATE_ROUTE_T,
    PRIVATE_RTB_T,
    PRIVATE_SUBNET_ASSOC_T,
    PRIVATE_SUBNET_T,
    PRIVATE_TIER,
    PUBLIC_ROUTE_T,
    PUBLIC_RTB_T,
    PUBLIC_SUBNET_ASSOC_T,
    PUBLIC_SUBNET_T,
    PUBLIC_TIER,
    VPC_T,
)


class Network:
    """
    The VPC and its subnets tiers.

    :ivar troposphere.ec2.VPC vpc:
    :ivar list[troposphere.ec2.Subnet] public_subnets: subnets where the load balancer lives
    :ivar list[troposphere.ec2.Subnet] private_subnets: subnets with egress via NAT, for the service
    :ivar troposphere.ec2.Route public_route: route to the internet gateway
    :ivar list resources: all the resources, in creation order
    """

    def __init__(
        self,
        name: str,
        vpc_cidr: str = DEFAULT_VPC_CIDR,
        azs_count: int = AZS_COUNT,
        nat_gateways: int = NAT_GATEWAYS_COUNT,
    ):
        if not 1 <= nat_gateways <= azs_count:
            raise ValueError(
                f"Number of NAT gateways must be between 1 and {azs_count}. Got {nat_gateways}"
            )
        self.name = name
        self.cidr = vpc_cidr
        self.azs_count = azs_count
        self.nat_gateways_count = nat_gateways
        self.layers = get_subnet_layers(vpc_cidr, azs_count)
        self.az_index = az_index_letters(azs_count)
        self.resources = []
        self.public_subnets = []
        self.private_subnets = []
        self.nat_gateways = []
        self.vpc, self.igw, self.igw_attachment = self.add_vpc_core()
        self.public_route = self.add_public_subnets()
        self.add_private_subnets()
        LOG.debug(f"{self.name} - VPC {vpc_cidr} subnets layers {self.layers}")

    def add(self, resource):
        self.resources.append(resource)
        return resource

    def subnet_tags(self, tier: str, index: str) -> Tags:
        return Tags(
            Name=Sub(f"${{AWS::StackName}}-{tier}-{index.lower()}"),
            **{"vpc::usage": tier},
        )

    def add_vpc_core(self):
        """
        Creates the core resources of the VPC

        :return: tuple() with the vpc, igw and the igw attachment objects
        """
        vpc = self.add(
            VPCType(
                VPC_T,
                CidrBlock=self.cidr,
                EnableDnsHostnames=True,
                EnableDnsSupport=True,
                Tags=Tags(Name=Sub("${AWS::StackName}"), EnvironmentName=self.name),
                Metadata=metadata,
            )
        )
        igw = self.add(InternetGateway(IGW_T, Metadata=metadata))
        attachment = self.add(
            VPCGatewayAttachment(
                IGW_ATTACHMENT_T,
                InternetGatewayId=Ref(igw),
                VpcId=Ref(vpc),
                Metadata=metadata,
            )
        )
        return vpc, igw, attachment

    def add_public_subnets(self) -> Route:
        """
        Adds the public subnets, their shared route table and the NAT gateways

        :return: the default route to the internet gateway
        """
        rtb = self.add(
            RouteTable(
                PUBLIC_RTB_T,
                VpcId=Ref(self.vpc),
                Tags=Tags(Name="PublicRtb", **{"vpc::usage": PUBLIC_TIER}),
                Metadata=metadata,
            )
        )
        route = self.add(
            Route(
                PUBLIC_ROUTE_T,
                GatewayId=Ref(self.igw),
                RouteTableId=Ref(rtb),
                DestinationCidrBlock=DEFAULT_ROUTE_CIDR,
                DependsOn=[self.igw_attachment.title],
            )
        )
        for count, (index, subnet_cidr) in enumerate(
            zip(self.az_index, self.layers[PUBLIC_TIER])
        ):
            subnet = self.add(
                Subnet(
                    f"{PUBLIC_SUBNET_T}{index}",
                    CidrBlock=subnet_cidr,
                    VpcId=Ref(self.vpc),
                    AvailabilityZone=Select(count, GetAZs("")),
                    MapPublicIpOnLaunch=True,
                    Tags=self.subnet_tags(PUBLIC_TIER, index),
                    Metadata=metadata,
                )
            )
            self.add(
                SubnetRouteTableAssociation(
                    f"{PUBLIC_SUBNET_ASSOC_T}{index}",
                    RouteTableId=Ref(rtb),
                    SubnetId=Ref(subnet),
                )
            )
            if len(self.nat_gateways) < self.nat_gateways_count:
                eip = self.add(
                    EIP(
                        f"{NAT_EIP_T}{index}",
                        Domain="vpc",
                        DependsOn=[self.igw_attachment.title],
                    )
                )
                self.nat_gateways.append(
                    self.add(
                        NatGateway(
                            f"{NAT_GATEWAY_T}{index}",
                            AllocationId=GetAtt(eip, "AllocationId"),
                            SubnetId=Ref(subnet),
                            DependsOn=[route.title],
                            Metadata=metadata,
                        )
                    )
                )
            self.public_subnets.append(subnet)
        return route

    def add_private_subnets(self):
        """
        Adds the private subnets, each with its own route table pointing to a NAT gateway.
        With fewer NAT gateways than AZs, subnets share them in round-robin.
        """
        for count, (index, subnet_cidr) in enumerate(
            zip(self.az_index, self.layers[PRIVATE_TIER])
        ):
            nat = self.nat_gateways[count % len(self.nat_gateways)]
            subnet = self.add(
                Subnet(
                    f"{PRIVATE_SUBNET_T}{index}",
                    CidrBlock=subnet_cidr,
                    VpcId=Ref(self.vpc),
                    AvailabilityZone=Select(count, GetAZs("")),
                    MapPublicIpOnLaunch=False,
                    Tags=self.subnet_tags(PRIVATE_TIER, index),
                    Metadata=metadata,
                )
            )
            rtb = self.add(
                RouteTable(
                    f"{PRIVATE_RTB_T}{index}",
                    VpcId=Ref(self.vpc),
                    Tags=Tags(
                        Name=f"{PRIVATE_RTB_T}{index}",
                        **{"vpc::usage": PRIVATE_TIER},
                    ),
                    Metadata=metadata,
                )
            )
            self.add(
                Route(
                    f"{PRIVATE_ROUTE_T}{index}",
                    NatGatewayId=Ref(nat),
                    RouteTableId=Ref(rtb),
                    DestinationCidrBlock=DEFAULT_ROUTE_CIDR,
                )
            )
            self.add(
                SubnetRouteTableAssociation(
                    f"{PRIVATE_SUBNET_ASSOC_T}{index}",
                    SubnetId=Ref(subnet),
                    RouteTableId=Ref(rtb),
                    Metadata=metadata,
                )
            )
            self.private_subnets.append(subnet)
