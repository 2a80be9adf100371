#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Titles and settings related to the VPC. Used by ecs_topology.vpc and others
"""

DEFAULT_VPC_CIDR = "10.0.0.0/16"
AZS_COUNT = 2
NAT_GATEWAYS_COUNT = 1

PUBLIC_TIER = "public"
PRIVATE_TIER = "private-with-egress"
SUBNET_TIERS = [PUBLIC_TIER, PRIVATE_TIER]

DEFAULT_ROUTE_CIDR = "0.0.0.0/0"

VPC_T = "Vpc"
IGW_T = "InternetGatewayV4"
IGW_ATTACHMENT_T = "VpcGatewayAttachment"
PUBLIC_RTB_T = "PublicRtb"
PUBLIC_ROUTE_T = "PublicDefaultRoute"
PUBLIC_SUBNET_T = "PublicSubnet"
PUBLIC_SUBNET_ASSOC_T = "PublicSubnetsRtbAssoc"
PRIVATE_SUBNET_T = "PrivateSubnet"
PRIVATE_RTB_T = "PrivateRtb"
PRIVATE_ROUTE_T = "PrivateDefaultRoute"
PRIVATE_SUBNET_ASSOC_T = "PrivateSubnetAssoc"
NAT_EIP_T = "NatGatewayEip"
NAT_GATEWAY_T = "NatGatewayAz"
