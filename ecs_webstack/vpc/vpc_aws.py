#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Lookup of the default VPC and its subnets. Done when declaring the deployment, so the values are known
by all the resources that use them.
"""

from __future__ import annotations

from typing import NamedTuple, Tuple

from boto3.session import Session
from compose_x_common.compose_x_common import keyisset

from ecs_webstack.common.logging import LOG

DEFAULT_VPC_FILTER = {"Name": "isDefault", "Values": ["true"]}


class NetworkSettings(NamedTuple):
    vpc_id: str
    subnet_ids: Tuple[str, ...]


def lookup_default_vpc_id(client) -> str:
    """
    Finds the default VPC of the account in the region.

    :param client: boto3 EC2 client
    :raises: LookupError if there is no default VPC, or more than one
    """
    vpcs_r = client.describe_vpcs(Filters=[DEFAULT_VPC_FILTER])
    if not keyisset("Vpcs", vpcs_r):
        raise LookupError(
            "No default VPC found in region", client.meta.region_name
        )
    if len(vpcs_r["Vpcs"]) > 1:
        raise LookupError(
            "More than one default VPC found. Found",
            [vpc["VpcId"] for vpc in vpcs_r["Vpcs"]],
        )
    return vpcs_r["Vpcs"][0]["VpcId"]


def lookup_vpc_subnets(client, vpc_id: str) -> tuple:
    """
    Lists the subnets of the VPC, in the order EC2 returns them.

    :param client: boto3 EC2 client
    :param str vpc_id:
    :raises: LookupError if the VPC has no subnet
    """
    subnet_ids = []
    paginator = client.get_paginator("describe_subnets")
    for page in paginator.paginate(Filters=[{"Name": "vpc-id", "Values": [vpc_id]}]):
        for subnet in page["Subnets"]:
            subnet_ids.append(subnet["SubnetId"])
    if not subnet_ids:
        raise LookupError(f"No subnets found in {vpc_id}")
    return tuple(subnet_ids)


def lookup_default_network(session: Session = None) -> NetworkSettings:
    """
    :param boto3.session.Session session:
    :rtype: NetworkSettings
    """
    if session is None:
        session = Session()
    client = session.client("ec2")
    vpc_id = lookup_default_vpc_id(client)
    subnet_ids = lookup_vpc_subnets(client, vpc_id)
    LOG.info(f"Default VPC {vpc_id} - Subnets {', '.join(subnet_ids)}")
    return NetworkSettings(vpc_id, subnet_ids)
