#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Security group shared by the load balancer and the service tasks.
Ingress is open to anyone on the listener port and on the container port, egress open to anywhere.
"""

from troposphere.ec2 import SecurityGroup, SecurityGroupRule

SECURITY_GROUP_T = "WebSecurityGroup"
ANYWHERE_CIDR = "0.0.0.0/0"


def unrestricted_egress() -> list:
    return [
        SecurityGroupRule(
            IpProtocol="-1", FromPort=0, ToPort=0, CidrIp=ANYWHERE_CIDR
        )
    ]


def tcp_ingress(ports: list) -> list:
    """
    One TCP rule from anywhere per distinct port, in the order given
    """
    rules = []
    for port in ports:
        if port in [rule.FromPort for rule in rules]:
            continue
        rules.append(
            SecurityGroupRule(
                IpProtocol="tcp", FromPort=port, ToPort=port, CidrIp=ANYWHERE_CIDR
            )
        )
    return rules


def add_security_group(deployment, vpc_id: str, ports: list) -> SecurityGroup:
    """
    :param ecs_webstack.engine.deployment.Deployment deployment:
    :param str vpc_id:
    :param list[int] ports: the ports to allow TCP traffic from anywhere on. The load balancer listener
      port and the container port, as both the load balancer and the tasks use this group.
    """
    if not ports:
        raise ValueError("At least one ingress port is required")
    ingress = tcp_ingress(ports)
    allowed = ",".join(str(rule.FromPort) for rule in ingress)
    return deployment.declare(
        SecurityGroup(
            SECURITY_GROUP_T,
            GroupDescription=f"{deployment.name} - Allows TCP/{allowed} from anywhere",
            VpcId=vpc_id,
            SecurityGroupIngress=ingress,
            SecurityGroupEgress=unrestricted_egress(),
        )
    )
