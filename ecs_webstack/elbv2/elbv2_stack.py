#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Load balancer, target group and listener, declared as a chain.
The target group type is ``ip`` as Fargate tasks are registered by IP address.
"""

from __future__ import annotations

from troposphere.elasticloadbalancingv2 import Action, Listener, LoadBalancer, TargetGroup

from ecs_webstack.common.logging import LOG
from ecs_webstack.elbv2.elbv2_params import (
    LB_PORT,
    LB_PROTOCOL,
    LB_T,
    LISTENER_T,
    TARGET_GROUP_T,
    TARGET_TYPE,
)


class LoadBalancerPipeline:
    """
    :ivar troposphere.elasticloadbalancingv2.LoadBalancer lb:
    :ivar troposphere.elasticloadbalancingv2.TargetGroup target_group:
    :ivar troposphere.elasticloadbalancingv2.Listener listener:
    :ivar ecs_webstack.engine.outputs.OutputHandle dns_name:
    :ivar ecs_webstack.engine.outputs.OutputHandle target_group_arn:
    """

    def __init__(self, deployment, network, security_group_id):
        """
        :param ecs_webstack.engine.deployment.Deployment deployment:
        :param ecs_webstack.vpc.vpc_aws.NetworkSettings network:
        :param ecs_webstack.engine.outputs.OutputHandle security_group_id:
        """
        self.lb = deployment.declare(
            LoadBalancer(
                LB_T,
                Subnets=list(network.subnet_ids),
                SecurityGroups=[security_group_id],
            )
        )
        self.dns_name = deployment.get_att(self.lb, "DNSName")
        self.target_group = deployment.declare(
            TargetGroup(
                TARGET_GROUP_T,
                Port=LB_PORT,
                Protocol=LB_PROTOCOL,
                TargetType=TARGET_TYPE,
                VpcId=network.vpc_id,
            )
        )
        self.target_group_arn = deployment.get_att(self.target_group, "TargetGroupArn")
        self.listener = deployment.declare(
            Listener(
                LISTENER_T,
                LoadBalancerArn=deployment.get_att(self.lb, "LoadBalancerArn"),
                Port=LB_PORT,
                Protocol=LB_PROTOCOL,
                DefaultActions=[
                    Action(Type="forward", TargetGroupArn=self.target_group_arn)
                ],
            )
        )
        LOG.debug(
            f"{self.listener.title} - {LB_PROTOCOL}/{LB_PORT} forwards to {self.target_group.title}"
        )
