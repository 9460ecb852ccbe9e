#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
ECS Service running the task definition behind the load balancer.
"""

from troposphere.ecs import (
    AwsvpcConfiguration,
    LoadBalancer,
    NetworkConfiguration,
    Service,
)

from ecs_webstack.common.logging import LOG
from ecs_webstack.ecs.ecs_params import CONTAINER_NAME, LAUNCH_TYPE, SERVICE_T


def add_ecs_service(
    deployment,
    settings,
    cluster,
    task_definition,
    network,
    security_group_id,
    target_group_arn,
    listener,
) -> Service:
    """
    Declares the ECS Service. The service is ordered after the listener: registering targets in a target
    group no listener forwards to leaves them unreachable, and the service does not consume any listener
    output that would order it implicitly.

    :param ecs_webstack.engine.deployment.Deployment deployment:
    :param ecs_webstack.common.settings.DeploymentSettings settings:
    :param troposphere.ecs.Cluster cluster:
    :param troposphere.ecs.TaskDefinition task_definition:
    :param ecs_webstack.vpc.vpc_aws.NetworkSettings network:
    :param ecs_webstack.engine.outputs.OutputHandle security_group_id:
    :param ecs_webstack.engine.outputs.OutputHandle target_group_arn:
    :param troposphere.elasticloadbalancingv2.Listener listener:
    :rtype: troposphere.ecs.Service
    """
    service = deployment.declare(
        Service(
            SERVICE_T,
            Cluster=deployment.get_att(cluster, "Arn"),
            DesiredCount=settings.replicas,
            LaunchType=LAUNCH_TYPE,
            TaskDefinition=deployment.get_att(task_definition, "TaskDefinitionArn"),
            NetworkConfiguration=NetworkConfiguration(
                AwsvpcConfiguration=AwsvpcConfiguration(
                    AssignPublicIp="ENABLED",
                    Subnets=list(network.subnet_ids),
                    SecurityGroups=[security_group_id],
                )
            ),
            LoadBalancers=[
                LoadBalancer(
                    TargetGroupArn=target_group_arn,
                    ContainerName=CONTAINER_NAME,
                    ContainerPort=settings.port,
                )
            ],
        )
    )
    deployment.depends_on(service, listener)
    LOG.debug(f"{service.title} - {settings.replicas} replicas, after {listener.title}")
    return service
