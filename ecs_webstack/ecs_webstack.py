#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Main module generating the deployment graph of the web service.
"""

from __future__ import annotations

from ecs_webstack.common.logging import LOG
from ecs_webstack.common.settings import DeploymentSettings
from ecs_webstack.ecr.ecr_stack import ImagePipeline
from ecs_webstack.ecs.ecs_cluster import add_ecs_cluster
from ecs_webstack.ecs.ecs_service import add_ecs_service
from ecs_webstack.ecs.ecs_task import add_task_definition
from ecs_webstack.elbv2.elbv2_params import LB_PORT
from ecs_webstack.elbv2.elbv2_stack import LoadBalancerPipeline
from ecs_webstack.engine.deployment import Deployment
from ecs_webstack.engine.engine import Engine
from ecs_webstack.engine.provisioners import (
    CloudControlProvisioner,
    DeploymentState,
    Provisioner,
)
from ecs_webstack.iam.iam_exec_role import ExecutionRole
from ecs_webstack.vpc.vpc_aws import NetworkSettings, lookup_default_network
from ecs_webstack.vpc.vpc_security import add_security_group

URL_OUTPUT = "url"


def generate_deployment(
    settings: DeploymentSettings,
    network: NetworkSettings = None,
    ecr_client=None,
) -> Deployment:
    """
    Declares all the resources of the web service. Nothing is realized.

    :param DeploymentSettings settings:
    :param NetworkSettings network: skips the default VPC lookup when set
    :param ecr_client: boto3 ECR client to fetch the registry credentials with
    :rtype: Deployment
    """
    if network is None:
        network = lookup_default_network(settings.session)
    if ecr_client is None:
        ecr_client = settings.session.client("ecr")
    deployment = Deployment(settings.name)

    security_group = add_security_group(
        deployment, network.vpc_id, [LB_PORT, settings.port]
    )
    security_group_id = deployment.get_att(security_group, "GroupId")
    cluster = add_ecs_cluster(deployment)
    execution_role = ExecutionRole(deployment)
    load_balancing = LoadBalancerPipeline(deployment, network, security_group_id)
    image = ImagePipeline(deployment, settings, ecr_client)
    task_definition = add_task_definition(
        deployment, execution_role.arn, image.container_definitions
    )
    add_ecs_service(
        deployment,
        settings,
        cluster,
        task_definition,
        network,
        security_group_id,
        load_balancing.target_group_arn,
        load_balancing.listener,
    )
    deployment.export(URL_OUTPUT, load_balancing.dns_name)
    LOG.info(f"{deployment.name} - Declared {len(deployment.resources)} resources")
    return deployment


def deploy(
    settings: DeploymentSettings,
    deployment: Deployment,
    provisioner: Provisioner = None,
) -> dict:
    """
    Realizes the deployment and returns its exported outputs

    :param DeploymentSettings settings:
    :param Deployment deployment:
    :param Provisioner provisioner: defaults to the Cloud Control provisioner
    :rtype: dict
    """
    if provisioner is None:
        provisioner = CloudControlProvisioner(
            session=settings.session,
            state=DeploymentState(settings.state_file),
            poll_interval=settings.poll_interval,
        )
    return Engine(provisioner, max_workers=settings.max_workers).run(deployment)
