#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Repository, registry credentials, image and the container definitions document derived from it.
"""

from __future__ import annotations

from functools import partial

from troposphere.ecr import Repository

from ecs_webstack.ecr import registry_id_from_uri
from ecs_webstack.ecr.ecr_credentials import get_registry_credentials
from ecs_webstack.ecr.ecr_image import DockerImage, ImageRegistry
from ecs_webstack.ecs.ecs_container import container_definitions_document
from ecs_webstack.ecs.ecs_params import CONTAINER_NAME

REPOSITORY_T = "AppRepo"
IMAGE_T = "AppImage"


class ImagePipeline:
    """
    :ivar troposphere.ecr.Repository repository:
    :ivar ecs_webstack.ecr.ecr_image.DockerImage image:
    :ivar ecs_webstack.engine.outputs.OutputHandle repository_uri:
    :ivar ecs_webstack.engine.outputs.OutputHandle credentials: the RegistryCredentials
    :ivar ecs_webstack.engine.outputs.OutputHandle image_name: the pushed image reference
    :ivar ecs_webstack.engine.outputs.OutputHandle container_definitions: the container definitions document
    """

    def __init__(self, deployment, settings, ecr_client):
        """
        :param ecs_webstack.engine.deployment.Deployment deployment:
        :param ecs_webstack.common.settings.DeploymentSettings settings:
        :param ecr_client: boto3 ECR client used to fetch the registry credentials
        """
        self.repository = deployment.declare(Repository(REPOSITORY_T))
        self.repository_uri = deployment.get_att(self.repository, "RepositoryUri")
        self.credentials = self.repository_uri.apply(
            registry_id_from_uri, label="RegistryId"
        ).apply(
            partial(get_registry_credentials, ecr_client), label="RegistryCredentials"
        )
        self.image = deployment.declare(
            DockerImage(
                IMAGE_T,
                Context=settings.build_context,
                ImageName=self.repository_uri,
                Tag=settings.image_tag,
                Registry=ImageRegistry(
                    Server=self.repository_uri,
                    Username=self.credentials[0],
                    Password=self.credentials[1],
                ),
            )
        )
        self.image_name = deployment.get_att(self.image, "ImageName")
        self.container_definitions = self.image_name.apply(
            partial(
                container_definitions_document,
                name=CONTAINER_NAME,
                port=settings.port,
            ),
            label="ContainerDefinitions",
        )
