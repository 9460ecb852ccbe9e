#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Docker image build and push, declared as a resource of the deployment so that it happens once the
repository exists and the registry credentials are known.
"""

from __future__ import annotations

import docker
from troposphere import AWSObject, AWSProperty

from ecs_webstack.common.logging import LOG
from ecs_webstack.exceptions import ImageBuildError

IMAGE_TYPE = "ECSWebStack::Docker::Image"


class ImageRegistry(AWSProperty):
    props = {
        "Server": (str, True),
        "Username": (str, True),
        "Password": (str, True),
    }


class DockerImage(AWSObject):
    """
    Image built from the Context directory and pushed to ImageName
    """

    resource_type = IMAGE_TYPE

    props = {
        "Context": (str, True),
        "ImageName": (str, True),
        "Registry": (ImageRegistry, True),
        "Tag": (str, False),
    }


class ImageBuilder:
    """
    Builds and pushes images with the local docker engine.

    :ivar docker.DockerClient client:
    """

    def __init__(self, client: docker.DockerClient = None):
        self._client = client

    @property
    def client(self) -> docker.DockerClient:
        if self._client is None:
            try:
                self._client = docker.from_env()
            except docker.errors.DockerException as error:
                raise ImageBuildError(
                    "Failed to connect to any docker engine.", str(error)
                ) from error
        return self._client

    def build(self, context: str, image_uri: str) -> None:
        LOG.info(f"Building {image_uri} from {context}")
        try:
            image, logs = self.client.images.build(path=context, tag=image_uri, rm=True)
        except docker.errors.BuildError as error:
            raise ImageBuildError(
                f"Failed to build {image_uri} from {context}", error.msg
            ) from error
        except (docker.errors.APIError, docker.errors.DockerException, TypeError) as error:
            raise ImageBuildError(
                f"Failed to build {image_uri} from {context}", str(error)
            ) from error
        for line in logs:
            if "stream" in line and line["stream"].strip():
                LOG.debug(line["stream"].strip())
        LOG.info(f"Built {image_uri} - {image.id}")

    def push(self, repository: str, tag: str, registry: dict) -> str:
        """
        Pushes the image and returns the digest reported by the registry, if any.

        :param str repository:
        :param str tag:
        :param dict registry: Server, Username and Password
        :rtype: str
        """
        auth_config = {
            "username": registry["Username"],
            "password": registry["Password"],
            "serveraddress": registry["Server"],
        }
        digest = None
        try:
            for line in self.client.images.push(
                repository, tag=tag, auth_config=auth_config, stream=True, decode=True
            ):
                if "error" in line:
                    raise ImageBuildError(
                        f"Failed to push {repository}:{tag}",
                        line.get("errorDetail", {}).get("message", line["error"]),
                    )
                if "aux" in line and "Digest" in line["aux"]:
                    digest = line["aux"]["Digest"]
        except (docker.errors.APIError, docker.errors.DockerException) as error:
            raise ImageBuildError(
                f"Failed to push {repository}:{tag}", str(error)
            ) from error
        return digest

    def build_and_push(
        self, context: str, repository: str, tag: str, registry: dict
    ) -> str:
        """
        :param str context: path to the docker build context
        :param str repository: URI of the repository to push to
        :param str tag:
        :param dict registry: Server, Username and Password
        :return: the pushed image reference, with the digest when the registry returned one
        :rtype: str
        """
        self.build(context, f"{repository}:{tag}")
        digest = self.push(repository, tag, registry)
        if digest:
            image_ref = f"{repository}@{digest}"
        else:
            LOG.warning(f"No digest returned for {repository}:{tag}. Using the tag")
            image_ref = f"{repository}:{tag}"
        LOG.info(f"Pushed {image_ref}")
        return image_ref
