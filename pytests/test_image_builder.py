#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

from unittest import mock

import docker
import pytest

from ecs_webstack.ecr.ecr_image import ImageBuilder
from ecs_webstack.exceptions import ImageBuildError

from .conftest import IMAGE_DIGEST, REPOSITORY_URI

REGISTRY = {
    "Server": REPOSITORY_URI,
    "Username": "AWS",
    "Password": "secrettoken",
}


@pytest.fixture
def docker_client():
    client = mock.MagicMock()
    client.images.build.return_value = (
        mock.MagicMock(id="sha256:0123456789ab"),
        iter([{"stream": "Step 1/2 : FROM nginx:alpine\n"}, {"stream": "\n"}]),
    )
    client.images.push.return_value = iter(
        [
            {"status": "Pushing", "progressDetail": {}},
            {
                "status": "latest: digest: sha256 size: 1570",
                "aux": {"Tag": "latest", "Digest": IMAGE_DIGEST, "Size": 1570},
            },
        ]
    )
    return client


def test_build_and_push(docker_client):
    builder = ImageBuilder(client=docker_client)
    image_ref = builder.build_and_push(".", REPOSITORY_URI, "latest", REGISTRY)
    assert image_ref == f"{REPOSITORY_URI}@{IMAGE_DIGEST}"
    docker_client.images.build.assert_called_once_with(
        path=".", tag=f"{REPOSITORY_URI}:latest", rm=True
    )
    docker_client.images.push.assert_called_once_with(
        REPOSITORY_URI,
        tag="latest",
        auth_config={
            "username": "AWS",
            "password": "secrettoken",
            "serveraddress": REPOSITORY_URI,
        },
        stream=True,
        decode=True,
    )


def test_push_without_digest(docker_client):
    docker_client.images.push.return_value = iter([{"status": "Pushed"}])
    builder = ImageBuilder(client=docker_client)
    assert (
        builder.build_and_push(".", REPOSITORY_URI, "v1", REGISTRY)
        == f"{REPOSITORY_URI}:v1"
    )


def test_build_failure(docker_client):
    docker_client.images.build.side_effect = docker.errors.BuildError(
        "COPY failed: no such file", []
    )
    builder = ImageBuilder(client=docker_client)
    with pytest.raises(ImageBuildError):
        builder.build_and_push(".", REPOSITORY_URI, "latest", REGISTRY)
    docker_client.images.push.assert_not_called()


def test_push_failure(docker_client):
    docker_client.images.push.return_value = iter(
        [
            {"status": "Preparing"},
            {
                "error": "denied: not authorized",
                "errorDetail": {"message": "denied: not authorized"},
            },
        ]
    )
    builder = ImageBuilder(client=docker_client)
    with pytest.raises(ImageBuildError):
        builder.build_and_push(".", REPOSITORY_URI, "latest", REGISTRY)


def test_no_docker_engine():
    with mock.patch(
        "ecs_webstack.ecr.ecr_image.docker.from_env",
        side_effect=docker.errors.DockerException("Error while fetching server API"),
    ):
        builder = ImageBuilder()
        with pytest.raises(ImageBuildError):
            builder.build(".", f"{REPOSITORY_URI}:latest")
