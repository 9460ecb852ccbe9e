#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

import json

from pytest import mark, raises

from ecs_webstack.ecs.ecs_container import (
    container_definitions_document,
    document_to_properties,
)
from ecs_webstack.ecs.ecs_params import CONTAINER_NAME

from .conftest import IMAGE_DIGEST, REPOSITORY_URI


@mark.parametrize(
    "image",
    [f"{REPOSITORY_URI}@{IMAGE_DIGEST}", f"{REPOSITORY_URI}:latest", "nginx", 'a"b'],
)
def test_container_definitions_document(image):
    definitions = json.loads(container_definitions_document(image))
    assert isinstance(definitions, list)
    assert len(definitions) == 1
    container = definitions[0]
    assert container["image"] == image
    assert container["name"] == CONTAINER_NAME
    assert container["portMappings"] == [
        {"containerPort": 80, "hostPort": 80, "protocol": "tcp"}
    ]


def test_container_definitions_document_port():
    container = json.loads(container_definitions_document("nginx", port=8080))[0]
    assert container["portMappings"][0]["containerPort"] == 8080
    assert container["portMappings"][0]["hostPort"] == 8080


@mark.parametrize("image", ["", None])
def test_container_definitions_document_no_image(image):
    with raises(ValueError):
        container_definitions_document(image)


def test_document_to_properties():
    properties = document_to_properties(container_definitions_document("nginx"))
    assert properties == [
        {
            "Name": CONTAINER_NAME,
            "Image": "nginx",
            "PortMappings": [{"ContainerPort": 80, "HostPort": 80, "Protocol": "tcp"}],
        }
    ]
