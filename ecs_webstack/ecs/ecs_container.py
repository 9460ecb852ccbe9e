#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
The container definitions document of the task definition.
"""

import json

from ecs_webstack.ecs.ecs_params import CONTAINER_NAME


def container_definitions_document(
    image: str, name: str = CONTAINER_NAME, port: int = 80
) -> str:
    """
    Renders the container definitions, a single container, as the JSON text expected by ECS.

    :param str image: the image reference to run
    :param str name: the container name
    :param int port: the port exposed by the container, mapped to the same host port
    :rtype: str
    """
    if not isinstance(image, str) or not image:
        raise ValueError("image must be a non-empty string. Got", image)
    return json.dumps(
        [
            {
                "name": name,
                "image": image,
                "portMappings": [
                    {"containerPort": port, "hostPort": port, "protocol": "tcp"}
                ],
            }
        ]
    )


def to_cfn_keys(value):
    """
    ECS API definitions are camelCase, their CloudFormation equivalent PascalCase.
    """
    if isinstance(value, dict):
        return {
            f"{key[:1].upper()}{key[1:]}": to_cfn_keys(item)
            for key, item in value.items()
        }
    elif isinstance(value, list):
        return [to_cfn_keys(item) for item in value]
    return value


def document_to_properties(document: str) -> list:
    """
    Converts the container definitions document to the TaskDefinition ContainerDefinitions property

    :param str document:
    :rtype: list[dict]
    """
    return to_cfn_keys(json.loads(document))
