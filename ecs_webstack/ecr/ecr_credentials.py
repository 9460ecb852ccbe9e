#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Short lived credentials to push to the ECR registry. They only live for the time of the image push.
"""

from __future__ import annotations

import binascii
from base64 import b64decode
from typing import NamedTuple

from botocore.exceptions import ClientError
from compose_x_common.compose_x_common import keyisset

from ecs_webstack.common.logging import LOG
from ecs_webstack.exceptions import CredentialFetchError, DecodeError


class RegistryCredentials(NamedTuple):
    username: str
    password: str

    def __repr__(self):
        return f"RegistryCredentials(username={self.username!r}, password='****')"


def decode_authorization_token(token: str) -> RegistryCredentials:
    """
    Decodes the base64 ``username:password`` token returned by ECR

    :param str token:
    :raises: DecodeError if not valid base64 or not exactly two colon-separated parts
    """
    try:
        decoded = b64decode(token, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, TypeError, ValueError) as error:
        raise DecodeError("The authorization token is not valid base64") from error
    parts = decoded.split(":")
    if len(parts) != 2:
        raise DecodeError(
            "The authorization token must decode to username:password. Got parts",
            len(parts),
        )
    return RegistryCredentials(parts[0], parts[1])


def fetch_authorization_token(ecr_client, registry_id: str) -> str:
    """
    :param ecr_client: boto3 ECR client
    :param str registry_id:
    :raises: CredentialFetchError
    """
    try:
        auth_r = ecr_client.get_authorization_token(registryIds=[registry_id])
    except ClientError as error:
        raise CredentialFetchError(
            f"Failed to retrieve the authorization token for registry {registry_id}",
            str(error),
        ) from error
    if not keyisset("authorizationData", auth_r) or not keyisset(
        "authorizationToken", auth_r["authorizationData"][0]
    ):
        raise CredentialFetchError(
            f"No authorization token returned for registry {registry_id}"
        )
    LOG.info(f"Retrieved ECR authorization token for registry {registry_id}")
    return auth_r["authorizationData"][0]["authorizationToken"]


def get_registry_credentials(ecr_client, registry_id: str) -> RegistryCredentials:
    return decode_authorization_token(
        fetch_authorization_token(ecr_client, registry_id)
    )
