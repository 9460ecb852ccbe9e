#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Elastic Container Registry repository, credentials and image build.
"""

import re

ECR_URI_RE = re.compile(
    r"^(?P<account_id>\d{12})\.dkr\.ecr\.(?P<region>[a-z0-9-]+)\.amazonaws\.com(?:\.cn)?/"
    r"(?P<repo_name>[a-z0-9-_./]+)$"
)


def registry_id_from_uri(repository_uri: str) -> str:
    """
    The registry ID of a private ECR repository is the account ID in its URI

    :param str repository_uri: i.e. 012345678912.dkr.ecr.eu-west-1.amazonaws.com/app-repo
    :raises: ValueError if the URI is not a private ECR repository URI
    """
    parts = ECR_URI_RE.match(repository_uri)
    if not parts:
        raise ValueError(
            f"{repository_uri} is not a valid ECR repository URI", ECR_URI_RE.pattern
        )
    return parts.group("account_id")
