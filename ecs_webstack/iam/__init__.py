#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
IAM helpers and the managed policy attachment resource, which has no CloudFormation counterpart.
"""

import re

from troposphere import AWSObject
from troposphere.iam import Role

from ecs_webstack.common.logging import LOG

POLICY_ATTACHMENT_TYPE = "ECSWebStack::IAM::RolePolicyAttachment"
MANAGED_POLICY_RE = re.compile(
    r"^arn:aws(?:-[a-z]+)?:iam::(aws|\d{12}):policy/[a-zA-Z0-9-_./+=,@]+$"
)


class RolePolicyAttachment(AWSObject):
    """
    Attaches an existing managed policy to an IAM role
    """

    resource_type = POLICY_ATTACHMENT_TYPE

    props = {
        "PolicyArn": (str, True),
        "Role": (str, True),
    }


def service_role_trust_policy(service_name: str) -> dict:
    """
    Simple function to format the trust relationship for a Role and an AWS Service

    :param str service_name: name of the AWS service, i.e. ecs-tasks
    :return: policy document
    :rtype: dict
    """
    statement = {
        "Sid": "",
        "Effect": "Allow",
        "Principal": {"Service": f"{service_name}.amazonaws.com"},
        "Action": "sts:AssumeRole",
    }
    policy_doc = {"Version": "2008-10-17", "Statement": [statement]}
    return policy_doc


def validate_managed_policy_arn(policy_arn: str) -> str:
    """
    :param str policy_arn:
    :raises: ValueError if the value is not a managed policy ARN
    """
    if not MANAGED_POLICY_RE.match(policy_arn):
        raise ValueError(
            f"policy {policy_arn} does not match expected regexp",
            MANAGED_POLICY_RE.pattern,
        )
    return policy_arn


def add_role_policy_attachment(
    deployment, role: Role, title: str, policy_arn: str
) -> RolePolicyAttachment:
    """
    Declares the attachment of policy_arn to role. The attachment consumes the role name, therefore it is
    realized after the role.

    :param ecs_webstack.engine.deployment.Deployment deployment:
    :param troposphere.iam.Role role:
    :param str title:
    :param str policy_arn:
    """
    if not isinstance(role, Role):
        raise TypeError(f"{role} is of type", type(role), "expected", Role)
    LOG.debug(f"{title} - Attaching {policy_arn} to {role.title}")
    return deployment.declare(
        RolePolicyAttachment(
            title,
            Role=deployment.get_att(role, "RoleName"),
            PolicyArn=validate_managed_policy_arn(policy_arn),
        )
    )
