#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
ECS Task execution role, which allows the ECS agent to pull the image and write the logs.
"""

from troposphere.iam import Role

from ecs_webstack.iam import add_role_policy_attachment, service_role_trust_policy

EXEC_ROLE_T = "TaskExecRole"
EXEC_POLICY_T = "TaskExecPolicy"
EXEC_ROLE_POLICY_ARN = (
    "arn:aws:iam::aws:policy/service-role/AmazonECSTaskExecutionRolePolicy"
)


class ExecutionRole:
    """
    :ivar troposphere.iam.Role role:
    :ivar ecs_webstack.iam.RolePolicyAttachment attachment:
    :ivar ecs_webstack.engine.outputs.OutputHandle arn:
    """

    def __init__(self, deployment):
        self.role = deployment.declare(
            Role(
                EXEC_ROLE_T,
                AssumeRolePolicyDocument=service_role_trust_policy("ecs-tasks"),
            )
        )
        self.attachment = add_role_policy_attachment(
            deployment, self.role, EXEC_POLICY_T, EXEC_ROLE_POLICY_ARN
        )
        self.arn = deployment.get_att(self.role, "Arn")
