#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Fargate Task definition
"""

from troposphere.ecs import TaskDefinition

from ecs_webstack.ecs.ecs_container import document_to_properties
from ecs_webstack.ecs.ecs_params import (
    LAUNCH_TYPE,
    NETWORK_MODE,
    TASK_CPU,
    TASK_FAMILY,
    TASK_MEMORY,
    TASK_T,
)


def add_task_definition(
    deployment, execution_role_arn, container_definitions
) -> TaskDefinition:
    """
    Declares the Task definition

    :param ecs_webstack.engine.deployment.Deployment deployment:
    :param ecs_webstack.engine.outputs.OutputHandle execution_role_arn:
    :param ecs_webstack.engine.outputs.OutputHandle container_definitions: the container definitions document
    :rtype: troposphere.ecs.TaskDefinition
    """
    return deployment.declare(
        TaskDefinition(
            TASK_T,
            Family=TASK_FAMILY,
            Cpu=TASK_CPU,
            Memory=TASK_MEMORY,
            NetworkMode=NETWORK_MODE,
            RequiresCompatibilities=[LAUNCH_TYPE],
            ExecutionRoleArn=execution_role_arn,
            ContainerDefinitions=container_definitions.apply(
                document_to_properties, label="ContainerDefinitionsProperties"
            ),
        )
    )
