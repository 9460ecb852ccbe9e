#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Titles and fixed settings for the ECS resources.
The titles, marked `_T`, must stay the same across runs, they identify the resources in the deployment.
"""

CLUSTER_T = "AppCluster"
TASK_T = "AppTask"
SERVICE_T = "AppService"

CONTAINER_NAME = "my-app"
TASK_FAMILY = "fargate-task-definition"
TASK_CPU = "256"
TASK_MEMORY = "512"
NETWORK_MODE = "awsvpc"
LAUNCH_TYPE = "FARGATE"
