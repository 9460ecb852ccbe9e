#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

from troposphere.ecs import Cluster

from ecs_webstack.ecs.ecs_params import CLUSTER_T


def add_ecs_cluster(deployment) -> Cluster:
    """
    Declares the ECS Cluster, with no specific configuration
    """
    return deployment.declare(Cluster(CLUSTER_T))
