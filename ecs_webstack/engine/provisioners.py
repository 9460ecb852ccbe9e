#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Provisioners realize one resource at a time, given its type and its resolved properties, and return
the attributes of the realized resource.
"""

from __future__ import annotations

import json
from os import path
from threading import Lock
from time import sleep

from boto3.session import Session
from botocore.exceptions import ClientError
from compose_x_common.compose_x_common import keyisset

from ecs_webstack.common.logging import LOG
from ecs_webstack.ecr.ecr_image import IMAGE_TYPE, ImageBuilder
from ecs_webstack.exceptions import ResourceDeclarationError
from ecs_webstack.iam import POLICY_ATTACHMENT_TYPE

# Types which cannot be updated in place, a new resource is created on every run.
REPLACED_TYPES = ["AWS::ECS::TaskDefinition"]

# Properties only settable at creation, left out of update patches.
CREATE_ONLY_PROPERTIES = {
    "AWS::EC2::SecurityGroup": ["GroupDescription", "GroupName", "VpcId"],
    "AWS::ECR::Repository": ["RepositoryName"],
    "AWS::ECS::Cluster": ["ClusterName"],
    "AWS::ECS::Service": [
        "Cluster",
        "LaunchType",
        "Role",
        "SchedulingStrategy",
        "ServiceName",
    ],
    "AWS::ElasticLoadBalancingV2::LoadBalancer": ["Name", "Scheme"],
    "AWS::ElasticLoadBalancingV2::TargetGroup": [
        "Name",
        "Port",
        "Protocol",
        "ProtocolVersion",
        "TargetType",
        "VpcId",
    ],
    "AWS::IAM::Role": ["Path", "RoleName"],
}


def update_patch_document(resource_type: str, properties: dict) -> list:
    """
    JSON patch setting all the properties that can be changed on an existing resource

    :param str resource_type:
    :param dict properties: resolved properties of the resource
    :rtype: list[dict]
    """
    create_only = CREATE_ONLY_PROPERTIES.get(resource_type, [])
    return [
        {"op": "add", "path": f"/{key}", "value": value}
        for key, value in properties.items()
        if key not in create_only
    ]


class Provisioner:
    """
    Interface for the realization of a single resource
    """

    def realize(self, title: str, resource_type: str, properties: dict) -> dict:
        """
        Creates or updates the resource to match properties.

        :param str title: logical name of the resource
        :param str resource_type: CloudFormation-style type name
        :param dict properties: resolved properties of the resource
        :return: the attributes of the realized resource
        :rtype: dict
        """
        raise NotImplementedError


class DeploymentState:
    """
    Keeps track, in a JSON file, of the physical identifiers of realized resources so that a new run
    updates them instead of creating new ones. Only identifiers are stored.

    :ivar str file_path: path to the state file. If None, the state only lives in memory.
    """

    def __init__(self, file_path: str = None):
        self.file_path = file_path
        self._lock = Lock()
        self.resources = {}
        if file_path and path.exists(file_path):
            with open(file_path, encoding="utf-8") as state_fd:
                self.resources = json.load(state_fd)
            LOG.info(f"Loaded {len(self.resources)} resources from {file_path}")

    def get_identifier(self, title: str, resource_type: str):
        with self._lock:
            if not keyisset(title, self.resources):
                return None
            if self.resources[title]["Type"] != resource_type:
                raise ResourceDeclarationError(
                    f"{title} was realized as {self.resources[title]['Type']}, now declared as {resource_type}",
                    title=title,
                )
            return self.resources[title]["Identifier"]

    def set_identifier(self, title: str, resource_type: str, identifier: str) -> None:
        with self._lock:
            self.resources[title] = {"Type": resource_type, "Identifier": identifier}
            if self.file_path:
                with open(self.file_path, "w", encoding="utf-8") as state_fd:
                    json.dump(self.resources, state_fd, indent=2, sort_keys=True)


class CloudControlProvisioner(Provisioner):
    """
    Realizes AWS resources with the AWS Cloud Control API. Types that are not AWS resources are handed
    to their specific handler.

    :ivar boto3.session.Session session:
    :ivar DeploymentState state:
    :ivar ImageBuilder image_builder:
    :ivar int poll_interval: seconds between two checks of a pending request
    """

    pending_statuses = ["PENDING", "IN_PROGRESS", "CANCEL_IN_PROGRESS"]
    failed_statuses = ["FAILED", "CANCEL_COMPLETE"]

    def __init__(
        self,
        session: Session = None,
        state: DeploymentState = None,
        image_builder: ImageBuilder = None,
        poll_interval: int = 5,
    ):
        self.session = session if session else Session()
        self.state = state if state else DeploymentState()
        self.image_builder = image_builder if image_builder else ImageBuilder()
        self.poll_interval = poll_interval
        self._clients = {}
        self._clients_lock = Lock()
        self.handlers = {
            POLICY_ATTACHMENT_TYPE: self.attach_role_policy,
            IMAGE_TYPE: self.build_image,
        }

    def client(self, service_name: str):
        """
        Clients are thread safe, the session creating them is not.
        """
        with self._clients_lock:
            if service_name not in self._clients:
                self._clients[service_name] = self.session.client(service_name)
            return self._clients[service_name]

    def realize(self, title: str, resource_type: str, properties: dict) -> dict:
        if resource_type in self.handlers:
            return self.handlers[resource_type](title, properties)
        return self.cloud_control_realize(title, resource_type, properties)

    def wait_for_request(self, client, title: str, progress: dict) -> dict:
        """
        Polls the resource request status until it completes.

        :raises: ResourceDeclarationError if the request failed
        """
        while progress["OperationStatus"] in self.pending_statuses:
            LOG.debug(
                f"{title} - {progress['Operation']} {progress['OperationStatus']}. Waiting {self.poll_interval} seconds"
            )
            sleep(self.poll_interval)
            progress = client.get_resource_request_status(
                RequestToken=progress["RequestToken"]
            )["ProgressEvent"]
        if progress["OperationStatus"] in self.failed_statuses:
            raise ResourceDeclarationError(
                f"{title} - {progress['Operation']} {progress['OperationStatus']}",
                progress.get("ErrorCode"),
                progress.get("StatusMessage"),
                title=title,
            )
        return progress

    def cloud_control_realize(
        self, title: str, resource_type: str, properties: dict
    ) -> dict:
        """
        Creates the resource, or updates it if already realized in a previous run, then describes it.
        Types in REPLACED_TYPES are created again, the state then records the new identifier.
        """
        client = self.client("cloudcontrol")
        identifier = self.state.get_identifier(title, resource_type)
        if identifier and resource_type in REPLACED_TYPES:
            LOG.info(
                f"{title} - {resource_type} cannot be updated. Replacing {identifier}"
            )
            identifier = None
        try:
            if identifier:
                LOG.info(f"{title} - Updating {resource_type} {identifier}")
                progress = client.update_resource(
                    TypeName=resource_type,
                    Identifier=identifier,
                    PatchDocument=json.dumps(
                        update_patch_document(resource_type, properties)
                    ),
                )["ProgressEvent"]
            else:
                LOG.info(f"{title} - Creating {resource_type}")
                progress = client.create_resource(
                    TypeName=resource_type, DesiredState=json.dumps(properties)
                )["ProgressEvent"]
            progress = self.wait_for_request(client, title, progress)
            identifier = progress["Identifier"]
            self.state.set_identifier(title, resource_type, identifier)
            description = client.get_resource(
                TypeName=resource_type, Identifier=identifier
            )
        except ClientError as error:
            raise ResourceDeclarationError(
                f"{title} - {resource_type} rejected by Cloud Control",
                str(error),
                title=title,
            ) from error
        return json.loads(description["ResourceDescription"]["Properties"])

    def attach_role_policy(self, title: str, properties: dict) -> dict:
        """
        Attaches the managed policy to the IAM role. The API call is idempotent.
        """
        client = self.client("iam")
        try:
            client.attach_role_policy(
                RoleName=properties["Role"], PolicyArn=properties["PolicyArn"]
            )
        except ClientError as error:
            raise ResourceDeclarationError(
                f"{title} - Failed to attach {properties['PolicyArn']} to {properties['Role']}",
                str(error),
                title=title,
            ) from error
        LOG.info(f"{title} - Attached {properties['PolicyArn']} to {properties['Role']}")
        return dict(properties)

    def build_image(self, title: str, properties: dict) -> dict:
        registry = properties["Registry"]
        image_ref = self.image_builder.build_and_push(
            properties["Context"],
            properties["ImageName"],
            properties.get("Tag", "latest"),
            registry,
        )
        return {"ImageName": image_ref}
