#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Module for the DeploymentSettings class
"""

from __future__ import annotations

import json

import boto3
import jsonschema
import yaml
from compose_x_common.compose_x_common import keyisset, set_else_none
from importlib_resources import files as pkg_files

from ecs_webstack.common.logging import LOG


def load_settings_file(file_path: str) -> dict:
    """
    Loads the YAML (or JSON) settings file

    :param str file_path:
    :rtype: dict
    """
    with open(file_path, encoding="utf-8") as settings_fd:
        content = yaml.safe_load(settings_fd.read())
    if content is None:
        return {}
    if not isinstance(content, dict):
        raise TypeError(
            f"{file_path} must define a mapping of settings. Got", type(content)
        )
    return content


class DeploymentSettings:
    """
    Class to handle the settings of the deployment.

    Settings come from the keyword arguments, named after the ``*_arg`` attributes (the CLI arguments
    destinations), and from an optional settings file. Arguments set take precedence over the file.
    """

    name_arg = "Name"
    replicas_arg = "Replicas"
    port_arg = "Port"
    build_context_arg = "BuildContext"
    image_tag_arg = "ImageTag"
    region_arg = "RegionName"
    profile_arg = "ProfileName"
    state_file_arg = "StateFile"
    max_workers_arg = "MaxWorkers"
    poll_interval_arg = "PollInterval"
    config_file_arg = "ConfigFile"

    command_arg = "command"
    deploy_arg = "up"
    render_arg = "render"
    format_arg = "TemplateFormat"
    default_format = "json"
    allowed_formats = ["json", "yaml", "text"]

    default_replicas = 5
    default_port = 80
    default_build_context = "."
    default_image_tag = "latest"
    default_max_workers = 8
    default_poll_interval = 5

    settings_keys = [
        name_arg,
        replicas_arg,
        port_arg,
        build_context_arg,
        image_tag_arg,
        region_arg,
        profile_arg,
        state_file_arg,
        max_workers_arg,
        poll_interval_arg,
    ]

    active_commands = [
        {
            "name": deploy_arg,
            "help": "Declares the deployment and realizes it in AWS. Prints the service URL",
        },
        {
            "name": render_arg,
            "help": "Declares the deployment and prints the resources graph. Nothing is realized,"
            " but the default VPC lookup needs AWS credentials for the account and region",
        },
    ]
    neutral_commands = [{"name": "version", "help": "ECS WebStack Version"}]
    all_commands = active_commands + neutral_commands

    def __init__(self, session: boto3.session.Session = None, **kwargs):
        """
        :param boto3.session.Session session: override the session created from profile and region
        :raises: ValueError if the settings are not valid
        """
        content = self.merge_settings(kwargs)
        self.validate_settings(content)
        self.name = content[self.name_arg]
        self.replicas = content.get(self.replicas_arg, self.default_replicas)
        self.port = content.get(self.port_arg, self.default_port)
        self.build_context = set_else_none(
            self.build_context_arg, content, alt_value=self.default_build_context
        )
        self.image_tag = set_else_none(
            self.image_tag_arg, content, alt_value=self.default_image_tag
        )
        self.state_file = set_else_none(self.state_file_arg, content)
        self.max_workers = content.get(self.max_workers_arg, self.default_max_workers)
        self.poll_interval = content.get(
            self.poll_interval_arg, self.default_poll_interval
        )
        self.profile_name = set_else_none(self.profile_arg, content)
        self.session = (
            session
            if session
            else boto3.session.Session(
                profile_name=self.profile_name,
                region_name=set_else_none(self.region_arg, content),
            )
        )
        self.aws_region = (
            content[self.region_arg]
            if keyisset(self.region_arg, content)
            else self.session.region_name
        )
        self.format = set_else_none(
            self.format_arg, kwargs, alt_value=self.default_format
        )
        LOG.debug(
            f"{self.name} - {self.replicas} replicas, port {self.port}, build context {self.build_context}"
        )

    def __repr__(self):
        return f"DeploymentSettings({self.name})"

    def merge_settings(self, kwargs: dict) -> dict:
        """
        Merges the settings file content with the arguments, arguments set to None being ignored.
        """
        content = {}
        if keyisset(self.config_file_arg, kwargs):
            content.update(load_settings_file(kwargs[self.config_file_arg]))
            LOG.info(f"Loaded settings from {kwargs[self.config_file_arg]}")
        for key in self.settings_keys:
            if key in kwargs and kwargs[key] is not None:
                content[key] = kwargs[key]
        return content

    @staticmethod
    def validate_settings(content: dict) -> None:
        """
        Validates the settings against the settings JSON schema

        :raises: ValueError
        """
        source = pkg_files("ecs_webstack").joinpath("specs/settings.spec.json")
        schema = json.loads(source.read_text(encoding="utf-8"))
        try:
            jsonschema.validate(content, schema)
        except jsonschema.exceptions.ValidationError as error:
            raise ValueError(
                "Invalid deployment settings",
                error.message,
                list(error.absolute_path),
            ) from error
