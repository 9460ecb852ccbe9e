#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Console script for ecs_webstack.
"""

import argparse
import logging
import sys

from botocore.exceptions import BotoCoreError, ClientError
from tabulate import tabulate

from ecs_webstack import __version__
from ecs_webstack.common.logging import LOG
from ecs_webstack.common.settings import DeploymentSettings
from ecs_webstack.ecs_webstack import URL_OUTPUT, deploy, generate_deployment
from ecs_webstack.engine.deployment import Deployment
from ecs_webstack.exceptions import WebStackException

VALID_LOG_LEVELS = ["FATAL", "CRITICAL", "ERROR", "WARNING", "WARN", "INFO", "DEBUG"]


def main_parser():
    """
    Console script for ecs_webstack.
    """
    parser = argparse.ArgumentParser(
        description="Deploys a containerized web service to AWS ECS Fargate"
    )
    cmd_parsers = parser.add_subparsers(
        dest=DeploymentSettings.command_arg, help="Command to execute."
    )
    base_command_parser = argparse.ArgumentParser(add_help=False)
    base_command_parser.add_argument(
        "-n",
        "--name",
        help="Name of the deployment",
        required=False,
        type=str,
        dest=DeploymentSettings.name_arg,
    )
    base_command_parser.add_argument(
        "-c",
        "--config-file",
        help="Path to a YAML settings file. Command line arguments take precedence",
        required=False,
        type=str,
        dest=DeploymentSettings.config_file_arg,
    )
    base_command_parser.add_argument(
        "--replicas",
        help=f"Number of tasks to run. Defaults to {DeploymentSettings.default_replicas}",
        required=False,
        type=int,
        dest=DeploymentSettings.replicas_arg,
    )
    base_command_parser.add_argument(
        "--port",
        help=f"Port the container listens on. Defaults to {DeploymentSettings.default_port}",
        required=False,
        type=int,
        dest=DeploymentSettings.port_arg,
    )
    base_command_parser.add_argument(
        "--build-context",
        help="Path to the docker build context of the image",
        required=False,
        type=str,
        dest=DeploymentSettings.build_context_arg,
    )
    base_command_parser.add_argument(
        "--image-tag",
        help=f"Tag to push the image with. Defaults to {DeploymentSettings.default_image_tag}",
        required=False,
        type=str,
        dest=DeploymentSettings.image_tag_arg,
    )
    base_command_parser.add_argument(
        "--region",
        required=False,
        dest=DeploymentSettings.region_arg,
        help="Specify the region you want to deploy to. "
        "Defaults to the region from config or environment vars",
    )
    base_command_parser.add_argument(
        "--profile",
        required=False,
        dest=DeploymentSettings.profile_arg,
        help="AWS profile to use",
    )
    base_command_parser.add_argument(
        "--loglevel", type=str, help="Log level. Defaults to INFO", required=False
    )
    up_parser = argparse.ArgumentParser(add_help=False)
    up_parser.add_argument(
        "--state-file",
        required=False,
        dest=DeploymentSettings.state_file_arg,
        help="JSON file keeping track of the realized resources between runs",
    )
    up_parser.add_argument(
        "--max-workers",
        required=False,
        type=int,
        dest=DeploymentSettings.max_workers_arg,
        help="Maximum number of resources realized at the same time",
    )
    render_parser = argparse.ArgumentParser(add_help=False)
    render_parser.add_argument(
        "--format",
        help="Defines the format you want to use.",
        type=str,
        dest=DeploymentSettings.format_arg,
        choices=DeploymentSettings.allowed_formats,
        default=DeploymentSettings.default_format,
    )
    parents = {
        DeploymentSettings.deploy_arg: [base_command_parser, up_parser],
        DeploymentSettings.render_arg: [base_command_parser, render_parser],
    }
    for command in DeploymentSettings.active_commands:
        cmd_parsers.add_parser(
            name=command["name"],
            help=command["help"],
            parents=parents[command["name"]],
        )
    for command in DeploymentSettings.neutral_commands:
        cmd_parsers.add_parser(name=command["name"], help=command["help"])
    return parser


def set_log_level(loglevel: str) -> None:
    if loglevel.upper() in VALID_LOG_LEVELS:
        LOG.setLevel(logging.getLevelName(loglevel.upper()))
    else:
        LOG.warning(
            f"Log level value {loglevel} is invalid. Must me one of {VALID_LOG_LEVELS}"
        )


def render_deployment(deployment: Deployment, output_format: str) -> str:
    """
    Renders the deployment graph

    :param Deployment deployment:
    :param str output_format: json, yaml or text
    :rtype: str
    """
    if output_format == "yaml":
        return deployment.template.to_yaml()
    elif output_format == "text":
        rows = []
        for title in deployment.validate():
            resource = deployment.resources[title]
            rows.append(
                [
                    title,
                    resource.resource_type,
                    ", ".join(sorted(deployment.data_dependencies(title))),
                    ", ".join(deployment.ordering_dependencies(title)),
                ]
            )
        return tabulate(
            rows, ["LogicalResourceId", "Type", "Uses", "After"], tablefmt="rst"
        )
    return deployment.template.to_json()


def main():
    """
    Main entry point for CLI
    :return: status code
    """
    parser = main_parser()
    if len(sys.argv) == 1:
        parser.print_help()
        sys.exit()
    args = parser.parse_args()
    command = getattr(args, DeploymentSettings.command_arg)
    if command == "version":
        print(__version__)
        return 0
    if getattr(args, "loglevel", None):
        set_log_level(args.loglevel)
    LOG.debug(args)
    try:
        settings = DeploymentSettings(**vars(args))
        deployment = generate_deployment(settings)
        if command == DeploymentSettings.render_arg:
            print(render_deployment(deployment, settings.format))
            return 0
        outputs = deploy(settings, deployment)
    except (
        WebStackException,
        LookupError,
        ValueError,
        BotoCoreError,
        ClientError,
    ) as error:
        LOG.error(error)
        return 1
    print(outputs[URL_OUTPUT])
    return 0


if __name__ == "__main__":
    sys.exit(main())  # pragma: no cover
