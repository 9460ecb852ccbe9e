#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Module to test the deployment settings, from arguments and from file.
"""

import yaml
from pytest import fixture, raises

from ecs_webstack.common.settings import DeploymentSettings, load_settings_file


@fixture
def settings_file(tmp_path):
    file_path = f"{tmp_path}/webstack.yml"
    with open(file_path, "w", encoding="utf-8") as settings_fd:
        settings_fd.write(
            yaml.safe_dump(
                {
                    "Name": "from-file",
                    "Replicas": 3,
                    "Port": 8080,
                    "ImageTag": "v1.2.3",
                    "StateFile": "webstack.state.json",
                }
            )
        )
    return file_path


def test_defaults(session):
    settings = DeploymentSettings(session=session, Name="test")
    assert settings.name == "test"
    assert settings.replicas == 5
    assert settings.port == 80
    assert settings.build_context == "."
    assert settings.image_tag == "latest"
    assert settings.max_workers == 8
    assert settings.poll_interval == 5
    assert settings.state_file is None
    assert settings.format == "json"
    assert settings.aws_region == "eu-west-1"
    assert settings.session is session


def test_zero_values_are_kept(session):
    settings = DeploymentSettings(
        session=session, Name="test", Replicas=0, PollInterval=0
    )
    assert settings.replicas == 0
    assert settings.poll_interval == 0


def test_settings_file(session, settings_file):
    settings = DeploymentSettings(
        session=session,
        **{
            DeploymentSettings.config_file_arg: settings_file,
            DeploymentSettings.replicas_arg: None,
            DeploymentSettings.port_arg: 9090,
        },
    )
    assert settings.name == "from-file"
    assert settings.replicas == 3
    assert settings.port == 9090
    assert settings.image_tag == "v1.2.3"
    assert settings.state_file == "webstack.state.json"


def test_invalid_settings(session):
    with raises(ValueError):
        DeploymentSettings(session=session)
    with raises(ValueError):
        DeploymentSettings(session=session, Name="not a valid name")
    with raises(ValueError):
        DeploymentSettings(session=session, Name="test", Port=70000)
    with raises(ValueError):
        DeploymentSettings(session=session, Name="test", Replicas=-1)
    with raises(ValueError):
        DeploymentSettings(session=session, Name="test", MaxWorkers=0)


def test_unknown_file_setting(session, tmp_path):
    file_path = f"{tmp_path}/webstack.yml"
    with open(file_path, "w", encoding="utf-8") as settings_fd:
        settings_fd.write("Name: test\nCpu: 1024\n")
    with raises(ValueError):
        DeploymentSettings(session=session, ConfigFile=file_path)


def test_load_settings_file(tmp_path):
    empty = f"{tmp_path}/empty.yml"
    with open(empty, "w", encoding="utf-8") as settings_fd:
        settings_fd.write("")
    assert load_settings_file(empty) == {}
    listing = f"{tmp_path}/list.yml"
    with open(listing, "w", encoding="utf-8") as settings_fd:
        settings_fd.write("- Name\n- test\n")
    with raises(TypeError):
        load_settings_file(listing)
