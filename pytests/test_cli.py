#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

from pytest import fixture, raises

from ecs_webstack import __version__, cli
from ecs_webstack.ecs.ecs_params import SERVICE_T
from ecs_webstack.ecs_webstack import URL_OUTPUT, generate_deployment
from ecs_webstack.exceptions import CredentialFetchError

from .conftest import LB_DNS_NAME


@fixture
def offline_deployment(monkeypatch, network, session):
    def generate(settings):
        return generate_deployment(
            settings, network=network, ecr_client=session.client("ecr")
        )

    monkeypatch.setattr(cli, "generate_deployment", generate)


def test_version(monkeypatch, capsys):
    monkeypatch.setattr("sys.argv", ["ecs-webstack", "version"])
    assert cli.main() == 0
    assert __version__ in capsys.readouterr().out


def test_render_help_mentions_credentials():
    help_text = " ".join(cli.main_parser().format_help().split())
    assert "default VPC lookup needs AWS credentials" in help_text


def test_no_arguments(monkeypatch):
    monkeypatch.setattr("sys.argv", ["ecs-webstack"])
    with raises(SystemExit):
        cli.main()


def test_render_text(monkeypatch, capsys, offline_deployment):
    monkeypatch.setattr(
        "sys.argv",
        ["ecs-webstack", "render", "-n", "test", "--format", "text", "--replicas", "2"],
    )
    assert cli.main() == 0
    output = capsys.readouterr().out
    assert "LogicalResourceId" in output
    assert SERVICE_T in output


def test_up(monkeypatch, capsys, offline_deployment):
    calls = []

    def deploy(settings, deployment):
        calls.append((settings, deployment))
        return {URL_OUTPUT: LB_DNS_NAME}

    monkeypatch.setattr(cli, "deploy", deploy)
    monkeypatch.setattr(
        "sys.argv", ["ecs-webstack", "up", "-n", "test", "--max-workers", "2"]
    )
    assert cli.main() == 0
    assert LB_DNS_NAME in capsys.readouterr().out
    settings, deployment = calls[0]
    assert settings.max_workers == 2
    assert deployment.resources[SERVICE_T].DesiredCount == 5


def test_up_failure(monkeypatch, offline_deployment):
    def deploy(settings, deployment):
        raise CredentialFetchError("Failed to get the authorization token")

    monkeypatch.setattr(cli, "deploy", deploy)
    monkeypatch.setattr("sys.argv", ["ecs-webstack", "up", "-n", "test"])
    assert cli.main() == 1


def test_missing_name(monkeypatch, offline_deployment):
    monkeypatch.setattr("sys.argv", ["ecs-webstack", "up"])
    assert cli.main() == 1


def test_invalid_log_level(monkeypatch, capsys, offline_deployment):
    monkeypatch.setattr(
        "sys.argv",
        ["ecs-webstack", "render", "-n", "test", "--loglevel", "verbose"],
    )
    assert cli.main() == 0
