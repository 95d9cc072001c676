"""Tests for the command line interface."""
import json

import httpx
import pytest

from jboss_deploy.cli import build_parser, create_goal, main
from jboss_deploy.deployment.schema import DeploymentType
from jboss_deploy.goals import (
    AddResourceGoal,
    DeployArtifactGoal,
    DeployGoal,
    ExecuteCommandsGoal,
    ShutdownGoal,
    StartGoal,
    UndeployArtifactGoal,
)
from jboss_deploy.management.values import StringLiteral, TypedLiteral


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("HOSTNAME", "PORT", "USERNAME", "PASSWORD", "TIMEOUT"):
        monkeypatch.delenv(f"JBOSS_DEPLOY_{name}", raising=False)


def _goal(argv, goal_options):
    return create_goal(build_parser().parse_args(argv), **goal_options)


class TestParser:
    """Tests for argument parsing."""

    def test_goal_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_connection_options(self):
        args = build_parser().parse_args([
            "shutdown", "--hostname", "eap.example.com", "--port", "10090",
            "--id", "prod-eap", "--settings", "creds.yaml", "--if-exists", "subsystem=logging",
        ])
        assert args.hostname == "eap.example.com"
        assert args.port == 10090
        assert args.server_id == "prod-eap"
        assert args.settings_file == "creds.yaml"
        assert args.if_exists == "subsystem=logging"

    def test_force_defaults_on(self):
        assert build_parser().parse_args(["deploy", "app.war"]).force is True
        assert build_parser().parse_args(["deploy", "app.war", "--no-force"]).force is False

    def test_repeatable_options(self):
        args = build_parser().parse_args([
            "add-resource", "--address", "subsystem=logging",
            "--property", "a=1", "--property", "b=2",
            "--profile", "full", "--profile", "ha",
        ])
        assert args.properties == ["a=1", "b=2"]
        assert args.profiles == ["full", "ha"]


class TestCreateGoal:
    """Tests for building goals from arguments."""

    def test_add_resource_from_options(self, goal_options):
        goal = _goal([
            "add-resource", "--address", "subsystem=logging,console-handler=CONSOLE",
            "--property", "level=INFO", "--property", "autoflush=!!true", "--enable-resource",
        ], goal_options)

        assert isinstance(goal, AddResourceGoal)
        assert goal.address == "subsystem=logging,console-handler=CONSOLE"
        resource = goal.resources[0]
        assert resource.address is None
        assert resource.enable_resource
        assert resource.property_map == {"level": StringLiteral("INFO"), "autoflush": TypedLiteral("true")}

    def test_add_resource_from_file(self, goal_options, tmp_path):
        path = tmp_path / "resources.yaml"
        path.write_text("resources:\n  - address: subsystem=logging\n  - address: subsystem=jmx\n")

        goal = _goal(["add-resource", "--resources", str(path), "--no-force"], goal_options)
        assert [r.address for r in goal.resources] == ["subsystem=logging", "subsystem=jmx"]
        assert goal.force is False

    def test_deploy(self, goal_options):
        goal = _goal(["deploy", "app.war", "--name", "renamed.war", "--no-deploy-enabled"], goal_options)
        assert isinstance(goal, DeployGoal)
        assert goal.content.deployment_name == "renamed.war"
        assert goal.deployment_type == DeploymentType.FORCE_ADD

    def test_deploy_artifact(self, goal_options):
        goal = _goal(["deploy-artifact", "--artifact", "org.example:myapp:1.0:war"], goal_options)
        assert isinstance(goal, DeployArtifactGoal)
        assert goal.coordinates.file_name == "myapp-1.0.war"
        assert goal.deployment_type == DeploymentType.FORCE_DEPLOY

    def test_deploy_artifact_separate_coordinates(self, goal_options):
        goal = _goal([
            "deploy-artifact", "--group-id", "org.example", "--artifact-id", "myapp",
            "--version", "1.0", "--packaging", "ear", "--no-force",
        ], goal_options)
        assert goal.coordinates.repository_path == "org/example/myapp/1.0/myapp-1.0.ear"
        assert goal.deployment_type == DeploymentType.DEPLOY

    def test_undeploy(self, goal_options):
        goal = _goal(["undeploy-artifact", "--name", "app.war", "--no-ignore-missing"], goal_options)
        assert isinstance(goal, UndeployArtifactGoal)
        assert goal.ignore_missing is False

    def test_execute_commands(self, goal_options):
        goal = _goal(["execute-commands", ":reload", "--batch"], goal_options)
        assert isinstance(goal, ExecuteCommandsGoal)
        assert goal.commands.commands == (":reload",)
        assert goal.commands.batch

    def test_start_with_home(self, goal_options, tmp_path):
        goal = _goal([
            "start", "--jboss-home", str(tmp_path), "--jvm-args=-Xmx1g -Dfoo=bar",
            "--server-arg=-b", "--server-arg=0.0.0.0",
        ], goal_options)
        assert isinstance(goal, StartGoal)
        assert goal.server_config.jboss_home == tmp_path
        assert goal.server_config.jvm_args == ["-Xmx1g", "-Dfoo=bar"]
        assert goal.server_config.server_args == ["-b", "0.0.0.0"]

    def test_shutdown(self, goal_options):
        goal = _goal(["shutdown", "--reload", "--reload-timeout", "5"], goal_options)
        assert isinstance(goal, ShutdownGoal)
        assert goal.reload
        assert goal.reload_timeout == 5


class TestMain:
    """Tests for main() exit codes."""

    def test_success(self, server, goal_options, archive):
        assert main(["deploy", str(archive), "--no-log-file"], **goal_options) == 0
        assert "myapp.war" in server.deployments

    def test_failure(self, server, goal_options):
        exit_code = main(
            ["undeploy-artifact", "--name", "app.war", "--no-ignore-missing", "--no-log-file"],
            **goal_options,
        )
        assert exit_code == 1

    def test_invalid_resource_file(self, server, goal_options, tmp_path):
        path = tmp_path / "resources.yaml"
        path.write_text("resources:\n  - address: subsystem=jmx\n    properties:\n      since: 2024-01-01\n")

        exit_code = main(["add-resource", "--resources", str(path), "--no-log-file"], **goal_options)
        assert exit_code == 1
        assert "composite" not in server.operations

    def test_dry_run_prints_steps(self, server, goal_options, capsys):
        server.add_resource("subsystem=logging")
        exit_code = main([
            "add-resource", "--address", "subsystem=logging,console-handler=CONSOLE",
            "--property", "level=INFO", "--dry-run", "--no-log-file",
        ], **goal_options)

        assert exit_code == 0
        report = json.loads(capsys.readouterr().out)
        assert report["status"] == "planned"
        assert report["steps"][0]["operation"] == "add"
        assert "composite" not in server.operations

    def test_interrupted(self, goal_options):
        def handler(request):
            raise KeyboardInterrupt

        options = dict(goal_options, transport=httpx.MockTransport(handler))
        assert main(["shutdown", "--no-log-file"], **options) == 130
