"""Command line entry point.

Usage:
    jboss-deploy <goal> [options]

Goals:
    add-resource        Add configuration resources
    deploy              Deploy an archive
    deploy-artifact     Deploy an archive resolved from a Maven repository
    undeploy-artifact   Undeploy and remove a deployment
    execute-commands    Run management CLI operations
    start               Start a local standalone server
    run                 Start a local server, deploy and wait until it stops
    shutdown            Shut down or reload the server

Environment variables:
    JBOSS_DEPLOY_HOSTNAME / JBOSS_DEPLOY_PORT    Management endpoint
    JBOSS_DEPLOY_USERNAME / JBOSS_DEPLOY_PASSWORD    Credentials
    JBOSS_DEPLOY_LOG_LEVEL    Console log level
"""
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from .config.settings import ConnectionSettings
from .deployment.artifacts import ArtifactCoordinates, ArtifactResolver, DEFAULT_REMOTE_REPOSITORIES
from .deployment.schema import Content, DeploymentResult
from .exceptions import JBossDeployError
from .goals import (
    AddResourceGoal,
    DeployArtifactGoal,
    DeployGoal,
    ExecuteCommandsGoal,
    Goal,
    RunGoal,
    ShutdownGoal,
    StartGoal,
    UndeployArtifactGoal,
)
from .resources.parser import ResourceParser, resource_from_options
from .resources.schema import AddResourceResult, Commands
from .server.config import DEFAULT_JVM_ARGS, DEFAULT_STARTUP_TIMEOUT, ServerConfig, split_args
from .server.distribution import DEFAULT_DISTRIBUTION, DEFAULT_VERSION, resolve_distribution
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def _connection_options() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(add_help=False)
    group = parser.add_argument_group("connection")
    group.add_argument("--hostname", help="Management host (default: localhost)")
    group.add_argument("--port", type=int, help="Management port (default: 9990)")
    group.add_argument("--username", help="Management user")
    group.add_argument("--password", help="Management password")
    group.add_argument("--id", dest="server_id", help="Server id to look up in the settings file")
    group.add_argument("--settings", dest="settings_file", help="Credential settings file (YAML)")
    group.add_argument("--timeout", type=float, help="Request timeout in seconds")
    group.add_argument("--if-exists", help="Run only if the resource at this address exists")
    group.add_argument("--if-not-exists", help="Run only if the resource at this address is absent")
    group.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    group.add_argument("--no-log-file", action="store_true", help="Log to the console only")
    return parser


def _artifact_options(parser: argparse.ArgumentParser) -> None:
    group = parser.add_argument_group("artifact")
    group.add_argument("--artifact", help="Coordinates group:artifact:version[:packaging[:classifier]]")
    group.add_argument("--group-id")
    group.add_argument("--artifact-id")
    group.add_argument("--version")
    group.add_argument("--packaging", default="jar")
    group.add_argument("--classifier")
    group.add_argument("--file", help="Archive on disk, used instead of coordinates")
    group.add_argument("--name", help="Deployment name (default: file name)")
    group.add_argument("--match-pattern", help="Regular expression matching the existing deployment")
    group.add_argument("--local-repository", type=Path, help="Local Maven repository")
    group.add_argument(
        "--remote-repository", action="append", dest="remote_repositories",
        help="Remote Maven repository URL (repeatable)",
    )


def _server_options(parser: argparse.ArgumentParser) -> None:
    group = parser.add_argument_group("server")
    group.add_argument("--jboss-home", help="Existing server installation")
    group.add_argument("--jboss-version", default=DEFAULT_VERSION, help="Distribution version")
    group.add_argument("--distribution", default=DEFAULT_DISTRIBUTION, help="Distribution group:artifact")
    group.add_argument("--download-url", help="Distribution zip URL")
    group.add_argument("--build-dir", type=Path, default=Path("target"), help="Download/extract directory")
    group.add_argument("--java-home")
    group.add_argument("--modules-path")
    group.add_argument("--bundles-path")
    group.add_argument("--jvm-args", default=DEFAULT_JVM_ARGS, help="Space delimited JVM arguments")
    group.add_argument("--server-config", help="Server configuration file, e.g. standalone-full.xml")
    group.add_argument("--properties-file")
    group.add_argument("--server-arg", action="append", dest="server_args", default=[])
    group.add_argument("--startup-timeout", type=int, default=DEFAULT_STARTUP_TIMEOUT)


def build_parser() -> argparse.ArgumentParser:
    common = _connection_options()
    parser = argparse.ArgumentParser(
        prog="jboss-deploy",
        description="Deploy applications and configure resources through the management API",
    )
    goals = parser.add_subparsers(dest="goal", metavar="goal", required=True)

    add = goals.add_parser("add-resource", parents=[common], help="Add configuration resources")
    add.add_argument("--address", help="Address, e.g. subsystem=datasources,data-source=ExampleDS")
    add.add_argument("--property", action="append", dest="properties", default=[],
                     help="key=value (repeatable); prefix the value with !! for a typed value")
    add.add_argument("--resources", type=Path, help="YAML file of resources")
    add.add_argument("--profile", action="append", dest="profiles", default=[],
                     help="Domain profile (repeatable)")
    add.add_argument("--force", action=argparse.BooleanOptionalAction, default=True)
    add.add_argument("--enable-resource", action="store_true")
    add.add_argument("--add-if-absent", action="store_true")
    add.add_argument("--dry-run", action="store_true", help="Show the steps without submitting")

    deploy = goals.add_parser("deploy", parents=[common], help="Deploy an archive")
    deploy.add_argument("filename", type=Path)
    deploy.add_argument("--name", help="Deployment name (default: file name)")
    deploy.add_argument("--match-pattern")
    deploy.add_argument("--force", action=argparse.BooleanOptionalAction, default=True)
    deploy.add_argument("--deploy-enabled", action=argparse.BooleanOptionalAction, default=True)

    deploy_artifact = goals.add_parser("deploy-artifact", parents=[common], help="Deploy an artifact")
    _artifact_options(deploy_artifact)
    deploy_artifact.add_argument("--force", action=argparse.BooleanOptionalAction, default=True)

    undeploy = goals.add_parser("undeploy-artifact", parents=[common], help="Undeploy a deployment")
    _artifact_options(undeploy)
    undeploy.add_argument("--ignore-missing", action=argparse.BooleanOptionalAction, default=True)

    commands = goals.add_parser("execute-commands", parents=[common], help="Run CLI operations")
    commands.add_argument("commands", nargs="+", help="e.g. /subsystem=logging:read-resource")
    commands.add_argument("--batch", action="store_true", help="Run all commands as one composite")

    start = goals.add_parser("start", parents=[common], help="Start a local standalone server")
    _server_options(start)

    run = goals.add_parser("run", parents=[common], help="Start a server and deploy an archive")
    _server_options(run)
    run.add_argument("filename", type=Path)
    run.add_argument("--name", help="Deployment name (default: file name)")
    run.add_argument("--force", action=argparse.BooleanOptionalAction, default=True)

    shutdown = goals.add_parser("shutdown", parents=[common], help="Shut down or reload the server")
    shutdown.add_argument("--reload", action="store_true", help="Reload instead of shutting down")
    shutdown.add_argument("--reload-timeout", type=int, default=30)

    return parser


def _settings(args: argparse.Namespace) -> ConnectionSettings:
    return ConnectionSettings.from_env(
        hostname=args.hostname,
        port=args.port,
        username=args.username,
        password=args.password,
        server_id=args.server_id,
        settings_file=args.settings_file,
        timeout=args.timeout,
        if_exists=args.if_exists,
        if_not_exists=args.if_not_exists,
    )


def _coordinates(args: argparse.Namespace) -> Optional[ArtifactCoordinates]:
    if args.artifact:
        return ArtifactCoordinates.parse(args.artifact)
    if args.group_id or args.artifact_id or args.version:
        return ArtifactCoordinates(
            args.group_id, args.artifact_id, args.version, args.packaging, args.classifier
        )
    return None


def _resolver(args: argparse.Namespace) -> ArtifactResolver:
    return ArtifactResolver(
        local_repository=args.local_repository,
        remote_repositories=args.remote_repositories or DEFAULT_REMOTE_REPOSITORIES,
    )


def _server_config(args: argparse.Namespace) -> ServerConfig:
    jboss_home = resolve_distribution(
        args.build_dir,
        jboss_home=args.jboss_home,
        version=args.jboss_version,
        distribution=args.distribution,
        download_url=args.download_url,
    )
    return ServerConfig(
        jboss_home=jboss_home,
        java_home=args.java_home,
        modules_dir=args.modules_path,
        bundles_dir=args.bundles_path,
        jvm_args=split_args(args.jvm_args),
        server_config=args.server_config,
        properties_file=args.properties_file,
        server_args=list(args.server_args),
        startup_timeout=args.startup_timeout,
    )


def create_goal(args: argparse.Namespace, **goal_options: Any) -> Goal:
    """Build the goal selected on the command line."""
    settings = _settings(args)

    if args.goal == "add-resource":
        if args.resources:
            resources = ResourceParser().load(args.resources)
        else:
            resources = [resource_from_options(
                None, args.properties, args.enable_resource, args.add_if_absent
            )]
        return AddResourceGoal(
            settings, resources, address=args.address, profiles=args.profiles,
            force=args.force, dry_run=args.dry_run, **goal_options,
        )

    if args.goal == "deploy":
        return DeployGoal(
            settings, Content(args.filename, args.name), force=args.force,
            deploy_enabled=args.deploy_enabled, match_pattern=args.match_pattern, **goal_options,
        )

    if args.goal == "deploy-artifact":
        return DeployArtifactGoal(
            settings, coordinates=_coordinates(args), file=args.file, deployment_name=args.name,
            resolver=_resolver(args), force=args.force, match_pattern=args.match_pattern,
            **goal_options,
        )

    if args.goal == "undeploy-artifact":
        return UndeployArtifactGoal(
            settings, coordinates=_coordinates(args), file=args.file, deployment_name=args.name,
            match_pattern=args.match_pattern, ignore_missing=args.ignore_missing, **goal_options,
        )

    if args.goal == "execute-commands":
        return ExecuteCommandsGoal(
            settings, Commands(tuple(args.commands), batch=args.batch), **goal_options
        )

    if args.goal == "start":
        return StartGoal(settings, _server_config(args), **goal_options)

    if args.goal == "run":
        return RunGoal(
            settings, _server_config(args), Content(args.filename, args.name),
            force=args.force, **goal_options,
        )

    if args.goal == "shutdown":
        return ShutdownGoal(
            settings, reload=args.reload, reload_timeout=args.reload_timeout, **goal_options
        )

    raise JBossDeployError(f"Unknown goal: {args.goal}")


def _report(result: Any) -> None:
    if isinstance(result, AddResourceResult):
        if result.dry_run:
            for batch in result.batches:
                print(json.dumps({"address": batch.address, "profile": batch.profile,
                                  "status": batch.status, "steps": batch.steps}, indent=2))
    elif isinstance(result, DeploymentResult):
        logger.info(f"Deployment status: {result.status.value}")


def main(argv: Optional[list[str]] = None, **goal_options: Any) -> int:
    """Main entry point; returns the process exit code."""
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else None, log_to_file=not args.no_log_file)

    try:
        goal = create_goal(args, **goal_options)
        result = goal.run()
    except KeyboardInterrupt:
        logger.warning(f"Goal {args.goal} interrupted by user")
        return 130
    except JBossDeployError as e:
        logger.error(f"Could not execute goal {args.goal}. Reason: {e}")
        logger.debug("Failure details", exc_info=True)
        return 1

    _report(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
