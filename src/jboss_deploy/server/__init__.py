"""Local standalone server: configuration, launch and lifecycle."""
from .config import DEFAULT_JVM_ARGS, ServerConfig, split_args
from .launcher import StandaloneServer, build_launch_command, is_server_ready, wait_for_reload
from .distribution import resolve_distribution

__all__ = [
    "DEFAULT_JVM_ARGS",
    "ServerConfig",
    "StandaloneServer",
    "build_launch_command",
    "is_server_ready",
    "resolve_distribution",
    "split_args",
    "wait_for_reload",
]
