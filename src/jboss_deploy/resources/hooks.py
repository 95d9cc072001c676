"""Run CLI command hooks against a live client."""
import logging
from typing import Any, Optional

from ..management.cli_commands import parse_cli_operation
from ..management.operations import create_composite_operation, raise_on_failure
from ..utils.logging_config import timed_section_sync
from .schema import Commands

logger = logging.getLogger(__name__)


def execute_commands(commands: Optional[Commands], client: Any) -> int:
    """Execute hook commands.

    All commands are parsed before anything is sent. In batch mode they run
    as one composite, otherwise one at a time in order.

    Returns:
        Number of commands executed

    Raises:
        InvalidCommand: If a command cannot be parsed
        OperationFailed: If a command fails
    """
    if not commands:
        return 0

    operations = [parse_cli_operation(command) for command in commands.commands]

    with timed_section_sync("hooks", getattr(client, "endpoint", None), count=len(operations)):
        if commands.batch:
            composite = create_composite_operation()
            for op in operations:
                composite.add_step(op)
            logger.info(f"Executing {len(operations)} commands as a batch")
            raise_on_failure(client.execute(composite.build()))
        else:
            for command, op in zip(commands.commands, operations):
                logger.info(f"Executing command: {command}")
                raise_on_failure(client.execute(op))

    return len(operations)
