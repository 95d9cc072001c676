"""Parser for management CLI operation requests.

Hook commands are written the way they are typed in the management CLI::

    /subsystem=logging/console-handler=CONSOLE:write-attribute(name=level,value=DEBUG)
    :reload
    /subsystem=datasources/data-source=ExampleDS:test-connection-in-pool

Parameter values written in the typed literal syntax (numbers, booleans,
lists, objects) are converted; anything else stays a string.
"""
from typing import Any

from ..exceptions import InvalidCommand, InvalidProperty
from .address import Address
from .dmr import parse_typed_value
from .operations import create_operation


def _split_top_level(text: str, separator: str) -> list[str]:
    """Split on a separator that is not nested in brackets or quotes."""
    parts = []
    depth = 0
    in_quotes = False
    current = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "\\" and in_quotes and i + 1 < len(text):
            current.append(text[i:i + 2])
            i += 2
            continue
        if ch == '"':
            in_quotes = not in_quotes
        elif not in_quotes and ch in "[{(":
            depth += 1
        elif not in_quotes and ch in "]})":
            depth -= 1
        if ch == separator and depth == 0 and not in_quotes:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1
    if in_quotes or depth != 0:
        raise InvalidCommand(f"Unbalanced quotes or brackets in '{text}'")
    parts.append("".join(current))
    return parts


def _parse_value(raw: str) -> Any:
    raw = raw.strip()
    try:
        return parse_typed_value(raw)
    except InvalidProperty:
        return raw


def _parse_cli_address(text: str, command: str) -> Address:
    text = text.strip()
    if text in ("", "/"):
        return Address()
    if not text.startswith("/"):
        raise InvalidCommand(f"Address must start with '/' in '{command}'")

    segments = []
    for node in _split_top_level(text[1:], "/"):
        key, sep, value = node.partition("=")
        value = _unquote(value.strip())
        if not sep or not key or not value:
            raise InvalidCommand(f"Invalid address node '{node}' in '{command}'")
        segments.append((key.strip(), value))
    return Address(tuple(segments))


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return value[1:-1].replace('\\"', '"').replace("\\\\", "\\")
    return value


def parse_cli_operation(command: str) -> dict[str, Any]:
    """Convert a CLI operation request into an operation descriptor.

    Raises:
        InvalidCommand: If the request is malformed
    """
    text = command.strip()
    parts = _split_top_level(text, ":")
    if len(parts) < 2:
        raise InvalidCommand(f"Missing ':' before the operation name in '{command}'")

    # Quoted address values may contain ':'
    address = _parse_cli_address(parts[0], command)
    rest = text[len(parts[0]) + 1:].strip()

    params: dict[str, Any] = {}
    paren = rest.find("(")
    if paren < 0:
        name = rest
    else:
        if not rest.endswith(")"):
            raise InvalidCommand(f"Missing ')' in '{command}'")
        name = rest[:paren].strip()
        body = rest[paren + 1:-1].strip()
        if body:
            for param in _split_top_level(body, ","):
                key, sep, value = param.partition("=")
                key = key.strip()
                if not key:
                    raise InvalidCommand(f"Empty parameter name in '{command}'")
                params[key] = _parse_value(value) if sep else True

    if not name:
        raise InvalidCommand(f"Missing operation name in '{command}'")

    op = create_operation(name, address)
    op.update(params)
    return op
