"""Attribute values for resource properties.

Whether a configured value is a plain string or a typed literal is decided
once, when the configuration is parsed, so operation building never has to
inspect string prefixes.
"""
import json
from dataclasses import dataclass
from typing import Any, Union

from .dmr import parse_typed_value

# Configuration escape prefix for typed literals
TYPED_PREFIX = "!!"


@dataclass(frozen=True)
class StringLiteral:
    """A value sent to the server as a string."""
    value: str

    def resolve(self) -> Any:
        return self.value


@dataclass(frozen=True)
class TypedLiteral:
    """A value written in the model's literal syntax (number, boolean, object...)."""
    raw: str

    def resolve(self) -> Any:
        return parse_typed_value(self.raw)


PropertyValue = Union[StringLiteral, TypedLiteral]


def to_property_value(value: Any) -> PropertyValue:
    """Classify a raw configuration value.

    Strings starting with ``!!`` are typed literals, other strings are taken
    verbatim. Native non-string values (as produced by YAML) are typed
    literals holding their JSON text. None becomes an empty string.
    """
    if value is None:
        return StringLiteral("")
    if isinstance(value, (StringLiteral, TypedLiteral)):
        return value
    if isinstance(value, str):
        if value.startswith(TYPED_PREFIX):
            return TypedLiteral(value[len(TYPED_PREFIX):])
        return StringLiteral(value)
    return TypedLiteral(json.dumps(value))
