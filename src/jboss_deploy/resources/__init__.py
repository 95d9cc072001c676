"""Resource descriptors and the add-resource workflow."""
from .schema import (
    AddResourceResult,
    BatchOutcome,
    Commands,
    ComposedResource,
    ExistenceResult,
    Resource,
)
from .parser import ResourceParser, parse_property_options, resource_from_options
from .existence import resource_exists
from .composer import ResourceComposer, effective_address
from .hooks import execute_commands
from .engine import AddResourceEngine

__all__ = [
    "AddResourceEngine",
    "AddResourceResult",
    "BatchOutcome",
    "Commands",
    "ComposedResource",
    "ExistenceResult",
    "Resource",
    "ResourceComposer",
    "ResourceParser",
    "effective_address",
    "execute_commands",
    "parse_property_options",
    "resource_exists",
    "resource_from_options",
]
