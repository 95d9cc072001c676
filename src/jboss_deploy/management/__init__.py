"""Management model primitives: addresses, values and operations."""
from .address import Address, parse_address, child_segment, parent_address
from .values import PropertyValue, StringLiteral, TypedLiteral, to_property_value
from .dmr import parse_typed_value
from .operations import (
    CompositeOperation,
    build_add_operation,
    create_add_operation,
    create_composite_operation,
    create_enable_operation,
    create_list_deployments_operation,
    create_operation,
    create_read_attribute_operation,
    create_read_children_names_operation,
    create_read_resource_operation,
    create_remove_operation,
    get_failure_description,
    is_successful,
    raise_on_failure,
    read_result,
    read_result_as_string,
)
from .cli_commands import parse_cli_operation

__all__ = [
    # Addresses
    "Address",
    "parse_address",
    "child_segment",
    "parent_address",
    # Values
    "PropertyValue",
    "StringLiteral",
    "TypedLiteral",
    "to_property_value",
    "parse_typed_value",
    # Operations
    "CompositeOperation",
    "build_add_operation",
    "create_add_operation",
    "create_composite_operation",
    "create_enable_operation",
    "create_list_deployments_operation",
    "create_operation",
    "create_read_attribute_operation",
    "create_read_children_names_operation",
    "create_read_resource_operation",
    "create_remove_operation",
    "get_failure_description",
    "is_successful",
    "raise_on_failure",
    "read_result",
    "read_result_as_string",
    "parse_cli_operation",
]
