"""Compile a resource tree into one atomic composite operation.

For a top-level resource the composite contains, in order:

1. ``remove`` of the existing resource (only when it exists and force is set)
2. ``add`` of the resource with its properties
3. the steps of each nested resource, depth first, in declaration order
4. ``enable`` of the resource (when requested)

Only the top-level resource is checked for existence.
"""
import logging
from typing import Any, Optional

from ..exceptions import MissingAddress, ResourceAlreadyExists
from ..management.address import Address, parse_address
from ..management.operations import (
    CompositeOperation,
    build_add_operation,
    create_composite_operation,
    create_enable_operation,
    create_remove_operation,
)
from .existence import resource_exists
from .schema import ComposedResource, Resource

logger = logging.getLogger(__name__)


def effective_address(base_address: Optional[str], own_address: Optional[str]) -> str:
    """Combine a base address with a resource's own address.

    No base uses the resource's address, no resource address reuses the
    base, equal addresses collapse into one and different addresses are
    concatenated as ``base,own``.

    Raises:
        MissingAddress: If neither address is set
    """
    if not base_address:
        if not own_address:
            raise MissingAddress()
        return own_address
    if not own_address or own_address == base_address:
        return base_address
    return f"{base_address},{own_address}"


class ResourceComposer:
    """Builds the composite for one top-level resource at a time."""

    def __init__(self, client: Any):
        self.client = client

    def compose(
        self,
        resource: Resource,
        base_address: Optional[str] = None,
        profile: Optional[str] = None,
        force: bool = False,
    ) -> ComposedResource:
        """Compile a top-level resource and its children.

        Args:
            resource: Resource to add
            base_address: Address supplied by the caller, combined with the
                resource's own address
            profile: Domain profile to prefix addresses with, or None
            force: Replace the resource if it already exists

        Returns:
            ComposedResource whose composite is None when the resource is
            add-if-absent and already present

        Raises:
            MissingAddress: If no address can be determined
            ResourceAlreadyExists: If the resource exists and force is off
            OperationFailed: If the existence check fails
        """
        address_text = effective_address(base_address, resource.address)
        address = parse_address(profile, address_text)

        composite = create_composite_operation()
        exists = resource_exists(address, self.client)
        if exists:
            if resource.add_if_absent:
                logger.info(f"Resource {address} already exists, nothing to do")
                return ComposedResource(address=address, profile=profile, composite=None)
            if not force:
                raise ResourceAlreadyExists(address)
            logger.info(f"Resource {address} exists and will be replaced")
            composite.add_step(create_remove_operation(address, recursive=True))

        self._append(composite, resource, address, address_text, profile)
        logger.debug(f"Composed {len(composite)} steps for {address}")
        return ComposedResource(address=address, profile=profile, composite=composite)

    def _append(
        self,
        composite: CompositeOperation,
        resource: Resource,
        address: Address,
        address_text: str,
        profile: Optional[str],
    ) -> CompositeOperation:
        composite.add_step(build_add_operation(address, resource.property_map))

        for child in resource.resources:
            child_text = effective_address(address_text, child.address)
            child_address = parse_address(profile, child_text)
            self._append(composite, child, child_address, child_text, profile)

        if resource.enable_resource:
            composite.add_step(create_enable_operation(address))
        return composite
