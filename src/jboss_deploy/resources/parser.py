"""Parser for resource descriptors.

Converts dict/YAML input to frozen Resource objects. Property values are
classified as string or typed literals here, once.

Example descriptor::

    resources:
      - address: subsystem=datasources,data-source=ExampleDS
        enable-resource: true
        properties:
          jndi-name: java:jboss/datasources/ExampleDS
          max-pool-size: 20
          "credential,user-name": sa
        before-add:
          batch: false
          commands:
            - /subsystem=datasources:read-resource
        resources:
          - address: connection-properties=url
            properties:
              value: jdbc:h2:mem:test
"""
import logging
from pathlib import Path
from typing import Any, Optional

import yaml

from ..exceptions import ConfigurationError
from ..management.values import PropertyValue, to_property_value
from .schema import Commands, Resource

logger = logging.getLogger(__name__)

_RESOURCE_KEYS = {
    "address",
    "properties",
    "enable-resource",
    "add-if-absent",
    "resources",
    "before-add",
    "after-add",
}


def _option(config: dict[str, Any], name: str, default: Any = None) -> Any:
    """Read a hyphenated option, also accepting the snake_case spelling."""
    if name in config:
        return config[name]
    return config.get(name.replace("-", "_"), default)


def _property_value(address: Optional[str], key: Any, value: Any) -> PropertyValue:
    """Classify a YAML value; dates and other non-JSON types are rejected."""
    try:
        return to_property_value(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"Unsupported value for property '{key}' of {address}: {value!r}. "
            f"Quote it to send it as a string."
        ) from e


class ResourceParser:
    """Parse resource descriptors from dict/YAML format."""

    def load(self, path: str | Path) -> list[Resource]:
        """Load resources from a YAML file."""
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Resource file not found: {path}")
        with open(path) as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

        resources = self.parse(data or {})
        logger.debug(f"Loaded {len(resources)} resources from {path}")
        return resources

    def parse(self, config: dict[str, Any] | list[Any]) -> list[Resource]:
        """Parse a ``resources`` document (or a bare list of resources).

        Raises:
            ConfigurationError: If the document is malformed
        """
        if isinstance(config, dict):
            config = config.get("resources", [])
        if not isinstance(config, list):
            raise ConfigurationError("'resources' must be a list")
        return [self.parse_resource(item) for item in config]

    def parse_resource(self, config: dict[str, Any]) -> Resource:
        if not isinstance(config, dict):
            raise ConfigurationError(f"Invalid resource definition: {config!r}")

        unknown = {k.replace("_", "-") for k in config} - _RESOURCE_KEYS
        if unknown:
            raise ConfigurationError(f"Unknown resource options: {', '.join(sorted(unknown))}")

        address = config.get("address")
        if address is not None and not isinstance(address, str):
            raise ConfigurationError(f"Resource address must be a string: {address!r}")

        properties = config.get("properties") or {}
        if not isinstance(properties, dict):
            raise ConfigurationError(f"Properties of {address} must be a mapping")

        children = config.get("resources") or []
        if not isinstance(children, list):
            raise ConfigurationError(f"Nested resources of {address} must be a list")

        return Resource(
            address=address or None,
            properties=tuple(
                (str(key), _property_value(address, key, value)) for key, value in properties.items()
            ),
            enable_resource=bool(_option(config, "enable-resource", False)),
            add_if_absent=bool(_option(config, "add-if-absent", False)),
            resources=tuple(self.parse_resource(child) for child in children),
            before_add=self._parse_commands(_option(config, "before-add")),
            after_add=self._parse_commands(_option(config, "after-add")),
        )

    def _parse_commands(self, config: Any) -> Optional[Commands]:
        """Parse hook commands: a list of strings or {commands, batch}."""
        if config is None:
            return None
        if isinstance(config, list):
            return Commands(commands=tuple(str(c) for c in config))
        if isinstance(config, dict):
            commands = config.get("commands") or []
            if not isinstance(commands, list):
                raise ConfigurationError("Hook 'commands' must be a list")
            return Commands(
                commands=tuple(str(c) for c in commands),
                batch=bool(config.get("batch", False)),
            )
        raise ConfigurationError(f"Invalid hook commands: {config!r}")


def parse_property_options(options: list[str]) -> dict[str, str]:
    """Parse ``key=value`` command line options into an ordered mapping.

    Only the first ``=`` separates key from value.
    """
    properties: dict[str, str] = {}
    for option in options:
        key, sep, value = option.partition("=")
        if not sep or not key:
            raise ConfigurationError(f"Invalid property '{option}', expected key=value")
        properties[key] = value
    return properties


def resource_from_options(
    address: Optional[str],
    properties: Optional[list[str]] = None,
    enable_resource: bool = False,
    add_if_absent: bool = False,
) -> Resource:
    """Build a single resource from command line options."""
    parsed = parse_property_options(properties or [])
    return Resource(
        address=address or None,
        properties=tuple((k, to_property_value(v)) for k, v in parsed.items()),
        enable_resource=enable_resource,
        add_if_absent=add_if_absent,
    )
