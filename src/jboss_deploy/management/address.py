"""Hierarchical resource addresses.

An address is an ordered list of ``key=value`` segments identifying one node
of the management tree, e.g. ``subsystem=datasources,data-source=ExampleDS``.
The last segment is the child (type, name); everything before it is the
parent.
"""
from dataclasses import dataclass
from typing import Iterator, Optional

from ..exceptions import EmptyAddress, InvalidAddressSegment

PROFILE = "profile"


@dataclass(frozen=True)
class Address:
    """Immutable ordered sequence of (key, value) segments."""
    segments: tuple[tuple[str, str], ...] = ()

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self.segments)

    def __len__(self) -> int:
        return len(self.segments)

    def __bool__(self) -> bool:
        return bool(self.segments)

    def __str__(self) -> str:
        if not self.segments:
            return "/"
        return "".join(f"/{key}={value}" for key, value in self.segments)

    def append(self, key: str, value: str) -> "Address":
        return Address(self.segments + ((key, value),))

    def join(self, other: "Address") -> "Address":
        return Address(self.segments + other.segments)

    def to_model(self) -> list[dict[str, str]]:
        """Wire form: a list of single-key objects."""
        return [{key: value} for key, value in self.segments]

    @classmethod
    def from_model(cls, model: list) -> "Address":
        segments = []
        for node in model or []:
            for key, value in node.items():
                segments.append((key, value))
        return cls(tuple(segments))


def parse_address(profile_name: Optional[str], input_address: str) -> Address:
    """Parse a comma-delimited address string.

    Args:
        profile_name: Domain profile to prefix the address with, or None
        input_address: Address such as ``subsystem=logging,console-handler=CONSOLE``

    Raises:
        InvalidAddressSegment: If a segment is not exactly one key=value pair
    """
    segments: list[tuple[str, str]] = []
    if profile_name is not None:
        segments.append((PROFILE, profile_name))

    for part in input_address.split(","):
        pair = part.split("=")
        if len(pair) != 2 or not pair[0] or not pair[1]:
            raise InvalidAddressSegment(part)
        segments.append((pair[0], pair[1]))

    return Address(tuple(segments))


def child_segment(address: Address) -> tuple[str, str]:
    """Return the last segment as (type, name)."""
    if not address:
        raise EmptyAddress()
    return address.segments[-1]


def parent_address(address: Address) -> Address:
    """Return every segment except the last one."""
    if not address:
        raise EmptyAddress()
    return Address(address.segments[:-1])
