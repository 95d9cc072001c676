"""Resource descriptors and add-resource results."""
from dataclasses import dataclass, field
from typing import Any, Optional

from ..management.address import Address
from ..management.operations import CompositeOperation
from ..management.values import PropertyValue


@dataclass(frozen=True)
class Commands:
    """CLI operation strings run around a resource add."""
    commands: tuple[str, ...] = ()
    # Run all commands as one composite
    batch: bool = False

    def __bool__(self) -> bool:
        return bool(self.commands)


@dataclass(frozen=True)
class Resource:
    """A configuration resource to add, with optional nested children."""
    address: Optional[str] = None
    # Ordered (key path, value) pairs; a key path is comma separated
    properties: tuple[tuple[str, PropertyValue], ...] = ()
    enable_resource: bool = False
    add_if_absent: bool = False
    resources: tuple["Resource", ...] = ()
    before_add: Optional[Commands] = None
    after_add: Optional[Commands] = None

    @property
    def property_map(self) -> dict[str, PropertyValue]:
        return dict(self.properties)


@dataclass(frozen=True)
class ExistenceResult:
    """Outcome of a resource existence check."""
    found: bool
    # Children of the queried type under the parent
    child_count: int = 0

    def __bool__(self) -> bool:
        return self.found


@dataclass
class ComposedResource:
    """A top-level resource compiled into one composite."""
    address: Address
    profile: Optional[str] = None
    # None when the resource is add-if-absent and already exists
    composite: Optional[CompositeOperation] = None

    @property
    def nothing_to_do(self) -> bool:
        return self.composite is None


@dataclass
class BatchOutcome:
    """What happened to one resource in one profile."""
    address: str
    profile: Optional[str] = None
    status: str = "pending"  # "pending", "committed", "skipped", "failed", "planned"
    steps: list[dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class AddResourceResult:
    """Per-batch report for an add-resource run."""
    batches: list[BatchOutcome] = field(default_factory=list)
    dry_run: bool = False

    @property
    def committed(self) -> list[BatchOutcome]:
        return [b for b in self.batches if b.status == "committed"]

    @property
    def skipped(self) -> list[BatchOutcome]:
        return [b for b in self.batches if b.status == "skipped"]

    @property
    def failed(self) -> list[BatchOutcome]:
        return [b for b in self.batches if b.status == "failed"]

    @property
    def success(self) -> bool:
        return not self.failed

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "dry_run": self.dry_run,
            "batches": [
                {
                    "address": b.address,
                    "profile": b.profile,
                    "status": b.status,
                    "steps": len(b.steps),
                    "error": b.error,
                }
                for b in self.batches
            ],
        }
