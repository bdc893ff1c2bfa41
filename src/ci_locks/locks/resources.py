"""Resource model consumed by the lock manager.

The orchestration layer owns the real configuration items. The lock
manager only reads ``id`` (to name the lock file) and ``name`` (for the
diagnostic note), so anything exposing those two attributes qualifies.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@runtime_checkable
class Resource(Protocol):
    """Anything that can be locked."""

    @property
    def id(self) -> str: ...

    @property
    def name(self) -> str: ...


@dataclass(frozen=True)
class ConfigurationItem:
    """Minimal concrete resource.

    Attributes:
        id: Unique identifier, e.g. "Infrastructure/app/db"
        name: Display name used in the lock note; defaults to the id
    """

    id: str
    name: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            object.__setattr__(self, "name", self.id)


ResourceLike = Resource | str


def as_resource(value: ResourceLike) -> Resource:
    """Normalize a plain identifier string into a ConfigurationItem."""
    if isinstance(value, str):
        return ConfigurationItem(id=value)
    return value


def unique_resources(values) -> list[Resource]:
    """Normalize and de-duplicate by id, keeping first-seen order."""
    seen: set[str] = set()
    result: list[Resource] = []
    for value in values:
        resource = as_resource(value)
        if resource.id in seen:
            continue
        seen.add(resource.id)
        result.append(resource)
    return result
