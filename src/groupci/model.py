# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Tuple


@dataclass(frozen=True)
class JobSpec:
    """A CI job: an ordered script of shell commands and the group it runs in."""
    name: str
    script: Tuple[str, ...]
    group: str

    def to_dict(self) -> Dict[str, Any]:
        return {"script": list(self.script), "group": self.group}


@dataclass(frozen=True)
class Document:
    """
    A loaded CI document.

    `jobs` keeps the order of the source file; `groups` is the execution order.
    Both are read-only views; a Document never changes once built.
    """
    version: str
    jobs: Mapping[str, JobSpec] = field(default_factory=dict)
    groups: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # copy, so the caller's dict cannot change us later
        object.__setattr__(self, "jobs", MappingProxyType(dict(self.jobs)))
        object.__setattr__(self, "groups", tuple(self.groups))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Document):
            return NotImplemented
        return (
            self.version == other.version
            and list(self.jobs.items()) == list(other.jobs.items())
            and self.groups == other.groups
        )

    def __hash__(self) -> int:
        return hash((self.version, tuple(self.jobs.items()), self.groups))

    def jobs_in(self, group: str) -> List[JobSpec]:
        """Jobs belonging to `group`, in declaration order."""
        return [j for j in self.jobs.values() if j.group == group]

    def to_dict(self) -> Dict[str, Any]:
        """File-format mapping (what the loader serializes)."""
        return {
            "version": self.version,
            "jobs": {name: j.to_dict() for name, j in self.jobs.items()},
            "groups": list(self.groups),
        }
