# errors.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence


class GroupCIError(Exception):
    """Base class for every error groupci surfaces to the CLI."""


@dataclass
class ParseError(GroupCIError):
    """The document could not be read, parsed or validated."""
    message: str
    path: Optional[Path] = None
    details: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        where = f"{self.path}: " if self.path else ""
        lines = [f"{where}{self.message}"]
        lines.extend(f"  {d}" for d in self.details)
        return "\n".join(lines)


@dataclass
class UnsupportedVersion(GroupCIError):
    version: str
    supported: Sequence[str]

    def __str__(self) -> str:
        return (
            f"unsupported document version {self.version!r} "
            f"(supported: {', '.join(self.supported)})"
        )


@dataclass
class JobNotFound(GroupCIError):
    """A job name (or the group a job points at) is not known to the document."""
    job: Optional[str]
    known: Sequence[str] = ()

    def __str__(self) -> str:
        return f"unknown job {self.job!r}. Known jobs: {sorted(self.known)}"


@dataclass
class DanglingGroupReference(JobNotFound):
    """A job (or a --group selection when job is None) names an undeclared group."""
    group: str = ""

    def __str__(self) -> str:
        if self.job is None:
            return f"unknown group {self.group!r}. Known groups: {list(self.known)}"
        return (
            f"job {self.job!r} references group {self.group!r}, "
            f"which is not listed in groups {list(self.known)}"
        )


@dataclass
class CommandFailed(GroupCIError):
    job: str
    command: str
    index: int
    exit_code: int

    def __str__(self) -> str:
        return f"[{self.job}] command #{self.index + 1} failed (exit={self.exit_code}): {self.command}"


@dataclass
class EmptySelection(GroupCIError):
    """A --group/--job selection that matches no job in the document."""
    groups: Sequence[str]
    jobs: Sequence[str]

    def __str__(self) -> str:
        return (
            f"selection matches nothing: groups {list(self.groups)} "
            f"contain none of jobs {list(self.jobs)}"
        )
