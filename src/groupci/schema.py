"""Pydantic models validating the raw shape of a CI document.

The loader feeds the parsed YAML/TOML mapping through `DocumentSchema` and
then converts it into the frozen `Document` dataclass. Cross references
(job -> group) are checked by the loader so they surface as
`DanglingGroupReference` rather than a generic validation error.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .model import Document, JobSpec


class JobSchema(BaseModel):
    """One entry of the `jobs` mapping."""

    model_config = ConfigDict(extra="forbid")

    script: list[str] = Field(..., min_length=1, description="Shell commands, run in order")
    group: str = Field(..., min_length=1, description="Group this job belongs to")

    @field_validator("script")
    @classmethod
    def validate_commands(cls, v: list[str]) -> list[str]:
        for i, cmd in enumerate(v):
            if not cmd.strip():
                raise ValueError(f"command #{i + 1} is empty")
        return v


class DocumentSchema(BaseModel):
    """Root of a CI document."""

    model_config = ConfigDict(extra="forbid")

    version: str = Field(..., description="Document format marker")
    jobs: dict[str, JobSchema] = Field(default_factory=dict)
    groups: list[str] = Field(..., description="Execution order of groups")

    @field_validator("groups")
    @classmethod
    def validate_unique_groups(cls, v: list[str]) -> list[str]:
        """Ensure group names are distinct and non-empty."""
        if any(not g for g in v):
            raise ValueError("group names must be non-empty")
        if len(v) != len(set(v)):
            duplicates = sorted({g for g in v if v.count(g) > 1})
            raise ValueError(f"Duplicate group names: {duplicates}")
        return v

    def to_document(self) -> Document:
        return Document(
            version=self.version,
            jobs={
                name: JobSpec(name=name, script=tuple(j.script), group=j.group)
                for name, j in self.jobs.items()
            },
            groups=tuple(self.groups),
        )
