# loader.py
from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from .config import SUPPORTED_VERSIONS
from .errors import DanglingGroupReference, ParseError, UnsupportedVersion
from .model import Document
from .schema import DocumentSchema

YAML_SUFFIXES = (".yml", ".yaml")
TOML_SUFFIXES = (".toml",)


# ----------------------------------------------------------------------
# YAML with duplicate-key detection
# ----------------------------------------------------------------------

MERGE_TAG = "tag:yaml.org,2002:merge"


class _UniqueKeyLoader(yaml.SafeLoader):
    """SafeLoader that refuses duplicated mapping keys instead of keeping the last one."""


def _construct_unique_mapping(loader: _UniqueKeyLoader, node: yaml.MappingNode, deep: bool = False):
    # Only the keys written in this mapping count; "<<" merges may be overridden
    seen = set()
    for key_node, _value_node in node.value:
        if key_node.tag == MERGE_TAG:
            continue
        key = loader.construct_object(key_node, deep=deep)
        try:
            duplicate = key in seen
        except TypeError:
            # unhashable key, construct_mapping reports it
            break
        if duplicate:
            raise yaml.constructor.ConstructorError(
                "while constructing a mapping",
                node.start_mark,
                f"found duplicate key {key!r}",
                key_node.start_mark,
            )
        seen.add(key)
    return loader.construct_mapping(node, deep=deep)


_UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_unique_mapping,
)


# ----------------------------------------------------------------------
# Parsing
# ----------------------------------------------------------------------

def _parse_text(text: str, fmt: str, path: Optional[Path]) -> Any:
    if fmt == "toml":
        try:
            return tomllib.loads(text)
        except tomllib.TOMLDecodeError as e:
            raise ParseError(f"invalid TOML: {e}", path=path) from e
    if fmt == "yaml":
        try:
            return yaml.load(text, Loader=_UniqueKeyLoader)
        except yaml.YAMLError as e:
            raise ParseError("invalid YAML", path=path, details=str(e).splitlines()) from e
    raise ValueError(f"unknown document format: {fmt!r}")


def _normalize_version(raw: Dict[str, Any], path: Optional[Path]) -> str:
    if "version" not in raw:
        raise ParseError("missing required key 'version'", path=path)
    version = raw["version"]
    # YAML reads an unquoted 1.0 as a float
    if isinstance(version, (int, float)) and not isinstance(version, bool):
        version = str(version)
    if not isinstance(version, str):
        raise ParseError(f"'version' must be a string, got {type(version).__name__}", path=path)
    if version not in SUPPORTED_VERSIONS:
        raise UnsupportedVersion(version=version, supported=SUPPORTED_VERSIONS)
    return version


def validate(doc: Document, *, path: Optional[Path] = None) -> Document:
    """
    Check the invariants of a Document, however it was built.

    Raises UnsupportedVersion, ParseError (duplicate group, empty script,
    blank command) or DanglingGroupReference.
    """
    if doc.version not in SUPPORTED_VERSIONS:
        raise UnsupportedVersion(version=doc.version, supported=SUPPORTED_VERSIONS)

    if len(set(doc.groups)) != len(doc.groups):
        dupes = sorted({g for g in doc.groups if doc.groups.count(g) > 1})
        raise ParseError(f"Duplicate group names: {dupes}", path=path)

    declared = set(doc.groups)
    for name, job in doc.jobs.items():
        if name != job.name:
            raise ParseError(f"job registered as {name!r} is named {job.name!r}", path=path)
        if not job.script:
            raise ParseError(f"job {name!r} has an empty script", path=path)
        for i, cmd in enumerate(job.script):
            if not cmd.strip():
                raise ParseError(f"job {name!r}: command #{i + 1} is empty", path=path)
        if job.group not in declared:
            raise DanglingGroupReference(job=name, known=doc.groups, group=job.group)
    return doc


def from_mapping(raw: Any, *, path: Optional[Path] = None) -> Document:
    """
    Validate an already-parsed mapping and build a Document.

    Order of checks:
      1. top level is a mapping
      2. version is supported (before anything else is looked at)
      3. shape (pydantic)
      4. every job's group is declared
    """
    if not isinstance(raw, dict):
        raise ParseError(
            f"document must be a mapping, got {type(raw).__name__}",
            path=path,
        )

    version = _normalize_version(raw, path)

    try:
        schema = DocumentSchema.model_validate({**raw, "version": version})
    except ValidationError as e:
        details = [
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in e.errors()
        ]
        raise ParseError("document does not match the expected shape", path=path, details=details) from e

    return validate(schema.to_document(), path=path)


def loads(text: str, *, fmt: str = "yaml", path: Optional[Path] = None) -> Document:
    """Parse document text (`fmt` is "yaml" or "toml")."""
    return from_mapping(_parse_text(text, fmt, path), path=path)


def format_for(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix in YAML_SUFFIXES:
        return "yaml"
    if suffix in TOML_SUFFIXES:
        return "toml"
    raise ParseError(
        f"unsupported file type {suffix or '<none>'!r} "
        f"(expected one of {', '.join(YAML_SUFFIXES + TOML_SUFFIXES)})",
        path=path,
    )


def load(path: str | Path) -> Document:
    """
    Load a document from a file path.

    Raises:
      ParseError, UnsupportedVersion, DanglingGroupReference
    """
    doc_path = Path(path).expanduser()
    fmt = format_for(doc_path)
    try:
        text = doc_path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ParseError("file not found", path=doc_path) from e
    except (OSError, UnicodeDecodeError) as e:
        raise ParseError(f"could not read file: {e}", path=doc_path) from e
    return loads(text, fmt=fmt, path=doc_path)


# ----------------------------------------------------------------------
# Serialization
# ----------------------------------------------------------------------

def dumps(document: Document) -> str:
    """Serialize a Document to YAML; `loads(dumps(doc)) == doc`."""
    return yaml.safe_dump(
        document.to_dict(),
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
    )


def dump(document: Document, path: str | Path) -> None:
    Path(path).write_text(dumps(document), encoding="utf-8")
