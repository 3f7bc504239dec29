from .model import Document, JobSpec
from .loader import load, loads, dump, dumps, validate
from .dispatcher import run, plan, ExitStatus
from .errors import (
    GroupCIError,
    ParseError,
    UnsupportedVersion,
    JobNotFound,
    DanglingGroupReference,
    EmptySelection,
    CommandFailed,
)

__all__ = [
    "Document", "JobSpec",
    "load", "loads", "dump", "dumps", "validate",
    "run", "plan", "ExitStatus",
    "GroupCIError", "ParseError", "UnsupportedVersion", "JobNotFound",
    "DanglingGroupReference", "EmptySelection", "CommandFailed",
]
