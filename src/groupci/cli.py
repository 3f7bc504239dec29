# cli.py
from __future__ import annotations

import sys
from pathlib import Path

import click

from groupci.config import DEFAULT_FILENAMES, FILE_ENV_VAR, WORKERS_ENV_VAR
from groupci.dispatcher import plan as build_plan
from groupci.dispatcher import run as run_document
from groupci.errors import (
    CommandFailed,
    DanglingGroupReference,
    EmptySelection,
    JobNotFound,
    ParseError,
    UnsupportedVersion,
)
from groupci.loader import dumps, load
from groupci.model import Document
from groupci.ui.console import Console, get_console, set_console


def find_document_files(directory: Path = Path(".")) -> list[Path]:
    """Default document files present in `directory`, in lookup order."""
    return [directory / name for name in DEFAULT_FILENAMES if (directory / name).is_file()]


def discover_document(file_arg: str | None) -> Path:
    """
    Resolve the document path from --file (or $GROUPCI_FILE, via click), else the defaults.

    Raises:
        SystemExit: If no document can be found
    """
    console = get_console()

    if file_arg:
        path = Path(file_arg)
        if not path.is_file():
            console.print_error(
                "Document not found",
                f"Could not find document: {file_arg}",
                suggestion=f"Check the path given with --file or ${FILE_ENV_VAR}.",
            )
            sys.exit(1)
        return path

    candidates = find_document_files()
    if not candidates:
        console.print_error(
            "No document found",
            "Could not find a CI document in the current directory.",
            details=["Looked for:", *(f"  {name}" for name in DEFAULT_FILENAMES)],
            suggestion="Create groupci.yml or specify one explicitly:\n  groupci run --file ci.yml",
        )
        sys.exit(1)

    if len(candidates) > 1:
        console.print_debug(f"several documents found, using {candidates[0]}")
    return candidates[0]


def load_or_exit(path: Path) -> Document:
    console = get_console()
    try:
        document = load(path)
    except UnsupportedVersion as e:
        console.print_error("Unsupported version", str(e), suggestion='Set version: "1.0" in the document.')
        sys.exit(1)
    except DanglingGroupReference as e:
        console.print_error(
            "Unknown group",
            str(e),
            suggestion="Add the group to `groups` or fix the job's `group`.",
        )
        sys.exit(1)
    except ParseError as e:
        console.print_error("Invalid document", e.message, details=[str(path), *e.details])
        sys.exit(1)
    console.print_debug(f"loaded {len(document.jobs)} job(s), {len(document.groups)} group(s) from {path}")
    return document


def selection_or_exit(document: Document, groups, jobs):
    console = get_console()
    try:
        return build_plan(document, groups=groups, jobs=jobs)
    except DanglingGroupReference as e:
        console.print_error("Unknown group", str(e))
    except JobNotFound as e:
        console.print_error("Unknown job", str(e))
    except EmptySelection as e:
        console.print_error("Empty selection", str(e), suggestion="Drop --group or pick a job from that group.")
    sys.exit(1)


file_option = click.option(
    "--file",
    "-f",
    "file_",
    default=None,
    envvar=FILE_ENV_VAR,
    help=f"Document path (defaults to ${FILE_ENV_VAR}, then {', '.join(DEFAULT_FILENAMES)})",
)
group_option = click.option("--group", "-g", "groups", multiple=True, help="Only run this group (repeatable)")
job_option = click.option("--job", "-j", "jobs", multiple=True, help="Only run this job (repeatable)")


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.pass_context
def cli(ctx, debug):
    """groupci: run CI jobs group by group from a declarative document."""
    console = Console(debug=debug)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command()
@file_option
@group_option
@job_option
@click.option(
    "--workers",
    default=None,
    envvar=WORKERS_ENV_VAR,
    type=click.IntRange(min=1),
    help=f"Parallel jobs per group (defaults to ${WORKERS_ENV_VAR}, then CPU count - 1)",
)
@click.option("--sequential", is_flag=True, default=False, help="Run the jobs of a group one at a time")
@click.option(
    "--fail-fast/--no-fail-fast",
    default=True,
    show_default=True,
    help="Cancel jobs of a failing group that have not started yet",
)
@click.option("--dry-run", is_flag=True, default=False, help="Print commands without running them")
@click.option(
    "--cwd",
    default=".",
    type=click.Path(exists=True, file_okay=False),
    help="Working directory for every command",
)
@click.pass_context
def run(ctx, file_, groups, jobs, workers, sequential, fail_fast, dry_run, cwd):
    """Run a CI document."""
    console = get_console()

    path = discover_document(file_)
    document = load_or_exit(path)
    steps = selection_or_exit(document, groups, jobs)

    if sequential:
        workers = 1

    try:
        console.print_run_started(
            document=str(path),
            group_count=len(steps),
            job_count=sum(len(names) for _, names in steps),
        )

        status = run_document(
            document,
            groups=groups,
            jobs=jobs,
            max_workers=workers,
            fail_fast=fail_fast,
            cwd=cwd,
            dry_run=dry_run,
        )

        console.print_results(status.results)

        if status.failure is not None:
            failure: CommandFailed = status.failure
            console.print_error(
                "Job failed",
                f"Job '{failure.job}' failed at command #{failure.index + 1}",
                details=[f"$ {failure.command}", f"exit code: {failure.exit_code}"],
            )
        sys.exit(status.code)

    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)


@cli.command()
@file_option
@click.pass_context
def validate(ctx, file_):
    """Load and validate a CI document without running it."""
    console = get_console()
    path = discover_document(file_)
    document = load_or_exit(path)
    console.print_info(
        f"{path}: OK (version {document.version}, "
        f"{len(document.groups)} group(s), {len(document.jobs)} job(s))"
    )


@cli.command()
@file_option
@group_option
@job_option
@click.pass_context
def plan(ctx, file_, groups, jobs):
    """Print groups in execution order and the jobs they contain."""
    console = get_console()
    path = discover_document(file_)
    document = load_or_exit(path)
    console.print_plan(selection_or_exit(document, groups, jobs))


@cli.command()
@file_option
@click.pass_context
def show(ctx, file_):
    """Print the normalized document as YAML."""
    path = discover_document(file_)
    document = load_or_exit(path)
    click.echo(dumps(document), nl=False)


if __name__ == "__main__":
    cli()
