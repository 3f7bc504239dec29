# dispatcher.py
from __future__ import annotations

import os
import subprocess
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from .errors import CommandFailed, DanglingGroupReference, EmptySelection, JobNotFound
from .loader import validate
from .model import Document, JobSpec
from .ui.console import get_console

# Statuses a job can end in
OK = "ok"
FAILED = "failed"
CANCELLED = "cancelled"
SKIPPED = "skipped"

RunFn = Callable[[JobSpec], object]
Plan = List[Tuple[str, List[str]]]


@dataclass(frozen=True)
class ExitStatus:
    """
    Outcome of a dispatch.

    code: 0 on success, otherwise the exit code of the first failed command
    results: job name -> ok | failed | cancelled | skipped, in dispatch order
    failure: the first CommandFailed, if any
    """
    code: int
    results: Dict[str, str] = field(default_factory=dict)
    failure: Optional[CommandFailed] = None

    @property
    def ok(self) -> bool:
        return self.code == 0


def exit_code_for(returncode: int) -> int:
    """Map a Popen returncode to a shell-style exit code (signal N -> 128 + N)."""
    if returncode < 0:
        return 128 - returncode
    return returncode


# ----------------------------------------------------------------------
# Execution primitives
# ----------------------------------------------------------------------

def job_env(job: JobSpec, base: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    env = dict(os.environ if base is None else base)
    env["GROUPCI_JOB"] = job.name
    env["GROUPCI_GROUP"] = job.group
    return env


def run_command(
    job: JobSpec,
    command: str,
    index: int,
    *,
    cwd: Path,
    env: Mapping[str, str],
) -> None:
    """Run one shell command, streaming its output; raise CommandFailed on non-zero exit."""
    proc = subprocess.run(
        command,
        shell=True,
        cwd=str(cwd),
        env=dict(env),
    )

    if proc.returncode != 0:
        raise CommandFailed(
            job=job.name,
            command=command,
            index=index,
            exit_code=exit_code_for(proc.returncode),
        )


def run_job(
    job: JobSpec,
    *,
    cwd: str | Path = ".",
    env: Optional[Mapping[str, str]] = None,
    dry_run: bool = False,
) -> str:
    """
    Run a job's script in order. The first failing command aborts the job;
    later commands are never started.
    """
    console = get_console()
    cwd_p = Path(cwd).resolve()
    full_env = job_env(job, env)

    console.print_job_start(job.name)
    for index, command in enumerate(job.script):
        console.print_command(job.name, command, dry_run=dry_run)
        if dry_run:
            continue
        run_command(job, command, index, cwd=cwd_p, env=full_env)

    console.print_success(job.name)
    return OK


def run_group(
    group: str,
    jobs: Iterable[JobSpec],
    run_fn: RunFn,
    *,
    max_workers: int | None = None,
    fail_fast: bool = True,
) -> Tuple[Dict[str, str], Optional[CommandFailed]]:
    """
    Run every job of one group on a thread pool.

    - fail_fast: after the first failure, jobs not yet started are cancelled
      (running ones finish).
    - Any exception other than CommandFailed cancels the pending jobs and is re-raised.

    Returns (results in declaration order, first CommandFailed or None).
    """
    console = get_console()
    jobs = list(jobs)
    results: Dict[str, str] = {}
    failure: Optional[CommandFailed] = None

    if not jobs:
        console.print_debug(f"group {group!r} has no jobs")
        return results, None

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=f"groupci-{group}") as pool:
        futures: Dict[Future, str] = {pool.submit(run_fn, job): job.name for job in jobs}

        for future in as_completed(futures):
            name = futures[future]
            if future.cancelled():
                results[name] = CANCELLED
                continue
            try:
                future.result()
                results[name] = OK
            except CommandFailed as e:
                results[name] = FAILED
                console.print_failure(name, str(e), exit_code=e.exit_code)
                if failure is None:
                    failure = e
                if fail_fast:
                    for pending in futures:
                        pending.cancel()
            except Exception:
                for pending in futures:
                    pending.cancel()
                raise

    return {job.name: results[job.name] for job in jobs}, failure


# ----------------------------------------------------------------------
# Planning
# ----------------------------------------------------------------------

def plan(
    document: Document,
    *,
    groups: Optional[Iterable[str]] = None,
    jobs: Optional[Iterable[str]] = None,
) -> Plan:
    """
    Ordered (group, [job names]) pairs that `run` would dispatch.

    Group order always follows document.groups, whatever order the selection
    is given in. With a job selection, groups left without jobs are dropped,
    and a selection left with no jobs at all raises EmptySelection.
    """
    wanted_groups = list(groups or [])
    wanted_jobs = list(jobs or [])

    for g in wanted_groups:
        if g not in document.groups:
            raise DanglingGroupReference(job=None, known=document.groups, group=g)
    for j in wanted_jobs:
        if j not in document.jobs:
            raise JobNotFound(job=j, known=list(document.jobs))

    result: Plan = []
    for group in document.groups:
        if wanted_groups and group not in wanted_groups:
            continue
        names = [j.name for j in document.jobs_in(group)]
        if wanted_jobs:
            names = [n for n in names if n in wanted_jobs]
            if not names:
                continue
        result.append((group, names))

    if wanted_jobs and not result:
        raise EmptySelection(groups=wanted_groups, jobs=wanted_jobs)
    return result


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def run(
    document: Document,
    *,
    groups: Optional[Iterable[str]] = None,
    jobs: Optional[Iterable[str]] = None,
    max_workers: int | None = None,
    fail_fast: bool = True,
    cwd: str | Path = ".",
    env: Optional[Mapping[str, str]] = None,
    dry_run: bool = False,
    run_fn: Optional[RunFn] = None,
) -> ExitStatus:
    """
    Dispatch a document: groups strictly in order, jobs of a group concurrently.

    A failing group stops the run; its remaining jobs are cancelled when
    fail_fast is set, and later groups are reported as skipped.
    """
    console = get_console()
    validate(document)

    cwd_p = Path(cwd).resolve()
    if not cwd_p.is_dir():
        raise FileNotFoundError(f"working directory not found: {cwd_p}")

    steps = plan(document, groups=groups, jobs=jobs)

    if max_workers is None:
        c = os.cpu_count() or 2
        max_workers = max(1, c - 1)

    if run_fn is None:
        run_fn = partial(run_job, cwd=cwd_p, env=env, dry_run=dry_run)

    results: Dict[str, str] = {}
    failure: Optional[CommandFailed] = None

    for group, names in steps:
        if failure is not None:
            console.print_group_skipped(group, "an earlier group failed")
            results.update({n: SKIPPED for n in names})
            continue

        console.print_group_started(group, names)
        group_results, failure = run_group(
            group,
            [document.jobs[n] for n in names],
            run_fn,
            max_workers=max_workers,
            fail_fast=fail_fast,
        )
        results.update(group_results)

    code = failure.exit_code if failure is not None else 0
    return ExitStatus(code=code, results=results, failure=failure)
