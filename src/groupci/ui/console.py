"""Console output formatting utilities for groupci."""

from __future__ import annotations

import sys
import threading
from typing import Optional, Sequence


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug
        # jobs of a group report from worker threads
        self._lock = threading.Lock()

    def _emit(self, *lines: str, err: bool = False) -> None:
        stream = sys.stderr if err else sys.stdout
        with self._lock:
            for line in lines:
                print(line, file=stream)
            stream.flush()

    def print_run_started(
        self,
        document: str,
        group_count: int,
        job_count: int,
    ) -> None:
        """Print run start information."""
        self._emit(
            "\nRUN STARTED",
            f"Document: {document}",
            f"Groups: {group_count}",
            f"Jobs: {job_count}",
            "",
        )

    def print_group_started(self, name: str, jobs: Sequence[str]) -> None:
        """Print group header with the jobs it contains."""
        listing = ", ".join(jobs) if jobs else "(no jobs)"
        self._emit(f"\n=== GROUP: {name} [{listing}] ===")

    def print_job_start(self, name: str) -> None:
        """Print job start message."""
        self._emit(f"\nJOB STARTED: {name}")

    def print_command(self, job: str, command: str, dry_run: bool = False) -> None:
        """Print command start message."""
        marker = "(dry run) " if dry_run else ""
        self._emit(f"[{job}] $ {marker}{command}")

    def print_success(self, name: str) -> None:
        """Print job success message."""
        self._emit(f"JOB SUCCEEDED: {name}")

    def print_failure(
        self,
        name: str,
        reason: str,
        exit_code: Optional[int] = None,
    ) -> None:
        """
        Print job failure message.

        Args:
            name: Job name
            reason: Failure reason/error message
            exit_code: Optional exit code
        """
        lines = [f"JOB FAILED: {name}"]
        if exit_code is not None:
            lines.append(f"Exit code: {exit_code}")
        lines.append(f"Error: {reason}")
        self._emit(*lines)

    def print_group_skipped(self, name: str, reason: str) -> None:
        self._emit(f"\n=== GROUP: {name} (skipped: {reason}) ===")

    def print_plan(self, plan: Sequence[tuple[str, Sequence[str]]]) -> None:
        """Print the execution plan: groups in order, jobs per group."""
        lines = ["\nPLAN"]
        for idx, (group, jobs) in enumerate(plan, start=1):
            lines.append(f"  {idx}. {group}")
            if not jobs:
                lines.append("       (no jobs)")
            for job in jobs:
                lines.append(f"       - {job}")
        self._emit(*lines)

    def print_results(self, results: dict[str, str]) -> None:
        """Print final results summary."""
        lines = ["\n" + "=" * 40, "RESULTS", "=" * 40]
        for job, status in results.items():
            status_display = status.upper() if status != "ok" else "SUCCESS"
            lines.append(f"  {job}: {status_display}")
        self._emit(*lines)

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        lines = [f"\nERROR: {title}", message]
        if details:
            lines.extend(f"  {detail}" for detail in details)
        if suggestion:
            lines.append(f"\n{suggestion}")
        self._emit(*lines, err=True)

    def print_exception(self, exc: BaseException) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            with self._lock:
                traceback.print_exception(type(exc), exc, exc.__traceback__)
        else:
            self._emit(f"Error: {exc}", err=True)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        self._emit(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            self._emit(f"[DEBUG] {message}", err=True)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
