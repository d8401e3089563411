"""Console output formatting utilities for chainflow."""

from __future__ import annotations

import sys
from typing import List, Optional


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug

    def print_run_started(self, pipeline: str, target: str, task_count: int) -> None:
        """Print run start information."""
        print(f"\n{pipeline.upper()} STARTED")
        print(f"Target: {target}")
        print(f"Tasks: {task_count}")
        print()

    def print_plan(self, levels: List[List[str]]) -> None:
        """Print the validated stage plan."""
        for idx, level in enumerate(levels):
            print(f"=== Stage {idx + 1}: {level} ===")

    def print_task_start(self, name: str) -> None:
        print(f"▶ {name}")

    def print_task_ok(self, name: str) -> None:
        print(f"✓ {name}")

    def print_task_failed(self, name: str, reason: str) -> None:
        """
        Print task failure message.

        Only the first line of the reason is shown outside debug mode.
        """
        print(f"✗ Task failed: {name}")
        if self.debug:
            print(f"Error details: {reason}")
        else:
            error_line = reason.split("\n")[0] if reason else "Unknown error"
            print(f"Error: {error_line}")

    def print_task_discarded(self, name: str) -> None:
        print(f"… {name} finished after failure (result discarded)")

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
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {detail}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_exception(self, exc: BaseException) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exception(type(exc), exc, exc.__traceback__)
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


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
