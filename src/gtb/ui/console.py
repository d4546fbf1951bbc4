"""Console output formatting utilities for gtb."""

from __future__ import annotations

import sys
from typing import Mapping, Optional

from gtb.model import BuildOutcome


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug

    def print_run_started(
        self,
        config: str,
        output_dir: str,
        tool_count: int,
        workspace: Optional[str] = None,
    ) -> None:
        """Print run start information."""
        print("\nBUILD STARTED", file=sys.stderr)
        print(f"Config: {config}", file=sys.stderr)
        print(f"Output: {output_dir}", file=sys.stderr)
        print(f"Tools: {tool_count}", file=sys.stderr)
        if workspace and self.debug:
            print(f"Workspace: {workspace}", file=sys.stderr)
        print(file=sys.stderr)

    def print_results(self, results: Mapping[str, BuildOutcome]) -> None:
        """Print final results summary."""
        print("\n" + "=" * 40)
        print("RESULTS")
        print("=" * 40)
        for name in sorted(results):
            outcome = results[name]
            if outcome.ok:
                print(f"  {name}: SUCCESS ({outcome.duration:.1f}s)")
            else:
                print(f"  {name}: FAILED ({outcome.reason})")
        failed = sum(1 for o in results.values() if not o.ok)
        print(f"\n{len(results) - failed} built, {failed} failed")

    def print_warning(self, message: str) -> None:
        print(f"Warning: {message}", file=sys.stderr)

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

    def print_exception(self, exc: Exception) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exception(type(exc), exc, exc.__traceback__)
        else:
            print(f"Error: {exc}", file=sys.stderr)


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
