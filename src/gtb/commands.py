# commands.py
# Everything that touches subprocesses lives here, so the build strategies
# only ever talk to a CommandRunner.

from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from string import Template
from typing import List, Protocol, Sequence

logger = logging.getLogger(__name__)

OUTDIR_PLACEHOLDER = "OUTDIR"

TOOL_HINTS = {
    "git": "Install Git or fix PATH.",
    "go": "Install the Go toolchain or fix PATH.",
    "make": "Install make or fix PATH.",
}


@dataclass(frozen=True)
class CommandResult:
    args: tuple[str, ...]
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def display(self) -> str:
        return shlex.join(self.args)


class CommandRunner(Protocol):
    def run_command(self, args: Sequence[str], cwd: str | Path) -> CommandResult:
        ...


class SubprocessRunner:
    """Runs commands with subprocess, capturing stdout/stderr as text."""

    def run_command(self, args: Sequence[str], cwd: str | Path) -> CommandResult:
        argv = [str(a) for a in args]
        logger.debug("running %s (cwd=%s)", shlex.join(argv), cwd)
        try:
            proc = subprocess.run(
                argv,
                cwd=str(cwd),
                text=True,
                capture_output=True,
                check=False,
            )
        except FileNotFoundError:
            hint = TOOL_HINTS.get(argv[0], "Install it or fix PATH.")
            return CommandResult(
                args=tuple(argv),
                exit_code=127,
                stderr=f"{argv[0]}: command not found. {hint}\n",
            )
        except PermissionError as e:
            return CommandResult(args=tuple(argv), exit_code=126, stderr=f"{e}\n")

        return CommandResult(
            args=tuple(argv),
            exit_code=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
        )


# ----------------------------------------------------------------------
# Build step parsing
# ----------------------------------------------------------------------

def tokenize(step: str) -> List[str]:
    """
    Split a build step into arguments, shell style.

    Quotes group words ("a b" is one argument); no other shell
    features (pipes, globs, redirection) are interpreted.

    Raises:
      ValueError: for unbalanced quotes or an empty step.
    """
    args = shlex.split(step)
    if not args:
        raise ValueError(f"empty build step: {step!r}")
    return args


def expand_placeholders(args: Sequence[str], output_dir: str | Path) -> List[str]:
    """
    Substitute $OUTDIR / ${OUTDIR} in every argument after the program.

    Any other `$` text is passed through untouched.
    """
    mapping = {OUTDIR_PLACEHOLDER: str(output_dir)}
    out = list(args[:1])
    out.extend(Template(a).safe_substitute(mapping) for a in args[1:])
    return out


def step_args(step: str, output_dir: str | Path) -> List[str]:
    return expand_placeholders(tokenize(step), output_dir)
