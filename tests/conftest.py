"""Shared fixtures: a fake command runner standing in for git and go."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import pytest

from gtb.commands import CommandResult
from gtb.workspace import Workspace


class FakeRunner:
    """
    Records every command and pretends to be git/go.

    - `go build -o PATH ...` writes a small file at PATH
    - `git clone ... DIR` writes a README into DIR
    - a command fails when `fail(args)` returns True
    """

    def __init__(self, fail: Optional[Callable[[Sequence[str]], bool]] = None):
        self.fail = fail or (lambda args: False)
        self.calls: List[Tuple[Tuple[str, ...], Path]] = []
        self._lock = threading.Lock()

    def run_command(self, args: Sequence[str], cwd) -> CommandResult:
        argv = tuple(str(a) for a in args)
        cwd = Path(cwd)
        with self._lock:
            self.calls.append((argv, cwd))

        if self.fail(argv):
            return CommandResult(args=argv, exit_code=1, stdout="", stderr=f"{argv[0]}: boom\n")

        if argv[:2] == ("go", "build") and "-o" in argv:
            out = Path(argv[argv.index("-o") + 1])
            out.write_text(f"binary for {argv[-1]}\n")
        elif argv[:2] == ("git", "clone"):
            Path(argv[-1], "README").write_text(f"checkout of {argv[-2]}\n")

        return CommandResult(args=argv, exit_code=0, stdout=f"ran {argv[0]}\n")

    def commands(self) -> List[Tuple[str, ...]]:
        return [c for c, _ in self.calls]


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def make_runner() -> Callable[..., FakeRunner]:
    return FakeRunner


@pytest.fixture
def workspace(tmp_path: Path):
    ws = Workspace.create(tmp_path / "out")
    yield ws
    ws.cleanup()


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[str], Path]:
    def _write(text: str) -> Path:
        p = tmp_path / "config.yaml"
        p.write_text(text, encoding="utf-8")
        return p

    return _write
