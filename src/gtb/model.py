# model.py
from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

_MAJOR_VERSION = re.compile(r"^v[0-9]+$")


def default_artifact_name(identity: str) -> str:
    """
    Derive the executable name from a module path.

    The last path segment wins, except that trailing major-version
    segments are skipped:

      example.org/cmd     -> cmd
      example.org/cmd/v2  -> cmd
    """
    parts = [p for p in identity.strip().split("/") if p]
    while len(parts) > 1 and _MAJOR_VERSION.match(parts[-1]):
        parts.pop()
    return parts[-1] if parts else ""


def is_valid_artifact_name(name: str) -> bool:
    if not name or name in (".", ".."):
        return False
    if "/" in name or (os.sep in name) or (os.altsep and os.altsep in name):
        return False
    return os.path.basename(name) == name


@dataclass(frozen=True)
class ToolSpec:
    """A single tool to build: where it comes from and how."""
    identity: str
    cmd: Optional[str] = None
    clone: bool = False
    build: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def artifact_name(self) -> str:
        return self.cmd if self.cmd else default_artifact_name(self.identity)


@dataclass
class BuildOutcome:
    """
    Result of one job.

    status is "ok" or "failed"; artifact is set on success, reason on failure.
    """
    name: str
    status: str
    artifact: Path | None = None
    reason: str | None = None
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status == "ok"
