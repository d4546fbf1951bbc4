# workspace.py
from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)

ROOT_PREFIX = "build-"


class Workspace:
    """
    Scratch space for one build run:
      output_dir/
        build-XXXX/            <- root, owned by this run
          <artifact>-XXXX/     <- one per job

    Cleanup is all-or-nothing at the root and never raises.
    """

    def __init__(self, output_dir: Path, root: Path, keep: bool = False):
        self.output_dir = output_dir
        self.root = root
        self.keep = keep

    @classmethod
    def create(cls, output_dir: str | Path, *, keep: bool = False) -> "Workspace":
        """
        Create the output directory (if needed) and a fresh root inside it.

        Raises:
          OSError: if either directory cannot be created.
        """
        out = Path(output_dir).expanduser().resolve()
        out.mkdir(parents=True, exist_ok=True)
        root = Path(tempfile.mkdtemp(prefix=ROOT_PREFIX, dir=str(out)))
        logger.debug("created workspace %s", root)
        return cls(out, root, keep=keep)

    def new_scratch(self, prefix: str) -> Path:
        """Create a uniquely named job directory under the root."""
        return Path(tempfile.mkdtemp(prefix=f"{prefix}-", dir=str(self.root)))

    def cleanup(self) -> None:
        if self.keep:
            logger.info("keeping workspace %s", self.root)
            return

        shutil.rmtree(self.root, ignore_errors=True)
        if self.root.exists():
            logger.debug("could not fully remove workspace %s", self.root)

    def __enter__(self) -> "Workspace":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.cleanup()
