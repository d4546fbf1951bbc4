# builders.py
from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from .commands import CommandResult, CommandRunner, step_args
from .model import ToolSpec, is_valid_artifact_name
from .workspace import Workspace

logger = logging.getLogger(__name__)

GO_MOD = "module tmp\n"


# ----------------------------------------------------------------------
# Errors
# ----------------------------------------------------------------------

@dataclass
class BuildFailure(Exception):
    """
    A job failed. Carries enough context to log the failure without a traceback:
    which tool, at which stage, the failing command and everything the job's
    subprocesses printed up to that point.
    """
    tool: str
    stage: str
    message: str
    cmd: str | None = None
    exit_code: int | None = None
    output: str = ""

    def __str__(self) -> str:
        s = f"{self.stage}: {self.message}"
        if self.exit_code is not None:
            s += f" (exit={self.exit_code})"
        return s


# ----------------------------------------------------------------------
# Per-job execution context
# ----------------------------------------------------------------------

@dataclass
class BuildContext:
    tool: ToolSpec
    scratch: Path
    output_dir: Path
    output_path: Path
    runner: CommandRunner
    log: io.StringIO = field(default_factory=io.StringIO)

    def run(self, stage: str, args: Sequence[str], *, message: str | None = None) -> CommandResult:
        """Run one command in the scratch dir; raise BuildFailure if it does not succeed."""
        res = self.runner.run_command(list(args), self.scratch)
        self.log.write(f"$ {res.display}\n")
        self.log.write(res.stdout)
        self.log.write(res.stderr)
        if not res.ok:
            raise BuildFailure(
                tool=self.tool.identity,
                stage=stage,
                message=message or f"command {res.display!r} failed",
                cmd=res.display,
                exit_code=res.exit_code,
                output=self.log.getvalue(),
            )
        return res

    def go_build(self) -> None:
        self.run(
            "build",
            ["go", "build", "-o", str(self.output_path), self.tool.identity],
            message=f"building {self.tool.identity}",
        )


# ----------------------------------------------------------------------
# Strategies
# ----------------------------------------------------------------------

class BuildStrategy:
    name = "base"

    def build(self, ctx: BuildContext) -> None:
        raise NotImplementedError


class CloneBuild(BuildStrategy):
    """Shallow clone over https, then the configured steps (or `go build`)."""
    name = "clone"

    def build(self, ctx: BuildContext) -> None:
        mod = ctx.tool.identity
        ctx.run(
            "clone",
            ["git", "clone", "--depth", "1", f"https://{mod}", str(ctx.scratch)],
            message=f"cloning {mod}",
        )

        if not ctx.tool.build:
            ctx.go_build()
            return

        for step in ctx.tool.build:
            try:
                args = step_args(step, ctx.output_dir)
            except ValueError as e:
                raise BuildFailure(
                    tool=mod,
                    stage="step",
                    message=f"invalid step {step!r}: {e}",
                    cmd=step,
                    output=ctx.log.getvalue(),
                ) from e
            ctx.run("step", args, message=f"running step {step!r}")


class FetchBuild(BuildStrategy):
    """`go get` the module into a throwaway module, then `go build` it."""
    name = "fetch"

    def build(self, ctx: BuildContext) -> None:
        mod = ctx.tool.identity
        try:
            (ctx.scratch / "go.mod").write_text(GO_MOD, encoding="utf-8")
        except OSError as e:
            raise BuildFailure(tool=mod, stage="setup", message=f"creating temporary go.mod: {e}") from e

        ctx.run("fetch", ["go", "get", mod], message=f"getting {mod}")
        ctx.go_build()


def strategy_for(tool: ToolSpec) -> BuildStrategy:
    return CloneBuild() if tool.clone else FetchBuild()


# ----------------------------------------------------------------------
# Builder
# ----------------------------------------------------------------------

class Builder:
    """
    Builds single tools into `workspace.output_dir`.

    NOTE: artifacts are written in place. A build that fails late can leave
    a partial or stale file at the output path.
    """

    def __init__(self, workspace: Workspace, runner: CommandRunner):
        self.workspace = workspace
        self.runner = runner

    @property
    def output_dir(self) -> Path:
        return self.workspace.output_dir

    def build(self, name: str, tool: ToolSpec) -> Path:
        """
        Build one tool. Returns the artifact path.

        Raises:
          BuildFailure: on an invalid artifact name or any failing command.
        """
        artifact = tool.artifact_name
        if not is_valid_artifact_name(artifact):
            raise BuildFailure(tool=name, stage="validate", message=f"invalid cmd: {artifact!r}")

        try:
            scratch = self.workspace.new_scratch(artifact)
        except OSError as e:
            raise BuildFailure(tool=name, stage="setup", message=f"creating temporary directory: {e}") from e

        ctx = BuildContext(
            tool=tool,
            scratch=scratch,
            output_dir=self.output_dir,
            output_path=self.output_dir / artifact,
            runner=self.runner,
        )
        strategy = strategy_for(tool)
        logger.debug("building %s with %s in %s", name, strategy.name, scratch)
        strategy.build(ctx)
        return ctx.output_path
