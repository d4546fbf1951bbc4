# cli.py
from __future__ import annotations

import logging
import os
import sys

import click

from gtb.admission import (
    DEFAULT_LOAD_FACTOR,
    DEFAULT_MAX_RUNNING,
    AdmissionController,
    LoadSampleError,
    sample_load,
)
from gtb.builders import Builder
from gtb.commands import SubprocessRunner
from gtb.config import (
    DEFAULT_CONFIG_FILE,
    ConfigError,
    check_artifact_names,
    load_config,
    select_tools,
    unknown_tools,
)
from gtb.scheduler import Scheduler
from gtb.ui.console import Console, get_console, set_console
from gtb.workspace import Workspace

LOG_FORMAT = "%(levelname).1s: %(message)s"


def setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--config", "config_path", default=DEFAULT_CONFIG_FILE, show_default=True, help="Configuration filename")
@click.option(
    "--output-dir",
    default=lambda: os.getcwd(),
    show_default="current directory",
    type=click.Path(file_okay=False),
    help="Output directory",
)
@click.option("--keep", is_flag=True, default=False, help="Keep build directory")
@click.option(
    "--max-jobs",
    default=DEFAULT_MAX_RUNNING,
    show_default=True,
    type=click.IntRange(min=1),
    help="Maximum number of tools built at once",
)
@click.option(
    "--load-factor",
    default=DEFAULT_LOAD_FACTOR,
    show_default=True,
    type=click.FloatRange(min=0, min_open=True),
    help="Start new builds only while load average <= factor * CPUs",
)
@click.option("--debug", is_flag=True, default=False, help="Enable debug logging and stack traces")
@click.argument("tools", nargs=-1)
def cli(config_path, output_dir, keep, max_jobs, load_factor, debug, tools):
    """gtb: Go tool builder.

    Builds every tool in the configuration, or only the TOOLS named.
    """
    console = Console(debug=debug)
    set_console(console)
    setup_logging(debug)

    try:
        cfg = load_config(config_path)
        work = select_tools(cfg, tools)
        check_artifact_names(work)
    except ConfigError as e:
        console.print_error("Failed to load configuration", str(e))
        sys.exit(1)

    for name in unknown_tools(cfg, tools):
        console.print_warning(f"tool {name!r} is not in {config_path}")

    try:
        workspace = Workspace.create(output_dir, keep=keep)
    except OSError as e:
        console.print_error(
            "Failed to create workspace",
            f"Could not create a build directory in {output_dir}",
            details=[str(e)],
        )
        sys.exit(1)

    admission = AdmissionController(max_jobs, load_factor=load_factor, load_sampler=sample_load)

    try:
        console.print_run_started(
            config=config_path,
            output_dir=str(workspace.output_dir),
            tool_count=len(work),
            workspace=str(workspace.root),
        )
        results = build_all(work, workspace, admission)
    except LoadSampleError as e:
        console.print_error("Cannot schedule builds", str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)
    finally:
        workspace.cleanup()

    get_console().print_results(results)


def build_all(work, workspace: Workspace, admission: AdmissionController):
    builder = Builder(workspace, SubprocessRunner())
    with click.progressbar(length=len(work), label="Building", file=sys.stderr) as bar:
        scheduler = Scheduler(builder, admission, on_progress=lambda _outcome: bar.update(1))
        return scheduler.run(work)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
