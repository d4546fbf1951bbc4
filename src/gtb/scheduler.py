# scheduler.py
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Dict, Mapping, Optional, Protocol

from .admission import AdmissionController
from .builders import BuildFailure
from .model import BuildOutcome, ToolSpec

logger = logging.getLogger(__name__)

ProgressFn = Callable[[BuildOutcome], None]


class ToolBuilder(Protocol):
    def build(self, name: str, tool: ToolSpec) -> Path:
        ...


class Scheduler:
    """
    Runs independent build jobs in parallel.

    Every job goes through the admission controller before it is submitted.
    A failing job is logged and recorded; it never stops the others.
    """

    def __init__(
        self,
        builder: ToolBuilder,
        admission: AdmissionController,
        *,
        on_progress: Optional[ProgressFn] = None,
    ):
        self.builder = builder
        self.admission = admission
        self.on_progress = on_progress
        self._progress_lock = threading.Lock()

    def run(self, tools: Mapping[str, ToolSpec]) -> Dict[str, BuildOutcome]:
        """
        Build every tool and return {name: outcome}.

        Raises:
          LoadSampleError: admission could not sample the load. Jobs already
          dispatched are still waited for before the error propagates.
        """
        results: Dict[str, BuildOutcome] = {}
        in_flight: Dict[Future, str] = {}

        with ThreadPoolExecutor(max_workers=self.admission.max_running, thread_name_prefix="gtb") as pool:
            for name, tool in tools.items():
                self.admission.admit()
                try:
                    fut = pool.submit(self._run_job, name, tool)
                except BaseException:
                    self.admission.release()
                    raise
                in_flight[fut] = name

            for fut in as_completed(in_flight):
                outcome = fut.result()
                results[outcome.name] = outcome

        return results

    def _run_job(self, name: str, tool: ToolSpec) -> BuildOutcome:
        start = time.monotonic()
        try:
            artifact = self.builder.build(name, tool)
            outcome = BuildOutcome(name=name, status="ok", artifact=artifact)
            logger.debug("built %s -> %s", name, artifact)
        except BuildFailure as e:
            outcome = BuildOutcome(name=name, status="failed", reason=str(e))
            logger.warning("building tool %s: %s", name, e)
            if e.output:
                logger.warning("output of %s:\n%s", name, e.output.rstrip())
        except Exception as e:
            outcome = BuildOutcome(name=name, status="failed", reason=f"{type(e).__name__}: {e}")
            logger.exception("building tool %s: unexpected error", name)
        finally:
            self.admission.release()

        outcome.duration = time.monotonic() - start
        self._report(outcome)
        return outcome

    def _report(self, outcome: BuildOutcome) -> None:
        if self.on_progress is None:
            return
        with self._progress_lock:
            try:
                self.on_progress(outcome)
            except Exception:
                logger.debug("progress observer failed", exc_info=True)


def run_tools(
    tools: Mapping[str, ToolSpec],
    builder: ToolBuilder,
    admission: AdmissionController | None = None,
    on_progress: Optional[ProgressFn] = None,
) -> Dict[str, BuildOutcome]:
    """Convenience wrapper: Scheduler(builder, admission).run(tools)."""
    admission = admission or AdmissionController()
    return Scheduler(builder, admission, on_progress=on_progress).run(tools)
