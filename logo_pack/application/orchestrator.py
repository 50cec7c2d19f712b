# logo_pack/application/orchestrator.py

import concurrent.futures
import logging
import threading
import time
from typing import List, Mapping, Optional, Sequence

from logo_pack.domain.exceptions import JobCancelledError, RenderError
from logo_pack.domain.models import ExportFormat, ExportJob, ExportResult, ExportSettings, JobState

logger = logging.getLogger(__name__)

CANCELLED_REASON = "cancelled"


class FormatConverterOrchestrator:
    """
    Renders export jobs concurrently and turns every outcome into an ExportResult.

    Backends are objects with `render(job, svg_path, workspace) -> bytes` and a
    `requires_external_tool` flag. Jobs whose backend spawns processes also
    take a slot of a bounded semaphore, independent of the worker count.
    A failing job never affects its siblings.
    """

    def __init__(self, workspace, backends: Mapping[ExportFormat, object], settings: Optional[ExportSettings] = None):
        self.workspace = workspace
        self.backends = dict(backends)
        self.settings = settings or ExportSettings()
        self._tool_slots = threading.BoundedSemaphore(self.settings.external_tool_concurrency)

    def run(self, jobs: Sequence[ExportJob], cancel_event: Optional[threading.Event] = None) -> List[ExportResult]:
        """
        Returns:
            One result per job, sorted by filename. Returns only after every job finished.
        """
        if not jobs:
            return []

        max_workers = min(self.settings.max_workers, len(jobs))
        logger.info(f"Rendering {len(jobs)} jobs with {max_workers} workers "
                    f"({self.settings.external_tool_concurrency} external tool slots).")
        results: List[ExportResult] = []

        with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_job = {
                executor.submit(self._run_job, job, cancel_event): job
                for job in jobs
            }
            for future in concurrent.futures.as_completed(future_to_job):
                job = future_to_job[future]
                try:
                    results.append(future.result())
                except Exception as exc:
                    # _run_job records its own failures; this only catches bugs in the bookkeeping
                    logger.error(f"Job {job.filename} crashed outside its backend: {exc}", exc_info=True)
                    results.append(ExportResult(job=job, state=JobState.FAILED, reason=str(exc)))

        results.sort(key=lambda r: r.job.filename)
        succeeded = sum(1 for r in results if r.succeeded)
        logger.info(f"Rendering finished: {succeeded} succeeded, {len(results) - succeeded} failed.")
        return results

    @staticmethod
    def _check_cancelled(cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise JobCancelledError(CANCELLED_REASON)

    def _run_job(self, job: ExportJob, cancel_event: Optional[threading.Event]) -> ExportResult:
        result = ExportResult(job=job)
        start = time.monotonic()
        svg_path = None
        try:
            self._check_cancelled(cancel_event)
            backend = self.backends.get(job.format)
            if backend is None:
                raise RenderError(f"No backend registered for format '{job.format.value}'.")

            result.state = JobState.RENDERING
            svg_path = self.workspace.path_for(job.filename, ".svg")
            self.workspace.write_file_text(svg_path, job.svg_content)
            self._check_cancelled(cancel_event)

            if getattr(backend, "requires_external_tool", False):
                with self._tool_slots:
                    self._check_cancelled(cancel_event)
                    data = backend.render(job, svg_path, self.workspace)
            else:
                data = backend.render(job, svg_path, self.workspace)

            self._check_cancelled(cancel_event)
            if not data:
                raise RenderError("Backend returned no data.")

            result.data = data
            result.state = JobState.SUCCEEDED
            logger.debug(f"Job {job.filename} succeeded ({len(data)} bytes).")
        except JobCancelledError:
            result.state = JobState.FAILED
            result.reason = CANCELLED_REASON
            logger.info(f"Job {job.filename} cancelled.")
        except Exception as e:
            result.state = JobState.FAILED
            result.reason = str(e) or e.__class__.__name__
            logger.error(f"Job {job.filename} failed: {result.reason}", exc_info=not isinstance(e, RenderError))
        finally:
            if svg_path is not None:
                self.workspace.delete_file(svg_path)
            result.duration = time.monotonic() - start
        return result
