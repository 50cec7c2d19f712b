import threading

from conftest import FakeBackend, make_job
from logo_pack.application.orchestrator import FormatConverterOrchestrator
from logo_pack.domain import ExportFormat, ExportSettings, ExternalToolError, JobState


def all_jobs():
    return [make_job(fmt=fmt) for fmt in (ExportFormat.PNG, ExportFormat.JPG, ExportFormat.PDF, ExportFormat.AI)]


def test_all_jobs_succeed_and_results_are_sorted(workspace):
    backend = FakeBackend()
    backends = {fmt: backend for fmt in ExportFormat}
    results = FormatConverterOrchestrator(workspace, backends, ExportSettings(max_workers=3)).run(all_jobs())

    assert [r.job.filename for r in results] == sorted(r.job.filename for r in results)
    assert all(r.state is JobState.SUCCEEDED for r in results)
    assert {r.data for r in results} == {f"logo_RGB_Full_Color.{ext}".encode() for ext in ("png", "jpg", "pdf", "ai")}


def test_failing_job_does_not_affect_siblings(workspace):
    raster = FakeBackend()
    vector = FakeBackend(fail_formats={ExportFormat.AI}, requires_external_tool=True, error_cls=lambda msg: ExternalToolError("pstoedit", msg))
    backends = {ExportFormat.PNG: raster, ExportFormat.JPG: raster, ExportFormat.PDF: raster, ExportFormat.AI: vector}

    results = FormatConverterOrchestrator(workspace, backends).run(all_jobs())
    by_format = {r.job.format: r for r in results}

    assert by_format[ExportFormat.AI].state is JobState.FAILED
    assert "pstoedit" in by_format[ExportFormat.AI].reason
    assert by_format[ExportFormat.AI].data is None
    assert all(by_format[fmt].succeeded for fmt in (ExportFormat.PNG, ExportFormat.JPG, ExportFormat.PDF))


def test_unexpected_backend_exception_is_isolated(workspace):
    backend = FakeBackend(fail_formats={ExportFormat.PNG}, error_cls=ZeroDivisionError)
    results = FormatConverterOrchestrator(workspace, {ExportFormat.PNG: backend, ExportFormat.JPG: backend}).run(
        [make_job(fmt=ExportFormat.PNG), make_job(fmt=ExportFormat.JPG)]
    )

    by_format = {r.job.format: r for r in results}
    assert by_format[ExportFormat.JPG].succeeded
    assert by_format[ExportFormat.PNG].state is JobState.FAILED


def test_missing_backend_fails_only_that_job(workspace):
    results = FormatConverterOrchestrator(workspace, {ExportFormat.PNG: FakeBackend()}).run(
        [make_job(fmt=ExportFormat.PNG), make_job(fmt=ExportFormat.EPS)]
    )
    by_format = {r.job.format: r for r in results}

    assert by_format[ExportFormat.PNG].succeeded
    assert "No backend registered" in by_format[ExportFormat.EPS].reason


def test_empty_output_is_a_failure(workspace):
    class EmptyBackend:
        requires_external_tool = False

        def render(self, job, svg_path, workspace):
            return b""

    results = FormatConverterOrchestrator(workspace, {ExportFormat.PNG: EmptyBackend()}).run([make_job()])
    assert results[0].state is JobState.FAILED


def test_scratch_files_removed_on_success_and_failure(workspace):
    backend = FakeBackend(fail_formats={ExportFormat.JPG})
    backends = {fmt: backend for fmt in ExportFormat}
    FormatConverterOrchestrator(workspace, backends).run(all_jobs())

    assert len(backend.svg_paths) == 4
    assert len(set(backend.svg_paths)) == 4
    assert workspace.list_files() == []


def test_cancelled_batch_fails_every_job(workspace):
    backend = FakeBackend()
    cancel_event = threading.Event()
    cancel_event.set()

    results = FormatConverterOrchestrator(workspace, {fmt: backend for fmt in ExportFormat}).run(all_jobs(), cancel_event)

    assert all(r.state is JobState.FAILED and r.reason == "cancelled" for r in results)
    assert backend.svg_paths == []
    assert workspace.list_files() == []


def test_external_tool_concurrency_is_bounded(workspace):
    tool_backend = FakeBackend(requires_external_tool=True, delay=0.05)
    jobs = [make_job(name=f"logo_{i}", fmt=ExportFormat.EPS) for i in range(6)]
    settings = ExportSettings(max_workers=6, external_tool_concurrency=2)

    results = FormatConverterOrchestrator(workspace, {ExportFormat.EPS: tool_backend}, settings).run(jobs)

    assert all(r.succeeded for r in results)
    assert tool_backend.max_active <= 2


def test_no_jobs_returns_empty_list(workspace):
    assert FormatConverterOrchestrator(workspace, {}).run([]) == []
