# logo_pack/infrastructure/vector_converter.py

import logging
from typing import Optional

from logo_pack.config import INKSCAPE_BIN, PSTOEDIT_BIN, DEFAULT_TOOL_TIMEOUT
from logo_pack.domain.exceptions import RenderError
from logo_pack.domain.models import ExportFormat, ExportJob
from logo_pack.infrastructure.external_tool import ExternalTool

logger = logging.getLogger(__name__)


class VectorConverter:
    """
    EPS through Inkscape; AI through pstoedit's ps2ai driver chained from an
    EPS intermediate. Both run as child processes.
    """

    requires_external_tool = True

    def __init__(self,
                 inkscape: Optional[ExternalTool] = None,
                 pstoedit: Optional[ExternalTool] = None,
                 timeout: float = DEFAULT_TOOL_TIMEOUT):
        self.inkscape = inkscape or ExternalTool("inkscape", INKSCAPE_BIN, timeout)
        self.pstoedit = pstoedit or ExternalTool("pstoedit", PSTOEDIT_BIN, timeout)

    def render(self, job: ExportJob, svg_path: str, workspace) -> bytes:
        if job.format is ExportFormat.EPS:
            return self._render_eps(job, svg_path, workspace)
        if job.format is ExportFormat.AI:
            return self._render_ai(job, svg_path, workspace)
        raise RenderError(f"VectorConverter cannot produce {job.format.value}.")

    def _to_eps(self, svg_path: str, eps_path: str) -> None:
        # Inkscape 1.x syntax; --export-eps was removed in 1.0
        self.inkscape.run(
            [svg_path, "--export-type=eps", f"--export-filename={eps_path}"],
            expected_output=eps_path,
        )

    def _render_eps(self, job: ExportJob, svg_path: str, workspace) -> bytes:
        eps_path = workspace.path_for(job.filename, ".out.eps")
        try:
            self._to_eps(svg_path, eps_path)
            return workspace.read_file_bytes(eps_path)
        finally:
            workspace.delete_file(eps_path)

    def _render_ai(self, job: ExportJob, svg_path: str, workspace) -> bytes:
        eps_path = workspace.path_for(job.filename, ".intermediate.eps")
        ai_path = workspace.path_for(job.filename, ".out.ai")
        try:
            self._to_eps(svg_path, eps_path)
            self.pstoedit.run(["-f", "ps2ai", eps_path, ai_path], expected_output=ai_path)
            return workspace.read_file_bytes(ai_path)
        finally:
            workspace.delete_file(eps_path)
            workspace.delete_file(ai_path)
