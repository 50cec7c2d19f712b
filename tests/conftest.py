import threading
import time
import xml.etree.ElementTree as ET

import pytest

from logo_pack.domain import ColorSpace, ColorVariantKind, ExportFormat, ExportJob, RenderError
from logo_pack.infrastructure.file_gateway import ScratchWorkspace

SVG_NS = "{http://www.w3.org/2000/svg}"

# Three red applications in three notations, one blue
RED_BLUE_SVG = """<svg xmlns="http://www.w3.org/2000/svg" width="100" height="50" viewBox="0 0 100 50">
  <rect x="0" y="0" width="10" height="10" fill="#FF0000"/>
  <rect x="20" y="0" width="10" height="10" style="fill: red"/>
  <circle cx="50" cy="25" r="5" fill="rgb(255,0,0)"/>
  <path d="M60 10 L70 10 L70 20 Z" fill="#00f"/>
</svg>"""


def find_all(svg_text, tag):
    root = ET.fromstring(svg_text)
    return list(root.iter(f"{SVG_NS}{tag}"))


def svg_root(svg_text):
    return ET.fromstring(svg_text)


def make_job(name="logo_RGB_Full_Color", fmt=ExportFormat.PNG, variant=ColorVariantKind.FULL_COLOR,
             space=ColorSpace.RGB, svg_content=RED_BLUE_SVG, width=None, height=None):
    return ExportJob(
        name=name,
        svg_content=svg_content,
        format=fmt,
        variant=variant,
        color_space=space,
        width=width,
        height=height,
    )


class FakeBackend:
    """Returns the job filename as bytes; fails for the formats it is told to."""

    def __init__(self, fail_formats=(), requires_external_tool=False, delay=0.0, error_cls=RenderError):
        self.fail_formats = set(fail_formats)
        self.requires_external_tool = requires_external_tool
        self.delay = delay
        self.error_cls = error_cls
        self.svg_paths = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def render(self, job, svg_path, workspace):
        with self._lock:
            self.svg_paths.append(svg_path)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            assert workspace.check_file_exists(svg_path)
            if self.delay:
                time.sleep(self.delay)
            if job.format in self.fail_formats:
                raise self.error_cls(f"cannot render {job.filename}")
            return job.filename.encode("utf-8")
        finally:
            with self._lock:
                self.active -= 1


class FakeMeasurer:
    def __init__(self, bbox):
        self.bbox = bbox
        self.calls = []

    def measure(self, svg_content, window):
        self.calls.append((svg_content, window))
        return self.bbox


@pytest.fixture
def red_blue_svg():
    return RED_BLUE_SVG


@pytest.fixture
def workspace(tmp_path):
    ws = ScratchWorkspace(base_dir=str(tmp_path / "scratch"))
    yield ws
    ws.cleanup()
