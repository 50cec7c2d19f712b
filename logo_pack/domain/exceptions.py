# logo_pack/domain/exceptions.py


class LogoPackError(Exception):
    """Base class for every error raised by the export pipeline."""


class SvgParseError(LogoPackError):
    """The uploaded SVG is not well-formed XML or has no <svg> root."""


class RequestValidationError(LogoPackError):
    """An export request was rejected before any rendering work started."""

    def __init__(self, messages):
        if isinstance(messages, str):
            messages = [messages]
        self.messages = list(messages)
        super().__init__("; ".join(self.messages))


class RenderError(LogoPackError):
    """A single render job failed. Isolated per job, never aborts the batch."""


class ExternalToolError(RenderError):
    """An external converter is missing, timed out or exited non-zero."""

    def __init__(self, tool: str, message: str, returncode=None, stderr: str = ""):
        self.tool = tool
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"{tool}: {message}")


class JobCancelledError(RenderError):
    """The request was aborted before this job reached its next stage."""


class FatalExportError(LogoPackError):
    """Nothing can be salvaged from the request (scratch dir, archive assembly, no output)."""
