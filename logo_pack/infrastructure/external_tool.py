# logo_pack/infrastructure/external_tool.py

import logging
import os
import shutil
import subprocess
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence

from logo_pack.config import DEFAULT_TOOL_TIMEOUT
from logo_pack.domain.exceptions import ExternalToolError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolResult:
    command: List[str]
    returncode: int
    stdout: str
    stderr: str
    duration: float

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ExternalTool:
    """
    A command-line converter run as a child process.

    Arguments are always passed as a list (never through a shell), every run
    has a timeout and output is captured into a `ToolResult`.
    """

    def __init__(self, name: str, executable: str, timeout: float = DEFAULT_TOOL_TIMEOUT):
        self.name = name
        self.executable = executable
        self.timeout = timeout

    def resolve(self) -> Optional[str]:
        """Absolute path of the executable, or None when it is not installed."""
        return shutil.which(self.executable)

    @property
    def available(self) -> bool:
        return self.resolve() is not None

    def run(self, args: Sequence[str], expected_output: Optional[str] = None) -> ToolResult:
        """
        Runs the tool with `args`.

        Args:
            args: Arguments after the executable.
            expected_output: A file the tool must have created (non-empty) for the run to count as a success.

        Raises:
            ExternalToolError: Tool missing, timed out, exited non-zero or produced no output.
        """
        executable = self.resolve()
        if executable is None:
            raise ExternalToolError(self.name, f"'{self.executable}' not found on PATH.")

        command = [executable] + [str(arg) for arg in args]
        logger.info(f"Running {self.name}: {' '.join(command)}")
        start = time.monotonic()
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False, # Non-zero exits handled below
            )
        except subprocess.TimeoutExpired as e:
            raise ExternalToolError(self.name, f"timed out after {self.timeout}s.") from e
        except OSError as e:
            raise ExternalToolError(self.name, f"could not be started: {e}") from e

        result = ToolResult(
            command=command,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
            duration=time.monotonic() - start,
        )

        if not result.ok:
            logger.error(f"{self.name} failed with return code {result.returncode}. Stderr: {result.stderr.strip()}")
            raise ExternalToolError(self.name, "exited with a non-zero status.", result.returncode, result.stderr)

        if expected_output is not None and not (os.path.isfile(expected_output) and os.path.getsize(expected_output) > 0):
            raise ExternalToolError(self.name, f"produced no output at '{expected_output}'.", result.returncode, result.stderr)

        logger.debug(f"{self.name} finished in {result.duration:.2f}s.")
        return result
