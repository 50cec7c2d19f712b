# logo_pack/infrastructure/file_gateway.py

import logging
import os
import re
import shutil
import tempfile
from typing import List, Optional

from logo_pack.config import SCRATCH_DIR, DEFAULT_ENCODING
from logo_pack.domain.exceptions import FatalExportError

logger = logging.getLogger(__name__)

_SAFE_NAME_REGEX = re.compile(r'^[\w][\w .-]*$')


class ScratchWorkspace:
    """
    One scratch directory per export request.

    Files are addressed by job filename plus a suffix, so concurrent jobs
    never collide. `cleanup()` removes the whole directory; the workspace is
    also a context manager.
    """

    def __init__(self, base_dir: Optional[str] = None, prefix: str = "export-"):
        self.base_dir = base_dir or SCRATCH_DIR
        try:
            os.makedirs(self.base_dir, exist_ok=True)
            self.root = tempfile.mkdtemp(prefix=prefix, dir=self.base_dir)
        except OSError as e:
            logger.critical(f"Cannot allocate scratch directory under '{self.base_dir}': {e}", exc_info=True)
            raise FatalExportError(f"Cannot allocate scratch directory: {e}") from e
        logger.debug(f"Scratch workspace created: '{self.root}'")

    def __enter__(self) -> "ScratchWorkspace":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()

    def path_for(self, job_filename: str, suffix: str) -> str:
        """
        Path of a scratch file for one job, e.g. ('logo_RGB_White.ai', '.eps').

        Raises:
            ValueError: If the name could escape the workspace.
        """
        name = f"{job_filename}{suffix}"
        if not _SAFE_NAME_REGEX.match(name) or os.path.basename(name) != name or ".." in name:
            raise ValueError(f"Unsafe scratch file name: {name!r}")
        return os.path.join(self.root, name)

    def write_file_text(self, file_path: str, content: str, encoding: str = DEFAULT_ENCODING) -> None:
        try:
            with open(file_path, "w", encoding=encoding) as f:
                f.write(content)
        except OSError as e:
            logger.error(f"Failed to write text to '{file_path}': {e}", exc_info=True)
            raise

    def read_file_text(self, file_path: str, encoding: str = DEFAULT_ENCODING) -> str:
        try:
            with open(file_path, "r", encoding=encoding) as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to read text from '{file_path}': {e}", exc_info=True)
            raise

    def read_file_bytes(self, file_path: str) -> bytes:
        try:
            with open(file_path, "rb") as f:
                return f.read()
        except OSError as e:
            logger.error(f"Failed to read bytes from '{file_path}': {e}", exc_info=True)
            raise

    def check_file_exists(self, file_path: str) -> bool:
        return os.path.exists(file_path)

    def delete_file(self, file_path: str) -> None:
        """Deletes a scratch file; a missing file is not an error."""
        try:
            os.remove(file_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not delete scratch file '{file_path}': {e}")

    def list_files(self) -> List[str]:
        if not os.path.isdir(self.root):
            return []
        return sorted(os.listdir(self.root))

    def cleanup(self) -> None:
        if not os.path.isdir(self.root):
            return
        shutil.rmtree(self.root, ignore_errors=True)
        if os.path.isdir(self.root):
            logger.warning(f"Scratch directory '{self.root}' could not be fully removed.")
        else:
            logger.debug(f"Scratch workspace removed: '{self.root}'")
