# logo_pack/application/packager.py

import io
import logging
import zipfile
from typing import Iterable

from logo_pack.config import ARCHIVE_CONTENT_TYPE, COLOR_SPACE_FOLDERS, VARIANT_FOLDERS
from logo_pack.domain.exceptions import FatalExportError
from logo_pack.domain.models import ExportArtifact, ExportJob, ExportResult

logger = logging.getLogger(__name__)


class ArchivePackager:
    """
    Turns render results into the downloadable artifact: the bare file when
    exactly one file was produced, otherwise a zip laid out as
    {base}/{color space}/{variant}/{filename}.
    """

    @staticmethod
    def archive_path(file_base_name: str, job: ExportJob) -> str:
        return "/".join((
            file_base_name,
            COLOR_SPACE_FOLDERS[job.color_space.value],
            VARIANT_FOLDERS[job.variant.value],
            job.filename,
        ))

    def package(self, results: Iterable[ExportResult], file_base_name: str) -> ExportArtifact:
        results = list(results)
        succeeded = sorted((r for r in results if r.succeeded), key=lambda r: r.job.filename)
        failed = sorted(r.job.filename for r in results if not r.succeeded)

        if not succeeded:
            raise FatalExportError(
                f"None of the {len(results)} export jobs produced a file."
                + (f" Failed: {', '.join(failed)}" if failed else "")
            )
        if failed:
            logger.warning(f"Packaging {len(succeeded)} files; {len(failed)} jobs failed: {failed}")

        if len(succeeded) == 1:
            job = succeeded[0].job
            logger.info(f"Single file result, skipping the archive: {job.filename}")
            return ExportArtifact(
                filename=job.filename,
                content_type=job.format.content_type,
                data=succeeded[0].data,
                file_count=1,
                failed_jobs=failed,
            )

        buffer = io.BytesIO()
        try:
            with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
                for result in succeeded:
                    archive.writestr(self.archive_path(file_base_name, result.job), result.data)
        except (zipfile.BadZipFile, OSError, ValueError, KeyError) as e:
            logger.critical(f"Archive assembly failed: {e}", exc_info=True)
            raise FatalExportError(f"Could not assemble the archive: {e}") from e

        logger.info(f"Archived {len(succeeded)} files into {file_base_name}.zip ({buffer.tell()} bytes).")
        return ExportArtifact(
            filename=f"{file_base_name}.zip",
            content_type=ARCHIVE_CONTENT_TYPE,
            data=buffer.getvalue(),
            file_count=len(succeeded),
            failed_jobs=failed,
        )
