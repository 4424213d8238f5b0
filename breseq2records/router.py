import io
import logging
import mimetypes
from typing import Any, Callable, Generator

from breseq2records.exceptions import (
    ExtractionFileFormatNotSupportedError,
    ReportFormatNotSupportedError,
)
from breseq2records.extractors.data_types import ReportContent
from breseq2records.extractors.report_formats import REPORT_FORMATS, ReportFormat

logger = logging.getLogger(__name__)

mime_type_mapping = {
    "text/html": "html",
    "application/xhtml+xml": "html",
}


def _get_extractor(
    file_type: str,
) -> Callable[..., Generator[ReportContent, Any, None]]:
    """Return the extractor function for a file type (lazy import)."""
    if file_type == "html":
        from breseq2records.extractors.html_report_extractor import read_report

        return read_report
    else:
        raise ExtractionFileFormatNotSupportedError(
            file_type, f"No extractor for file type: {file_type}"
        )


def is_supported_file(path: str) -> bool:
    """Checks if the path is a supported file"""
    mime_type, _ = mimetypes.guess_type(path.lower())
    return mime_type in mime_type_mapping


def get_extractor(
    path: str,
) -> Callable[[io.BytesIO, str | None], Generator[ReportContent, Any, None]]:
    """Analyses the path of a file and returns a suited extractor.
       The file does not need to exist, the path or filename alone suffices.

    :returns a function of an extractor. All extractors take a file-like object as parameter
    :raises ExtractionFileFormatNotSupportedError: File is not covered by any extractor
    """
    mime_type, _ = mimetypes.guess_type(path.lower())

    if mime_type is not None and mime_type in mime_type_mapping:
        file_type = mime_type_mapping[mime_type]
        logger.debug(
            f"Detected file type: {file_type} (MIME: {mime_type}) for file: {path}"
        )
        return _get_extractor(file_type)

    logger.debug(f"File [{path}] with mime type [{mime_type}] is not supported")
    raise ExtractionFileFormatNotSupportedError(path)


def normalize_version(version: str) -> str:
    """Reduce ``0.27``, ``0.27.*`` or ``0.27.1`` to the ``major.minor`` prefix."""
    return ".".join(version.strip().split(".")[:2])


def get_report_format(application: str, version: str) -> ReportFormat:
    """
    Look up the registered report format of an application version.

    :raises ReportFormatNotSupportedError: No format is registered for it
    """
    key = (application.strip().lower(), normalize_version(version))
    if key not in REPORT_FORMATS:
        logger.debug(f"No report format registered for {key}")
        raise ReportFormatNotSupportedError(application, version)
    return REPORT_FORMATS[key]
