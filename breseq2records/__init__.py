"""
breseq2records: Sequence annotation extraction from breseq HTML reports.

Extracts the tables of an HTML report with a strict single-pass table
extractor, recognizes the report's version and mutation prediction tables and
converts the predictions into SequenceAnnotation records.
"""

import io
import logging
from pathlib import Path
from typing import Any, Generator

from breseq2records.extractors.data_types import ReportContent, SequenceAnnotation
from breseq2records.extractors.report_formats import BRESEQ_0_27, ReportFormat
from breseq2records.router import get_extractor, get_report_format, is_supported_file

__version__ = "0.1.0.dev1"

logging.getLogger(__name__).addHandler(logging.NullHandler())


def read_report(
    file_like: io.BytesIO,
    path: str | None = None,
    report_format: ReportFormat = BRESEQ_0_27,
) -> Generator[ReportContent, Any, None]:
    """Extract the records of an HTML report."""
    from breseq2records.extractors.html_report_extractor import (
        read_report as _read_report,
    )

    return _read_report(file_like, path, report_format)


def parse_report(
    file_like: io.BytesIO | bytes | str,
    report_format: ReportFormat = BRESEQ_0_27,
) -> list[list[SequenceAnnotation]]:
    """Parse an HTML report into record collections, one per data table."""
    from breseq2records.extractors.html_report_extractor import (
        parse_report as _parse_report,
    )

    return _parse_report(file_like, report_format)


def read_file(
    path: str | Path,
    report_format: ReportFormat = BRESEQ_0_27,
) -> Generator[ReportContent, Any, None]:
    """
    Read and extract the records of a report file.

    Args:
        path: Path to the file to read.
        report_format: Report layout to look for.

    Yields:
        ReportContent with the record collections of the report.

    Raises:
        ExtractionFileFormatNotSupportedError: If the file type is not supported.
        TableExtractionError: If the file's tables are malformed.
        FileNotFoundError: If the file does not exist.

    Example:
        >>> import breseq2records
        >>> for report in breseq2records.read_file("output/index.html"):
        ...     for record in report.iterate_records():
        ...         print(record.sequence_id, record.position, record.mutation)
    """
    path = Path(path)
    extractor = get_extractor(str(path))
    with open(path, "rb") as f:
        yield from extractor(io.BytesIO(f.read()), str(path), report_format)


__all__ = [
    # Version
    "__version__",
    # Main functions
    "read_file",
    "read_report",
    "parse_report",
    "is_supported_file",
    "get_extractor",
    "get_report_format",
    # Types
    "ReportContent",
    "ReportFormat",
    "SequenceAnnotation",
    "BRESEQ_0_27",
]
