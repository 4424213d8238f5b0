"""
HTML report extractor.

Reads one HTML report document and returns its sequence annotation records:

1. extract every table of the document in a single pass;
2. pick the data tables that follow a version table of the report format;
3. convert each data table into one collection of records.

Documents without a recognizable report simply produce no collections.
Malformed table markup and read errors are raised.
"""

import io
import logging
from typing import Any, Generator, List, Optional

from breseq2records.extractors.classifier import find_data_tables
from breseq2records.extractors.converter import convert_table
from breseq2records.extractors.data_types import (
    FileMetadataInterface,
    ReportContent,
    SequenceAnnotation,
    Table,
)
from breseq2records.extractors.html_tokenizer import tokenize
from breseq2records.extractors.report_formats import BRESEQ_0_27, ReportFormat
from breseq2records.extractors.table_extractor import TraceObserver, extract_tables

logger = logging.getLogger(__name__)


def _collect(
    tables: List[Table], report_format: ReportFormat
) -> List[List[SequenceAnnotation]]:
    collections = []
    for table in find_data_tables(tables, report_format):
        records = convert_table(table, report_format)
        if records:
            collections.append(records)
    return collections


def parse_report(
    file_like: io.BytesIO | bytes | str,
    report_format: ReportFormat = BRESEQ_0_27,
    *,
    observer: Optional[TraceObserver] = None,
) -> List[List[SequenceAnnotation]]:
    """
    Parse a report document into record collections, one per data table.

    Args:
        file_like: The document as a binary/text stream, bytes or str.
        report_format: Report layout to look for.
        observer: Optional callable receiving table extraction trace events.

    Raises:
        TableExtractionError: The document's tables are malformed or the
            stream could not be read.
    """
    tables = extract_tables(tokenize(file_like), observer=observer)
    logger.debug(f"Extracted {len(tables)} tables")
    return _collect(tables, report_format)


def read_report(
    file_like: io.BytesIO,
    path: str | None = None,
    report_format: ReportFormat = BRESEQ_0_27,
) -> Generator[ReportContent, Any, None]:
    """
    Extract the records of an HTML report.

    Args:
        file_like: A BytesIO object containing the HTML report.
        path: Optional file path to populate file metadata fields.
        report_format: Report layout to look for.

    Yields:
        ReportContent dataclass with the record collections and all tables.
    """
    logger.debug(f"Reading {report_format.name} HTML report")
    file_like.seek(0)

    tables = extract_tables(tokenize(file_like))
    collections = _collect(tables, report_format)
    logger.debug(
        f"Found {len(collections)} record collections in {len(tables)} tables"
    )

    metadata = FileMetadataInterface()
    metadata.populate_from_path(path)

    yield ReportContent(
        collections=collections,
        tables=tables,
        application=report_format.application,
        app_version=report_format.version,
        metadata=metadata,
    )
