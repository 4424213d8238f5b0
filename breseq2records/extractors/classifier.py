"""
Recognizes the tables of a report among all tables of a document.

A breseq ``index.html`` starts with a banner table whose second cell reads
``breseq version 0.27.1 revision ...`` followed, somewhere later, by the
mutation predictions table whose second row is the column header. All
functions here are pure predicates over already extracted tables.
"""

import logging
import re
from typing import List, Sequence

from breseq2records.extractors.data_types import Row, Table
from breseq2records.extractors.report_formats import BRESEQ_0_27, ReportFormat

logger = logging.getLogger(__name__)

# Regular spaces, non-breaking spaces, tabs and newlines.
_WHITESPACE_RUN = re.compile(r"[ \u00a0\t\r\n]+")


def normalize_whitespace(text: str) -> str:
    return _WHITESPACE_RUN.sub(" ", text).strip()


def is_version_table(table: Table, report_format: ReportFormat = BRESEQ_0_27) -> bool:
    """True if any row's second cell declares the report's application version."""
    for row in table:
        if len(row) < 2:
            continue
        if normalize_whitespace(row[1]).startswith(report_format.version_prefix):
            return True
    return False


def is_header_row(row: Row, report_format: ReportFormat = BRESEQ_0_27) -> bool:
    return tuple(row) == report_format.data_headers


def is_data_table(table: Table, report_format: ReportFormat = BRESEQ_0_27) -> bool:
    """True if the table's second row is exactly the report's data header."""
    return len(table) >= 2 and is_header_row(table[1], report_format)


def identify_report_tables(
    tables: Sequence[Table], report_format: ReportFormat = BRESEQ_0_27
) -> bool:
    """True if a version table precedes a data table."""
    return bool(find_data_tables(tables, report_format))


def find_data_tables(
    tables: Sequence[Table], report_format: ReportFormat = BRESEQ_0_27
) -> List[Table]:
    """Data tables that follow the first version table, in document order."""
    data_tables = []
    version_seen = False
    for index, table in enumerate(tables):
        if version_seen and is_data_table(table, report_format):
            logger.debug(f"Table {index} is a {report_format.name} data table")
            data_tables.append(table)
        elif not version_seen and is_version_table(table, report_format):
            logger.debug(f"Table {index} is a {report_format.name} version table")
            version_seen = True
    return data_tables
