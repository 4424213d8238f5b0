"""
Maps the rows of a report data table onto :class:`SequenceAnnotation` records.

Columns of a breseq 0.27 mutation predictions table, by position:

    0 evidence (not kept), 1 seq id, 2 position, 3 mutation, 4 freq,
    5 annotation, 6 gene, 7 description

Cell text is markup-safe, every field is entity-unescaped. The gene column
embeds ``<i>`` emphasis around gene names, which is stripped with lxml.
"""

import html
import logging
from typing import List

from lxml import etree
from lxml.html import fragment_fromstring

from breseq2records.extractors.classifier import is_header_row
from breseq2records.extractors.data_types import Row, SequenceAnnotation, Table
from breseq2records.extractors.report_formats import BRESEQ_0_27, ReportFormat

logger = logging.getLogger(__name__)


def strip_markup(text: str) -> str:
    """Remove tags from an HTML fragment and decode its entities."""
    if "<" not in text:
        return html.unescape(text)
    try:
        fragment = fragment_fromstring(text, create_parent="span")
    except etree.ParserError as exc:
        logger.debug(f"Could not parse markup in [{text}]: {exc}")
        return html.unescape(text)
    return str(fragment.text_content())


def convert_row(row: Row, report_format: ReportFormat = BRESEQ_0_27) -> SequenceAnnotation:
    return SequenceAnnotation(
        sequence_id=html.unescape(row[1]),
        position=html.unescape(row[2]),
        mutation=html.unescape(row[3]),
        frequency=html.unescape(row[4]),
        annotation=html.unescape(row[5]),
        gene=strip_markup(row[6]),
        description=html.unescape(row[7]),
        application=report_format.application,
        app_version=report_format.version,
    )


def convert_table(
    table: Table, report_format: ReportFormat = BRESEQ_0_27
) -> List[SequenceAnnotation]:
    """
    Convert the data rows of a report data table.

    The first row is the table title and the second the column header. A
    table without the expected header is not a data table and converts to an
    empty list.
    """
    if len(table) < 2 or not is_header_row(table[1], report_format):
        logger.debug("Table has no data header, nothing to convert")
        return []

    column_count = len(report_format.data_headers)
    records = []
    for index, row in enumerate(table[2:], start=2):
        if len(row) < column_count:
            logger.debug(
                f"Skipping row {index} with {len(row)} of {column_count} cells"
            )
            continue
        records.append(convert_row(row, report_format))
    return records
