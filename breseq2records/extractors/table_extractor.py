"""
Table extractor
===============

Turns a stream of HTML tokens into the tables of the document, one pass,
no tree building.

Every ``<table>``, ``<tr>``, ``<td>`` and ``<th>`` start tag is counted and
pushed onto an explicit stack. Closing tags pop the stack and must match the
popped entry, after which the counters are checked:

    * a table closes either at the top level (counter zero, stack empty) or
      nested inside another table (counter and stack both non-zero);
    * a row closes only when no other row is open in the same table and the
      stack still holds its table;
    * a cell closes only when no other cell is open in the same table and the
      stack still holds its row and table.

Any violation aborts the extraction. Nothing is repaired and no partial result
is returned.

Text is collected only while the top of the stack is a cell. Other start and
end tags (``<i>``, ``<a>``, ``<br>`` ...) are ignored, so inline markup inside
a cell disappears while its text is kept. Text outside of any table is
ignored as well.

Nested tables get their own accumulator and are emitted when they close, so a
nested table always precedes its enclosing table in the results.

Usage
-----
    >>> from breseq2records.extractors.html_tokenizer import tokenize
    >>> from breseq2records.extractors.table_extractor import extract_tables
    >>> extract_tables(tokenize("<table><tr><td>a <i>b</i></td></tr></table>"))
    [[['a b']]]
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol

from breseq2records.exceptions import (
    MalformedCellError,
    MalformedRowError,
    MalformedTableError,
    MismatchedTagError,
    TableSourceError,
    UnexpectedStackStateError,
)
from breseq2records.extractors.data_types import Row, Table
from breseq2records.extractors.html_tokenizer import (
    EndOfStream,
    Token,
    TokenSource,
    TokenType,
)

logger = logging.getLogger(__name__)

TABLE_TAG = "table"
ROW_TAG = "tr"
CELL_TAGS = {"td", "th"}
STRUCTURAL_TAGS = {TABLE_TAG, ROW_TAG} | CELL_TAGS

# Receives (event, details) for every step of an extraction.
TraceObserver = Callable[[str, Dict[str, Any]], None]


class TagStack(Protocol):
    def push(self, entry: Any) -> None: ...

    def pop(self) -> Any:
        """Remove and return the top entry, ``None`` when empty."""
        ...

    def peek(self) -> Any:
        """Return the top entry without removing it, ``None`` when empty."""
        ...

    def __len__(self) -> int: ...


class ListTagStack:
    """List backed :class:`TagStack`."""

    def __init__(self):
        self._entries: List[Any] = []

    def push(self, entry: Any) -> None:
        self._entries.append(entry)

    def pop(self) -> Any:
        return self._entries.pop() if self._entries else None

    def peek(self) -> Any:
        return self._entries[-1] if self._entries else None

    def __len__(self) -> int:
        return len(self._entries)


@dataclass
class TagCounters:
    """Open structural tags. Negative values mean a close without an open."""

    table: int = 0
    row: int = 0
    cell: int = 0


@dataclass
class _TableFrame:
    """Accumulators of one open table."""

    rows: Table = field(default_factory=list)
    row: Row = field(default_factory=list)
    cell: List[str] = field(default_factory=list)
    # Row/cell counters of the enclosing table, restored on close.
    outer_row: int = 0
    outer_cell: int = 0


def _is_start_tag(entry: Any) -> bool:
    return (
        isinstance(entry, Token)
        and entry.type is TokenType.START_TAG
        and entry.data in STRUCTURAL_TAGS
    )


class TableExtraction:
    """State of a single extraction pass. Not reusable."""

    def __init__(
        self,
        token_source: TokenSource,
        stack: Optional[TagStack] = None,
        observer: Optional[TraceObserver] = None,
    ):
        self.token_source = token_source
        self.stack = stack if stack is not None else ListTagStack()
        self.counters = TagCounters()
        self.observer = observer
        self.results: List[Table] = []
        self._frames: List[_TableFrame] = []

    def _trace(self, event: str, **details: Any) -> None:
        logger.debug(f"{event}: {details}")
        if self.observer is not None:
            self.observer(event, details)

    def run(self) -> List[Table]:
        while True:
            token_type = self.token_source.advance()
            if token_type is TokenType.ERROR:
                return self._finish()
            elif token_type is TokenType.TEXT:
                self.handle_text()
            elif token_type is TokenType.START_TAG:
                self.handle_start_tag()
            elif token_type is TokenType.END_TAG:
                self.handle_end_tag()
            else:
                # Comments, doctype and self-closing tags like <br />
                self._trace("skip", token=token_type.value)

    def _finish(self) -> List[Table]:
        err = self.token_source.err()
        if isinstance(err, EndOfStream):
            if self.counters.table:
                logger.debug(
                    f"Input ended with {self.counters.table} unclosed table(s)"
                )
            self._trace("end", tables=len(self.results))
            return self.results
        if err is None:
            raise TableSourceError("Token source reported an error without a cause")
        self._trace("error", error=str(err))
        raise TableSourceError(cause=err)

    def handle_text(self) -> None:
        if len(self.stack) == 0:
            # Prose, scripts and styles outside of any table.
            return

        entry = self.stack.peek()
        if not isinstance(entry, Token):
            raise UnexpectedStackStateError(entry)

        # A cell outside of any table is rejected once it closes.
        if entry.type is TokenType.START_TAG and entry.data in CELL_TAGS and self._frames:
            text = self.token_source.token().render()
            self._trace("text", text=text)
            self._frames[-1].cell.append(text)

    def handle_start_tag(self) -> None:
        token = self.token_source.token()
        if token.data == TABLE_TAG:
            self.counters.table += 1
            self._frames.append(
                _TableFrame(outer_row=self.counters.row, outer_cell=self.counters.cell)
            )
            self.counters.row = 0
            self.counters.cell = 0
        elif token.data == ROW_TAG:
            self.counters.row += 1
        elif token.data in CELL_TAGS:
            self.counters.cell += 1
        else:
            return

        self._trace("push", tag=token.data)
        self.stack.push(token)

    def handle_end_tag(self) -> None:
        token = self.token_source.token()
        if token.data not in STRUCTURAL_TAGS:
            return

        # An empty stack means a close without an open, which the counters
        # report as a malformed structure below.
        if len(self.stack) > 0:
            entry = self.stack.pop()
            if not _is_start_tag(entry):
                raise UnexpectedStackStateError(entry)
            if entry.data != token.data:
                self._trace("error", expected=entry.data, actual=token.data)
                raise MismatchedTagError(entry.data, token.data)

        if token.data == TABLE_TAG:
            self._close_table()
        elif token.data == ROW_TAG:
            self._close_row()
        else:
            self._close_cell()

    def _close_table(self) -> None:
        self.counters.table -= 1
        depth = len(self.stack)
        excess_table_tokens = self.counters.table == 0 and depth > 0
        lacking_table_tokens = self.counters.table > 0 and depth == 0
        negative = self.counters.table < 0
        if excess_table_tokens or lacking_table_tokens or negative or not self._frames:
            self._trace("error", tag=TABLE_TAG, counter=self.counters.table)
            raise MalformedTableError()

        frame = self._frames.pop()
        self.counters.row = frame.outer_row
        self.counters.cell = frame.outer_cell
        self.results.append(frame.rows)
        self._trace("close_table", rows=len(frame.rows), nested=self.counters.table > 0)

    def _close_row(self) -> None:
        self.counters.row -= 1
        row_is_nested = self.counters.row != 0
        row_is_alone = len(self.stack) < 1 or not self._frames
        if row_is_nested or row_is_alone:
            self._trace("error", tag=ROW_TAG, counter=self.counters.row)
            raise MalformedRowError()

        frame = self._frames[-1]
        frame.rows.append(frame.row)
        self._trace("close_row", cells=len(frame.row))
        frame.row = []

    def _close_cell(self) -> None:
        self.counters.cell -= 1
        cell_is_nested = self.counters.cell != 0
        cell_is_in_wrong_position = len(self.stack) < 2 or not self._frames
        if cell_is_nested or cell_is_in_wrong_position:
            self._trace("error", tag="cell", counter=self.counters.cell)
            raise MalformedCellError()

        frame = self._frames[-1]
        text = "".join(frame.cell)
        frame.row.append(text)
        self._trace("close_cell", text=text)
        frame.cell = []


def extract_tables(
    token_source: TokenSource,
    *,
    stack: Optional[TagStack] = None,
    observer: Optional[TraceObserver] = None,
) -> List[Table]:
    """
    Extract all tables of a document, nested tables before their parents.

    The token source is consumed until it reports the end of the stream.

    Args:
        token_source: Tokenizer positioned before the first token.
        stack: Open-tag stack to use, a fresh :class:`ListTagStack` by default.
        observer: Optional callable receiving trace events.

    Returns:
        The tables in the order their closing tags appear.

    Raises:
        MalformedTableError, MalformedRowError, MalformedCellError:
            Structural tags are nested illegally.
        MismatchedTagError: A closing tag does not match the open one.
        UnexpectedStackStateError: The stack holds a non structural entry.
        TableSourceError: The token source failed to read its input.
    """
    return TableExtraction(token_source, stack=stack, observer=observer).run()
