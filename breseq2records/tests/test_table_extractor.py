import io
import logging
import unittest
from unittest.mock import MagicMock

import pytest

from breseq2records.exceptions import (
    MalformedCellError,
    MalformedRowError,
    MalformedTableError,
    MismatchedTagError,
    TableExtractionError,
    TableSourceError,
    UnexpectedStackStateError,
)
from breseq2records.extractors.html_tokenizer import (
    EndOfStream,
    HtmlTokenSource,
    Token,
    TokenType,
    tokenize,
)
from breseq2records.extractors.table_extractor import (
    ListTagStack,
    TableExtraction,
    extract_tables,
)

logger = logging.getLogger(__name__)

tc = unittest.TestCase()


class ReplayTokenSource:
    """Replays a fixed token sequence, then reports ``error``."""

    def __init__(self, tokens: list[Token], error: Exception | None = None):
        self._tokens = list(tokens)
        self._index = -1
        self._error = error if error is not None else EndOfStream()

    def advance(self) -> TokenType:
        self._index += 1
        if self._index >= len(self._tokens):
            return TokenType.ERROR
        return self._tokens[self._index].type

    def token(self) -> Token:
        if self._index >= len(self._tokens):
            return Token(TokenType.ERROR)
        return self._tokens[self._index]

    def err(self) -> Exception | None:
        if self._index >= len(self._tokens):
            return self._error
        return None


def start(tag: str) -> Token:
    return Token(TokenType.START_TAG, tag)


def end(tag: str) -> Token:
    return Token(TokenType.END_TAG, tag)


def text(data: str) -> Token:
    return Token(TokenType.TEXT, data)


def _extract(markup: str):
    return extract_tables(tokenize(markup))


###############
# Well formed #
###############


def test_extract_cell_text_skips_inline_markup() -> None:
    tables = _extract("<table><tr><td>a <i>b</i></td></tr></table>")
    tc.assertListEqual([[["a b"]]], tables)


def test_extract_replayed_tokens() -> None:
    source = ReplayTokenSource(
        [
            start("table"),
            start("tr"),
            start("th"),
            text("name"),
            end("th"),
            start("th"),
            text("age"),
            end("th"),
            end("tr"),
            start("tr"),
            start("td"),
            text("Alice"),
            end("td"),
            start("td"),
            text("25"),
            end("td"),
            end("tr"),
            end("table"),
        ]
    )
    tc.assertListEqual([[["name", "age"], ["Alice", "25"]]], extract_tables(source))


def test_extract_multiple_tables_in_document_order() -> None:
    tables = _extract(
        "<p>intro</p>"
        "<table><tr><td>1</td></tr></table>"
        "<div>between</div>"
        "<table><tr><td>2</td></tr><tr><td>3</td></tr></table>"
    )
    tc.assertListEqual([[["1"]], [["2"], ["3"]]], tables)


def test_extract_nested_table_precedes_parent() -> None:
    tables = _extract(
        "<table>"
        "<tr><td>outer <table><tr><td>inner</td><td>cell</td></tr></table>after</td>"
        "<td>x</td></tr>"
        "<tr><td>y</td></tr>"
        "</table>"
    )
    tc.assertListEqual(
        [
            [["inner", "cell"]],
            [["outer after", "x"], ["y"]],
        ],
        tables,
    )


def test_extract_deeply_nested_tables() -> None:
    tables = _extract(
        "<table><tr><td>"
        "<table><tr><td>"
        "<table><tr><td>3</td></tr></table>"
        "</td><td>2</td></tr></table>"
        "</td><td>1</td></tr></table>"
        "<table><tr><td>top</td></tr></table>"
    )
    tc.assertListEqual(
        [[["3"]], [["", "2"]], [["", "1"]], [["top"]]],
        tables,
    )


def test_extract_ignores_text_outside_cells() -> None:
    tables = _extract(
        "prose before<table>caption text<tr>row text<td>kept</td>"
        "between cells</tr></table>prose after"
    )
    tc.assertListEqual([[["kept"]]], tables)


def test_extract_ignores_comments_doctype_and_self_closing_tags() -> None:
    tables = _extract(
        "<!DOCTYPE html><table><!-- comment --><tr>"
        "<td>line<br/>break</td><td/></tr></table>"
    )
    tc.assertListEqual([[["linebreak"]]], tables)


def test_extract_keeps_empty_rows_and_cells() -> None:
    tables = _extract("<table><tr></tr><tr><td></td></tr></table>")
    tc.assertListEqual([[[], [""]]], tables)


def test_extract_keeps_cell_text_markup_safe() -> None:
    tables = _extract("<table><tr><td>a &lt; b &amp;&nbsp;c</td></tr></table>")
    tc.assertListEqual([[["a &lt; b &amp;\u00a0c"]]], tables)


def test_extract_no_tables() -> None:
    tc.assertListEqual([], _extract("<html><body><p>nothing here</p></body></html>"))
    tc.assertListEqual([], _extract(""))


def test_extract_drops_unclosed_table_at_end_of_input() -> None:
    tc.assertListEqual([], _extract("<table><tr><td>a</td></tr>"))


def test_extract_is_independent_of_chunk_size() -> None:
    markup = (
        "<table><tr><td>caf&eacute; &amp; <b>bar</b></td><td>12,345</td></tr></table>"
        "<table><tr><td>x<table><tr><td>y</td></tr></table></td></tr></table>"
    ).encode("utf-8")
    expected = extract_tables(HtmlTokenSource(io.BytesIO(markup)))
    for chunk_size in (1, 2, 7):
        tc.assertListEqual(
            expected,
            extract_tables(HtmlTokenSource(io.BytesIO(markup), chunk_size=chunk_size)),
        )


#############
# Malformed #
#############


def test_mismatched_closing_tag() -> None:
    with pytest.raises(MismatchedTagError) as exc_info:
        _extract("<table><tr><td>a</tr></td></table>")
    tc.assertEqual("td", exc_info.value.expected)
    tc.assertEqual("tr", exc_info.value.actual)


def test_mismatched_cell_kind() -> None:
    with pytest.raises(MismatchedTagError):
        _extract("<table><tr><td>a</th></tr></table>")


def test_row_inside_row() -> None:
    with pytest.raises(MalformedRowError):
        _extract("<table><tr><tr><td>a</td></tr></tr></table>")


def test_cell_inside_cell() -> None:
    with pytest.raises(MalformedCellError):
        _extract("<table><tr><td><td>a</td></td></tr></table>")
    with pytest.raises(MalformedCellError):
        _extract("<table><tr><td><th>a</th></td></tr></table>")


def test_row_outside_table() -> None:
    with pytest.raises(MalformedRowError):
        _extract("<tr></tr>")


def test_cell_outside_row() -> None:
    with pytest.raises(MalformedCellError):
        _extract("<tr><td>a</td></tr>")
    with pytest.raises(MalformedCellError):
        _extract("<td>a</td>")


def test_table_inside_row_without_enclosing_table() -> None:
    with pytest.raises(MalformedTableError):
        _extract("<tr><table></table></tr>")


def test_close_without_open() -> None:
    with pytest.raises(MalformedTableError):
        _extract("</table>")
    with pytest.raises(MalformedRowError):
        _extract("<p></tr></p>")
    with pytest.raises(MalformedCellError):
        _extract("</td>")


def test_malformed_errors_share_base_class() -> None:
    with pytest.raises(TableExtractionError):
        _extract("<table><tr><tr></tr></tr></table>")


###############
# Token source #
###############


def test_read_error_is_propagated() -> None:
    cause = OSError("disk on fire")
    source = ReplayTokenSource([start("table"), start("tr")], error=cause)
    with pytest.raises(TableSourceError) as exc_info:
        extract_tables(source)
    tc.assertIs(cause, exc_info.value.__cause__)


def test_error_token_without_cause() -> None:
    source = MagicMock()
    source.advance.return_value = TokenType.ERROR
    source.err.return_value = None
    with pytest.raises(TableSourceError):
        extract_tables(source)


def test_stream_read_error_is_propagated() -> None:
    file_like = MagicMock()
    file_like.read.side_effect = OSError("connection reset")
    with pytest.raises(TableSourceError) as exc_info:
        extract_tables(HtmlTokenSource(file_like))
    tc.assertIsInstance(exc_info.value.__cause__, OSError)


#########
# Stack #
#########


def test_start_tags_are_counted_and_pushed() -> None:
    source = ReplayTokenSource(
        [start("table"), start("tr"), start("td"), start("th"), start("a"), start("br")]
    )
    stack = MagicMock()
    extraction = TableExtraction(source, stack=stack)

    expected_counters = [(1, 0, 0), (1, 1, 0), (1, 1, 1), (1, 1, 2), (1, 1, 2), (1, 1, 2)]
    for table, row, cell in expected_counters:
        source.advance()
        extraction.handle_start_tag()
        tc.assertEqual(table, extraction.counters.table)
        tc.assertEqual(row, extraction.counters.row)
        tc.assertEqual(cell, extraction.counters.cell)

    tc.assertEqual(4, stack.push.call_count)
    stack.pop.assert_not_called()


def test_unexpected_stack_entry_on_close() -> None:
    stack = MagicMock()
    stack.__len__.return_value = 1
    stack.pop.return_value = "not a token"
    source = ReplayTokenSource([start("table"), end("table")])
    with pytest.raises(UnexpectedStackStateError) as exc_info:
        extract_tables(source, stack=stack)
    tc.assertEqual("not a token", exc_info.value.entry)


def test_unexpected_stack_entry_on_text() -> None:
    stack = MagicMock()
    stack.__len__.return_value = 1
    stack.peek.return_value = object()
    source = ReplayTokenSource([text("orphan")])
    with pytest.raises(UnexpectedStackStateError):
        extract_tables(source, stack=stack)


def test_list_tag_stack() -> None:
    stack = ListTagStack()
    tc.assertEqual(0, len(stack))
    tc.assertIsNone(stack.peek())
    tc.assertIsNone(stack.pop())

    stack.push(start("table"))
    stack.push(start("tr"))
    tc.assertEqual(2, len(stack))
    tc.assertEqual(start("tr"), stack.peek())
    tc.assertEqual(start("tr"), stack.pop())
    tc.assertEqual(start("table"), stack.pop())
    tc.assertEqual(0, len(stack))


############
# Observer #
############


def test_observer_receives_trace_events() -> None:
    events = []
    extract_tables(
        tokenize("<table><tr><td>a</td></tr></table>"),
        observer=lambda event, details: events.append((event, details)),
    )
    names = [event for event, _ in events]
    tc.assertEqual(3, names.count("push"))
    tc.assertIn(("text", {"text": "a"}), events)
    tc.assertIn("close_cell", names)
    tc.assertIn("close_row", names)
    tc.assertIn("close_table", names)
    tc.assertEqual("end", names[-1])


def test_observer_sees_error_before_raise() -> None:
    events = []
    with pytest.raises(MalformedRowError):
        extract_tables(
            tokenize("<table><tr><tr></tr></tr></table>"),
            observer=lambda event, details: events.append(event),
        )
    tc.assertEqual("error", events[-1])
