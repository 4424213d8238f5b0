"""
Pull-style HTML token source.

The standard library ``html.parser.HTMLParser`` is a push parser: it calls
``handle_*`` methods while it is fed. The table extractor wants to pull one
token at a time, so :class:`HtmlTokenSource` reads the byte stream in chunks,
feeds the parser and queues the tokens it produces.

Unlike a tree builder, the tokenizer never repairs the document. A ``<tr>``
inside another ``<tr>`` reaches the extractor exactly as written, which is
what lets the extractor reject malformed tables instead of guessing.

Character references are decoded in text tokens (``convert_charrefs``).
Self-closing tags like ``<br />`` are reported as a single
``SELF_CLOSING_TAG`` token instead of a start/end pair.
"""

import codecs
import html
import io
import logging
import re
import typing
from collections import deque
from dataclasses import dataclass
from enum import Enum
from html.parser import HTMLParser
from typing import Deque, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024

_META_CHARSET = re.compile(rb'<meta[^>]+charset=["\']?([^"\'\s>/]+)', re.IGNORECASE)


class TokenType(Enum):
    ERROR = "error"
    TEXT = "text"
    START_TAG = "start_tag"
    END_TAG = "end_tag"
    SELF_CLOSING_TAG = "self_closing_tag"
    COMMENT = "comment"
    DOCTYPE = "doctype"
    OTHER = "other"


class EndOfStream(Exception):
    """Reported by ``err()`` once the token source has no more input."""


@dataclass(frozen=True)
class Token:
    type: TokenType
    # Lower-cased tag name for tags, decoded text for text tokens.
    data: str = ""
    attrs: Tuple[Tuple[str, Optional[str]], ...] = ()

    def render(self) -> str:
        """Markup-safe rendering: text with ``&``, ``<`` and ``>`` escaped."""
        if self.type is TokenType.TEXT:
            return html.escape(self.data, quote=False)
        if self.type is TokenType.START_TAG:
            return f"<{self.data}>"
        if self.type is TokenType.END_TAG:
            return f"</{self.data}>"
        if self.type is TokenType.SELF_CLOSING_TAG:
            return f"<{self.data} />"
        return ""


class TokenSource(Protocol):
    """What the table extractor needs from a tokenizer."""

    def advance(self) -> TokenType:
        """Move to the next token and return its type."""
        ...

    def token(self) -> Token:
        """The token at the cursor."""
        ...

    def err(self) -> Exception | None:
        """The error behind an ERROR token; ``EndOfStream`` at the end of input."""
        ...


class _TokenCollector(HTMLParser):
    """Queues every parser callback as a :class:`Token`."""

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.tokens: Deque[Token] = deque()

    def handle_starttag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]):
        self.tokens.append(Token(TokenType.START_TAG, tag, tuple(attrs)))

    def handle_startendtag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]):
        self.tokens.append(Token(TokenType.SELF_CLOSING_TAG, tag, tuple(attrs)))

    def handle_endtag(self, tag: str):
        self.tokens.append(Token(TokenType.END_TAG, tag))

    def handle_data(self, data: str):
        self.tokens.append(Token(TokenType.TEXT, data))

    def handle_comment(self, data: str):
        self.tokens.append(Token(TokenType.COMMENT, data))

    def handle_decl(self, decl: str):
        self.tokens.append(Token(TokenType.DOCTYPE, decl))

    def handle_pi(self, data: str):
        self.tokens.append(Token(TokenType.OTHER, data))

    def unknown_decl(self, data: str):
        self.tokens.append(Token(TokenType.OTHER, data))


def sniff_encoding(head: bytes) -> tuple[str, int]:
    """
    Guess the encoding of an HTML document from its first bytes.

    Returns the codec name and the length of the byte order mark to skip.
    """
    if head.startswith(codecs.BOM_UTF8):
        return "utf-8", len(codecs.BOM_UTF8)
    if head.startswith(codecs.BOM_UTF16_LE):
        return "utf-16-le", len(codecs.BOM_UTF16_LE)
    if head.startswith(codecs.BOM_UTF16_BE):
        return "utf-16-be", len(codecs.BOM_UTF16_BE)

    charset_match = _META_CHARSET.search(head)
    if charset_match:
        encoding = charset_match.group(1).decode("ascii", errors="ignore")
        try:
            return codecs.lookup(encoding).name, 0
        except LookupError:
            logger.debug(f"Unknown charset [{encoding}], falling back to utf-8")
    return "utf-8", 0


class HtmlTokenSource:
    """
    :class:`TokenSource` over a binary (or text) stream holding one HTML document.

    Once the stream is exhausted, or ``read()`` fails, every further
    ``advance()`` returns ``TokenType.ERROR`` and ``err()`` tells which.
    """

    def __init__(
        self,
        file_like: typing.IO,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self._file_like = file_like
        self._chunk_size = chunk_size
        self._parser = _TokenCollector()
        self._decoder: codecs.IncrementalDecoder | None = None
        self._exhausted = False
        self._token = Token(TokenType.ERROR)
        self._err: Exception | None = None

    def advance(self) -> TokenType:
        if self._err is not None:
            return TokenType.ERROR

        while not self._parser.tokens:
            if self._exhausted:
                return self._fail(EndOfStream())
            try:
                self._feed_next_chunk()
            except OSError as exc:
                logger.debug(f"Reading the HTML stream failed: {exc}")
                return self._fail(exc)

        self._token = self._parser.tokens.popleft()
        return self._token.type

    def token(self) -> Token:
        return self._token

    def err(self) -> Exception | None:
        return self._err

    def _fail(self, exc: Exception) -> TokenType:
        self._token = Token(TokenType.ERROR)
        self._err = exc
        return TokenType.ERROR

    def _feed_next_chunk(self) -> None:
        chunk = self._file_like.read(self._chunk_size)
        at_end = not chunk

        if isinstance(chunk, str):
            text = chunk
        else:
            if self._decoder is None:
                encoding, bom_length = sniff_encoding(chunk)
                logger.debug(f"Decoding HTML stream as {encoding}")
                chunk = chunk[bom_length:]
                self._decoder = codecs.getincrementaldecoder(encoding)(
                    errors="replace"
                )
            text = self._decoder.decode(chunk, final=at_end)

        if text:
            self._parser.feed(text)
        if at_end:
            self._parser.close()
            self._exhausted = True


def tokenize(file_like: typing.IO) -> HtmlTokenSource:
    """Convenience constructor accepting bytes, str or a stream."""
    if isinstance(file_like, bytes):
        return HtmlTokenSource(io.BytesIO(file_like))
    if isinstance(file_like, str):
        return HtmlTokenSource(io.StringIO(file_like))
    return HtmlTokenSource(file_like)
