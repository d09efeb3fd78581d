"""
Metadata Statement Recognizer
=============================
Classifies raw statement text as one of the two supported metadata statements:

    SHOW TABLES LIKE <pattern>
    DESCRIBE TABLES LIKE <pattern> [COLUMNS LIKE <pattern>]

Keywords are case-insensitive and DESC is accepted for DESCRIBE. A pattern is a
bare run of non-whitespace characters or a single-quoted literal ('' escapes a
quote). Positions reported in errors are 1-based character offsets.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

from .errors import StatementSyntaxError, UnsupportedStatementError
from .like import compile_like

logger = logging.getLogger(__name__)


class StatementKind(Enum):
    SHOW = "show"
    DESCRIBE = "describe"


@dataclass(frozen=True)
class ShowTables:
    collection_pattern: str

    @property
    def kind(self) -> StatementKind:
        return StatementKind.SHOW


@dataclass(frozen=True)
class DescribeTables:
    collection_pattern: str
    column_pattern: Optional[str] = None  # None matches every field

    @property
    def kind(self) -> StatementKind:
        return StatementKind.DESCRIBE


StatementIntent = Union[ShowTables, DescribeTables]


@dataclass(frozen=True)
class Token:
    """Word of the statement with its 1-based start position."""
    value: str
    position: int
    quoted: bool = False

    @property
    def keyword(self) -> Optional[str]:
        """Upper-cased value for bare words, None for quoted literals."""
        return None if self.quoted else self.value.upper()

    def __repr__(self) -> str:
        return f"Token('{self.value}', {self.position}{', quoted' if self.quoted else ''})"


STATEMENT_KEYWORDS = {
    "SHOW": StatementKind.SHOW,
    "DESCRIBE": StatementKind.DESCRIBE,
    "DESC": StatementKind.DESCRIBE,
}

WHITESPACE = re.compile(r"\s+")
QUOTED = re.compile(r"'((?:''|[^'])*)'")
BARE = re.compile(r"\S+")


def tokenize(text: str) -> List[Token]:
    """Split statement text into words, unquoting single-quoted patterns."""
    tokens = []
    pos = 0

    while pos < len(text):
        ws = WHITESPACE.match(text, pos)
        if ws:
            pos = ws.end()
            continue

        if text[pos] == "'":
            quoted = QUOTED.match(text, pos)
            if not quoted:
                raise StatementSyntaxError("Unterminated quoted pattern", pos + 1, text[pos:])
            end = quoted.end()
            if end < len(text) and not text[end].isspace():
                raise StatementSyntaxError(
                    "Expected whitespace after quoted pattern", end + 1, text[end:].split()[0]
                )
            tokens.append(Token(quoted.group(1).replace("''", "'"), pos + 1, quoted=True))
            pos = end
            continue

        bare = BARE.match(text, pos)
        tokens.append(Token(bare.group(0), pos + 1))
        pos = bare.end()

    return tokens


class _Cursor:
    """Walks the token list, raising positioned syntax errors."""

    def __init__(self, text: str, tokens: List[Token]):
        self.text = text
        self.tokens = tokens
        self.index = 0

    @property
    def end_position(self) -> int:
        return len(self.text) + 1

    def peek(self) -> Optional[Token]:
        if self.index < len(self.tokens):
            return self.tokens[self.index]
        return None

    def next(self) -> Optional[Token]:
        token = self.peek()
        if token is not None:
            self.index += 1
        return token

    def expect_keyword(self, keyword: str) -> Token:
        token = self.next()
        if token is None:
            raise StatementSyntaxError(f"Expected {keyword} but statement ended", self.end_position)
        if token.keyword != keyword:
            raise StatementSyntaxError(
                f"Expected {keyword} but found '{token.value}'", token.position, token.value
            )
        return token

    def expect_pattern(self, escape: Optional[str]) -> str:
        token = self.next()
        if token is None:
            raise StatementSyntaxError("Expected a LIKE pattern but statement ended", self.end_position)
        # Raises InvalidPatternError for empty patterns or dangling escapes
        compile_like(token.value, escape=escape)
        return token.value

    def expect_end(self) -> None:
        token = self.next()
        if token is not None:
            raise StatementSyntaxError(f"Unexpected '{token.value}'", token.position, token.value)


def recognize(text: str, escape: Optional[str] = None) -> StatementIntent:
    """
    Recognize a SHOW TABLES or DESCRIBE TABLES statement.

    Args:
        text: Raw statement text
        escape: LIKE escape marker used to validate the extracted patterns

    Returns:
        ShowTables or DescribeTables intent

    Raises:
        UnsupportedStatementError: If the text is not a metadata statement
        StatementSyntaxError: If the text does not fit the grammar
        InvalidPatternError: If an extracted pattern is malformed
    """
    tokens = tokenize(text)
    if not tokens:
        raise StatementSyntaxError("Empty statement", 1)

    cursor = _Cursor(text, tokens)
    verb = cursor.next()
    kind = STATEMENT_KEYWORDS.get(verb.keyword or "")
    if kind is None:
        raise UnsupportedStatementError(f"Unsupported statement starting with '{verb.value}'")

    target = cursor.peek()
    if target is not None and target.keyword != "TABLES":
        raise UnsupportedStatementError(
            f"Unsupported metadata statement '{verb.value} {target.value}', only TABLES is supported"
        )
    cursor.expect_keyword("TABLES")
    cursor.expect_keyword("LIKE")
    collection_pattern = cursor.expect_pattern(escape)

    if kind is StatementKind.SHOW:
        cursor.expect_end()
        intent: StatementIntent = ShowTables(collection_pattern)
    else:
        column_pattern = None
        if cursor.peek() is not None:
            cursor.expect_keyword("COLUMNS")
            cursor.expect_keyword("LIKE")
            column_pattern = cursor.expect_pattern(escape)
            cursor.expect_end()
        intent = DescribeTables(collection_pattern, column_pattern)

    logger.debug(f"Recognized {intent!r}")
    return intent
