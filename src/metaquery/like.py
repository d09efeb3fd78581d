"""SQL LIKE pattern compiler used to match collection and field names."""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from .errors import InvalidPatternError

logger = logging.getLogger(__name__)

ANY_RUN = "%"
ANY_ONE = "_"


class SegmentKind(Enum):
    LITERAL = "literal"
    ANY_RUN = "any_run"  # %
    ANY_ONE = "any_one"  # _


@dataclass(frozen=True)
class Segment:
    kind: SegmentKind
    text: str = ""


@dataclass(frozen=True)
class LikePattern:
    """
    Compiled LIKE expression.

    Two patterns compiled from the same source with the same options compare
    equal and match the same names.
    """

    source: str
    segments: Tuple[Segment, ...]
    case_sensitive: bool = True

    @property
    def is_literal(self) -> bool:
        """True when the pattern has no wildcards and behaves as exact equality."""
        return all(segment.kind is SegmentKind.LITERAL for segment in self.segments)

    @property
    def literal(self) -> str:
        """Text of the pattern with escapes removed (only meaningful when is_literal)."""
        return "".join(segment.text for segment in self.segments)

    @property
    def regex(self) -> str:
        """Equivalent regular expression, to be used as a full-string match."""
        parts = []
        for segment in self.segments:
            if segment.kind is SegmentKind.ANY_RUN:
                parts.append(".*")
            elif segment.kind is SegmentKind.ANY_ONE:
                parts.append(".")
            else:
                parts.append(re.escape(segment.text))
        return "".join(parts)

    def matches(self, candidate: str) -> bool:
        """Return True if candidate matches the whole pattern."""
        # Case-insensitive literals go through the regex too, so IGNORECASE is the only folding rule
        if self.is_literal and self.case_sensitive:
            return candidate == self.literal

        flags = re.DOTALL if self.case_sensitive else re.DOTALL | re.IGNORECASE
        return re.fullmatch(self.regex, candidate, flags) is not None


def compile_like(
    pattern: str,
    case_sensitive: bool = True,
    escape: Optional[str] = None,
) -> LikePattern:
    """
    Compile a SQL LIKE pattern.

    Args:
        pattern: LIKE text, e.g. ``opensearch_%`` or ``%na_e``
        case_sensitive: Whether names must match the pattern's case exactly
        escape: Optional single-character escape marker; when set, the marker
            makes a following ``%``, ``_`` or marker literal

    Returns:
        LikePattern

    Raises:
        InvalidPatternError: If the pattern is empty or has a dangling escape
    """
    if escape is not None and len(escape) != 1:
        raise ValueError(f"LIKE escape must be a single character, got {escape!r}")
    if not pattern:
        raise InvalidPatternError("LIKE pattern must not be empty", pattern)

    segments: List[Segment] = []
    literal: List[str] = []

    def flush() -> None:
        if literal:
            segments.append(Segment(SegmentKind.LITERAL, "".join(literal)))
            literal.clear()

    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if escape is not None and ch == escape:
            if i + 1 >= len(pattern):
                raise InvalidPatternError(
                    f"Unterminated escape '{escape}' at end of LIKE pattern '{pattern}'", pattern
                )
            escaped = pattern[i + 1]
            if escaped not in (ANY_RUN, ANY_ONE, escape):
                raise InvalidPatternError(
                    f"Invalid escape sequence '{escape}{escaped}' in LIKE pattern '{pattern}'", pattern
                )
            literal.append(escaped)
            i += 2
            continue

        if ch == ANY_RUN:
            flush()
            # %% is the same as %
            if not segments or segments[-1].kind is not SegmentKind.ANY_RUN:
                segments.append(Segment(SegmentKind.ANY_RUN))
        elif ch == ANY_ONE:
            flush()
            segments.append(Segment(SegmentKind.ANY_ONE))
        else:
            literal.append(ch)
        i += 1

    flush()
    compiled = LikePattern(source=pattern, segments=tuple(segments), case_sensitive=case_sensitive)
    logger.debug(f"Compiled LIKE pattern '{pattern}' to regex '{compiled.regex}'")
    return compiled


def matches(pattern: LikePattern, candidate: str) -> bool:
    """Return True if candidate matches the compiled pattern."""
    return pattern.matches(candidate)
