"""
Line codec for the engine's pipe (``-a``) mode.

Reply shapes understood by ``decode_line``::

    *                                   correctly spelled
    + ROOT / -                          correctly spelled (root or compound)
    & term count position: s1, s2       misspelled, with suggestions
    ? term count position: g1, g2       misspelled, with guesses
    # term position                     misspelled, no suggestions

An empty line closes the reply block of one submitted line.

Every submitted line is sent behind the ``^`` data-line marker so that text
starting with a pipe-mode command character (``*``, ``-``, ``#`` ...) is
checked instead of executed. The engine counts the marker in the reported
offset, which makes ``position`` the 1-based column of the term in the
submitted line.
"""

from __future__ import annotations

from services.pipespell_service.exceptions import ProtocolError
from services.pipespell_service.models import SuggestionRecord

LINE_TERMINATOR = "\n"
DATA_LINE_MARKER = "^"

CORRECT_MARKER = "*"
ROOT_MARKER = "+"
COMPOUND_MARKER = "-"
SUGGESTIONS_MARKER = "&"
GUESSES_MARKER = "?"
NO_SUGGESTIONS_MARKER = "#"


def encode_line(line: str) -> str:
    """Return the wire form of one line: the data-line marker, the text and a newline."""
    if "\n" in line or "\r" in line:
        raise ValueError("a submitted line must not contain a line break")
    return DATA_LINE_MARKER + line + LINE_TERMINATOR


def encode_text(text: str) -> list[str]:
    """Split text into the lines submitted to the engine, one per input line."""
    return text.splitlines()


def is_block_terminator(line: str) -> bool:
    return not line.strip()


def is_valid_banner(line: str | None, marker: str = "@", product: str = "Aspell") -> bool:
    """Check the engine's startup line, e.g. ``@(#) International Ispell ... Aspell 0.60``."""
    if not line:
        return False
    return line.startswith(marker) and product in line


def decode_line(line: str) -> SuggestionRecord:
    """Decode one reply line into a SuggestionRecord.

    Raises:
        ProtocolError: If the line is empty, has an unknown shape or a
            malformed header.
    """
    stripped = line.strip()
    if not stripped:
        raise ProtocolError("Empty line is a block terminator, not a reply", raw_line=line)

    marker = stripped[0]
    if marker == CORRECT_MARKER or marker == ROOT_MARKER or marker == COMPOUND_MARKER:
        return SuggestionRecord(is_misspelled=False)
    if marker == SUGGESTIONS_MARKER or marker == GUESSES_MARKER:
        return _decode_suggestions(stripped, line)
    if marker == NO_SUGGESTIONS_MARKER:
        return _decode_no_suggestions(stripped, line)

    raise ProtocolError(f"Engine reply not supported: {line!r}", raw_line=line)


def _decode_suggestions(stripped: str, raw_line: str) -> SuggestionRecord:
    header, separator, tail = stripped.partition(":")
    tokens = header.split()
    if not separator or len(tokens) != 4:
        raise ProtocolError(
            f"Cannot understand engine header {header!r} in reply {raw_line!r}",
            raw_line=raw_line,
        )

    count = _parse_int(tokens[2], "count", raw_line)
    position = _parse_int(tokens[3], "position", raw_line)
    candidates = [candidate.strip() for candidate in tail.split(",")]

    return SuggestionRecord(
        term=tokens[1],
        is_misspelled=True,
        suggestion_count=count,
        position=position,
        candidates=[candidate for candidate in candidates if candidate],
    )


def _decode_no_suggestions(stripped: str, raw_line: str) -> SuggestionRecord:
    tokens = stripped.split()
    if len(tokens) == 3:
        position_token = tokens[2]
    elif len(tokens) == 4:
        position_token = tokens[3]
        _parse_int(tokens[2], "count", raw_line)
    else:
        raise ProtocolError(
            f"Cannot understand engine header in reply {raw_line!r}",
            raw_line=raw_line,
        )

    return SuggestionRecord(
        term=tokens[1],
        is_misspelled=True,
        suggestion_count=0,
        position=_parse_int(position_token, "position", raw_line),
    )


def _parse_int(token: str, field: str, raw_line: str) -> int:
    try:
        return int(token, 10)
    except ValueError as e:
        raise ProtocolError(
            f"Invalid {field} {token!r} in engine reply: {raw_line!r}",
            raw_line=raw_line,
            cause=e,
        ) from e
