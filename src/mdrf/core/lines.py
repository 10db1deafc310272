"""Line normalization, the per-call line cursor, and fenced block reading"""

import re
from dataclasses import dataclass
from typing import Optional

from mdrf.errors import ParseError


FENCE_OPEN_RE = re.compile(r'```(\w*)\s*')
FENCE_CLOSE_RE = re.compile(r'```\s*')


def split_lines(text: str) -> list[str]:
    """Normalize line endings to \\n and split; one trailing empty line is dropped."""
    lines = text.replace('\r\n', '\n').replace('\r', '\n').split('\n')
    if lines and lines[-1] == '':
        lines.pop()
    if not lines:
        raise ParseError("Input is empty.", 1)
    return lines


class LineCursor:
    """Read position over normalized lines. Scoped to a single parse call."""

    def __init__(self, lines: list[str]):
        self.lines = lines
        self.index = 0

    @property
    def line_number(self) -> int:
        """1-based number of the line under the cursor."""
        return self.index + 1

    def at_end(self) -> bool:
        return self.index >= len(self.lines)

    def peek(self) -> Optional[str]:
        return None if self.at_end() else self.lines[self.index]

    def advance(self, count: int = 1) -> None:
        self.index += count

    def error(self, reason: str, line: Optional[int] = None) -> ParseError:
        return ParseError(reason, line or self.line_number)


@dataclass(frozen=True)
class FencedBlock:
    lang: Optional[str]     # lowercased tag; '' when untagged
    content: str
    line: int               # line of the opening fence


def fence_tag(line: Optional[str]) -> Optional[str]:
    """Lowercased language tag if line opens a fence, else None."""
    if line is None:
        return None
    m = FENCE_OPEN_RE.fullmatch(line)
    return m.group(1).lower() if m else None


def read_fenced_block(cursor: LineCursor, expected_lang: Optional[str] = None) -> FencedBlock:
    """Consume a ``` fenced block and return its raw content (lines joined by \\n).

    When expected_lang is given the opening tag must equal it (case-insensitive).
    """
    start = cursor.peek()
    if start is None:
        raise cursor.error("Unexpected end of input, expected a fenced code block.")
    lang = fence_tag(start)
    if expected_lang and lang != expected_lang.lower():
        raise cursor.error(f"Expected a '{expected_lang}' code block, but found '{lang or 'unspecified'}'.")
    if lang is None:
        raise cursor.error(f"Expected a fenced code block, but found: {start[:50]!r}")

    open_line = cursor.line_number
    cursor.advance()
    content: list[str] = []
    while not cursor.at_end():
        line = cursor.peek()
        cursor.advance()
        if FENCE_CLOSE_RE.fullmatch(line):
            return FencedBlock(lang=lang, content='\n'.join(content), line=open_line)
        content.append(line)
    raise cursor.error(f"Fenced code block opened with {start!r} was not closed with ```.", open_line)
