"""Shell-style word splitting for curl command lines.

Splits a raw line into words the way the Bourne shell does: whitespace
separates words, single and double quotes group text, and a backslash
escapes the character after it. Adjacent fragments with no whitespace
between them join into one word (``a'b'"c"`` is ``abc``).
"""

from __future__ import annotations

import re

# One unit per match: unquoted run | '...' | "..." | \X | stray char,
# followed by an optional separator.
_UNIT_RE = re.compile(
    r"""\s*
    (?:
        ([^\s\\'"]+)                # unquoted fragment
      | '((?:[^'\\]|\\.)*)'         # single-quoted span
      | "((?:[^"\\]|\\.)*)"         # double-quoted span
      | (\\.?)                      # bare escape
      | (\S)                        # unmatched quote
    )
    (\s|\Z)?
    """,
    re.VERBOSE,
)

_QUOTED_ESCAPE_RE = re.compile(r"\\(.)")


class MalformedQuoting(ValueError):
    """Raised when a line contains a quote with no closing pair."""

    def __init__(self, line: str) -> None:
        super().__init__(f"Unmatched quote: {line}")
        self.line = line


def tokenize(line: str) -> list[str]:
    """Split *line* into shell words.

    Args:
        line: The raw command line.

    Returns:
        The unescaped words, in order.

    Raises:
        MalformedQuoting: If a quote character is left unpaired.
    """
    words: list[str] = []
    field = ""
    pos = 0

    while pos < len(line):
        match = _UNIT_RE.match(line, pos)
        if match is None:
            # Only whitespace is left.
            break
        word, single, double, escape, garbage, separator = match.groups()

        if garbage is not None:
            raise MalformedQuoting(line)

        if word:
            field += word
        elif single or double:
            field += _QUOTED_ESCAPE_RE.sub(r"\1", single or double)
        elif escape:
            field += escape[1:] if len(escape) > 1 else escape

        if separator is not None:
            words.append(field)
            field = ""
        pos = match.end()

    if field:
        words.append(field)

    return words
