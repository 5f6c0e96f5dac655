"""
Stanza locator for pma input files.

``StanzaReader`` wraps one text stream (a file or standard input) and is
the only object that consumes input lines.  It keeps the line counter used
in every diagnostic, can push a single line back (so a block reader that
runs into the next stanza marker can hand it to the locator), and knows
whether the stream can be rewound for the second pass over the first
input file.
"""

from __future__ import annotations

import logging
from typing import TextIO

from pma.exceptions import StanzaNotFoundError
from pma.model import STANZA_TERMINATOR
from pma.parsers.tokens import split_tokens

logger = logging.getLogger(__name__)

TIME_VALUES_MARKER = "TIME_VALUES:"
METADATA_MARKER = "METADATA:"
DATE_MARKER = "DATE:"
STDIN_NAME = "-"


def is_stanza_marker(line: str) -> bool:
    """True for a line made of a single ``<word>:`` token."""
    stripped = line.strip()
    return (
        len(stripped) > 1
        and stripped.endswith(STANZA_TERMINATOR)
        and len(stripped.split()) == 1
        and not stripped.startswith("#")
    )


class StanzaReader:
    """Line-oriented reader over a single input stream.

    Attributes:
        name: Source name used in diagnostics (file path or ``"-"``).
        line_number: Number of the last line handed out (1-based).
    """

    def __init__(self, stream: TextIO, name: str = STDIN_NAME) -> None:
        self.stream = stream
        self.name = name
        self.line_number = 0
        self._pushed: str | None = None

    def __enter__(self) -> StanzaReader:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if not self.stream.closed and self.name != STDIN_NAME:
            self.stream.close()

    # -- Line access --------------------------------------------------------

    def readline(self) -> str | None:
        """Return the next line without its newline, or ``None`` at end of stream."""
        if self._pushed is not None:
            line, self._pushed = self._pushed, None
            self.line_number += 1
            return line
        raw = self.stream.readline()
        if raw == "":
            return None
        self.line_number += 1
        return raw.rstrip("\r\n")

    def unread(self, line: str) -> None:
        """Push *line* back so the next ``readline()`` returns it again."""
        if self._pushed is not None:
            raise RuntimeError("Only one line can be pushed back")
        self._pushed = line
        self.line_number -= 1

    def read_tokens(self, max_tokens: int | None = None) -> tuple[str, list[str]] | None:
        """Read one line and tokenize it.  ``None`` at end of stream."""
        line = self.readline()
        if line is None:
            return None
        return line, split_tokens(line, max_tokens)

    def read_block_tokens(self, max_tokens: int | None = None) -> tuple[str, list[str]] | None:
        """Like ``read_tokens()``, but a stanza marker ends the block.

        The marker is pushed back so a following ``skip_to()`` still
        finds it.
        """
        line = self.readline()
        if line is None:
            return None
        if is_stanza_marker(line):
            self.unread(line)
            return None
        return line, split_tokens(line, max_tokens)

    # -- Stanzas ------------------------------------------------------------

    def skip_to(self, marker: str, mandatory: bool = True) -> bool:
        """Discard lines until one equals *marker* exactly.

        Returns:
            ``True`` when the marker was found.  ``False`` at end of
            stream for optional markers.

        Raises:
            StanzaNotFoundError: If a mandatory marker is never found.
        """
        while True:
            line = self.readline()
            if line is None:
                break
            if line == marker:
                logger.debug("%s:%d: found stanza '%s'", self.name, self.line_number, marker)
                return True
        if mandatory:
            raise StanzaNotFoundError(
                f"Data file stanza '{marker}' not found in {self.name} "
                f"(read {self.line_number} lines)"
            )
        return False

    # -- Rewind -------------------------------------------------------------

    @property
    def seekable(self) -> bool:
        """Standard input is never rewound, even when redirected from a file."""
        if self.name == STDIN_NAME:
            return False
        try:
            return self.stream.seekable()
        except (AttributeError, ValueError):
            return False

    def rewind(self) -> bool:
        """Seek back to the start of the stream if it allows it."""
        if not self.seekable:
            return False
        self.stream.seek(0)
        self.line_number = 0
        self._pushed = None
        return True
