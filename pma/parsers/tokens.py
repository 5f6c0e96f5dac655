"""
Line tokenizer shared by the input-file parsers and the configuration reader.

Rules:
- Whitespace (space, tab, carriage return, newline) separates tokens.
- A token may be single-quoted to include whitespace; the quotes are not
  part of the token.  Only a quote at the start of a token opens one, a
  quote further in is an ordinary character.  There is no escaping, and
  an unterminated quote runs to the end of the line.
- ``#`` outside quotes starts a comment that runs to the end of the line.
- Tokens beyond ``max_tokens`` are silently discarded.

An empty result means "blank or comment-only line"; callers use it as
the end-of-stanza sentinel.
"""

from __future__ import annotations

QUOTE_CHAR = "'"
COMMENT_CHAR = "#"
_WHITESPACE = frozenset(" \t\r\n")


def split_tokens(line: str, max_tokens: int | None = None) -> list[str]:
    """Split *line* into at most *max_tokens* tokens.

    Examples::

        >>> split_tokens("cpu_us 12.5  # user time")
        ['cpu_us', '12.5']
        >>> split_tokens("singlefiledelimiter ' '")
        ['singlefiledelimiter', ' ']
        >>> split_tokens("a b c d", max_tokens=2)
        ['a', 'b']
    """
    tokens: list[str] = []
    pos = 0
    end = len(line)

    while pos < end:
        char = line[pos]
        if char in _WHITESPACE:
            pos += 1
            continue
        if char == COMMENT_CHAR:
            break
        if max_tokens is not None and len(tokens) >= max_tokens:
            break

        if char == QUOTE_CHAR:
            close = line.find(QUOTE_CHAR, pos + 1)
            if close == -1:
                tokens.append(line[pos + 1:].rstrip("\r\n"))
                break
            tokens.append(line[pos + 1:close])
            pos = close + 1
            continue

        start = pos
        while pos < end and line[pos] not in _WHITESPACE:
            if line[pos] == COMMENT_CHAR:
                break
            pos += 1
        tokens.append(line[start:pos])
        if pos < end and line[pos] == COMMENT_CHAR:
            break

    return tokens
