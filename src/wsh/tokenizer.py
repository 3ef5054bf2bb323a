# WSH — Interactive Shell with Context-Aware Completion
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Quote-aware tokenizer for WSH command lines.

Used twice:
- on Enter, to split the finished line into argv for dispatch
- on Tab, to find the token under the cursor and whether it sits in
  command position

Tokens keep the character offsets of their raw text (quotes and
backslashes included) so completion can replace one token in place
without disturbing the rest of the line.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

WHITESPACE = (" ", "\t")


class LexerState(Enum):
    """States for quote-aware lexer."""
    NORMAL = auto()
    SINGLE_QUOTE = auto()
    DOUBLE_QUOTE = auto()
    ESCAPE = auto()


@dataclass(frozen=True)
class Token:
    """A shell word and the span of its raw text in the line."""
    value: str
    start: int
    end: int
    quoted: bool = False


@dataclass(frozen=True)
class ActiveToken:
    """The token completion works on.

    ``text`` is the unquoted value of the part before the cursor;
    ``start``/``end`` is the span replaced by a completion.
    """
    text: str
    start: int
    end: int
    is_first: bool
    quote_char: str = ""


def _scan(line: str) -> tuple[list[Token], LexerState]:
    tokens: list[Token] = []
    state = LexerState.NORMAL
    escaped_from = LexerState.NORMAL
    value: list[str] = []
    start = -1
    quoted = False

    for i, ch in enumerate(line):
        if state == LexerState.ESCAPE:
            value.append(ch)
            state = escaped_from
            continue

        if state == LexerState.SINGLE_QUOTE:
            if ch == "'":
                state = LexerState.NORMAL
            else:
                value.append(ch)
            continue

        if state == LexerState.DOUBLE_QUOTE:
            if ch == '"':
                state = LexerState.NORMAL
            elif ch == "\\" and i + 1 < len(line) and line[i + 1] in '"\\':
                escaped_from = LexerState.DOUBLE_QUOTE
                state = LexerState.ESCAPE
            else:
                value.append(ch)
            continue

        # NORMAL
        if ch in WHITESPACE:
            if start >= 0:
                tokens.append(Token("".join(value), start, i, quoted))
                value = []
                start = -1
                quoted = False
            continue

        if start < 0:
            start = i

        if ch == "\\":
            if i + 1 < len(line):
                escaped_from = LexerState.NORMAL
                state = LexerState.ESCAPE
            else:
                # Trailing lone backslash is kept literally
                value.append(ch)
        elif ch == "'":
            quoted = True
            state = LexerState.SINGLE_QUOTE
        elif ch == '"':
            quoted = True
            state = LexerState.DOUBLE_QUOTE
        else:
            value.append(ch)

    if start >= 0:
        tokens.append(Token("".join(value), start, len(line), quoted))

    return tokens, state


def tokenize(line: str) -> list[Token]:
    """Split a line into shell words.

    An unterminated quote is open to end-of-line; it is never an error
    at this layer.
    """
    return _scan(line)[0]


def split_words(line: str) -> list[str]:
    """Token values only (argv form)."""
    return [t.value for t in tokenize(line)]


def has_unterminated_quote(line: str) -> bool:
    """True if the line ends inside a single or double quote."""
    _tokens, state = _scan(line)
    return state in (LexerState.SINGLE_QUOTE, LexerState.DOUBLE_QUOTE)


def _open_quote(raw: str) -> str:
    """Quote character left open at the end of ``raw``, or ''."""
    state = _scan(raw)[1]
    if state == LexerState.SINGLE_QUOTE:
        return "'"
    if state == LexerState.DOUBLE_QUOTE:
        return '"'
    return ""


def active_token(line: str, cursor: int) -> ActiveToken:
    """Return the token under the cursor for completion.

    A token is active when ``start < cursor <= end``. Otherwise (cursor
    at 0, in whitespace, or right after a separator) an empty token at
    the cursor is returned.
    """
    cursor = max(0, min(cursor, len(line)))
    tokens = tokenize(line)

    for index, tok in enumerate(tokens):
        if tok.start < cursor <= tok.end:
            raw_before = line[tok.start:cursor]
            before = tokenize(raw_before)
            text = before[0].value if before else ""
            return ActiveToken(
                text=text,
                start=tok.start,
                end=tok.end,
                is_first=index == 0,
                quote_char=_open_quote(raw_before),
            )

    prior = [t for t in tokens if t.end <= cursor]
    return ActiveToken(
        text="", start=cursor, end=cursor, is_first=not prior
    )


def escape_word(word: str, quote_char: str = "") -> str:
    """Escape a word so the tokenizer reads it back unchanged.

    Inside an open quote only the characters that quote cannot hold
    are escaped; outside quotes whitespace, quotes and backslashes are
    backslash-escaped.
    """
    if quote_char == "'":
        # Single quotes cannot contain a single quote; close, escape, reopen
        return word.replace("'", "'\\''")
    if quote_char == '"':
        return word.replace("\\", "\\\\").replace('"', '\\"')

    out: list[str] = []
    for ch in word:
        if ch in WHITESPACE or ch in "'\"\\":
            out.append("\\")
        out.append(ch)
    return "".join(out)
