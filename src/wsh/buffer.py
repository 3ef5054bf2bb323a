# WSH — Interactive Shell with Context-Aware Completion
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Mutable line buffer: text plus a cursor offset in ``0..=len(text)``.
"""

from __future__ import annotations

from .tokenizer import WHITESPACE


class LineBuffer:
    def __init__(self, text: str = "", cursor: int | None = None) -> None:
        self._text = text
        self._cursor = len(text) if cursor is None else cursor
        self._clamp()

    def __repr__(self) -> str:
        return f"LineBuffer(text={self._text!r}, cursor={self._cursor})"

    @property
    def text(self) -> str:
        return self._text

    @property
    def cursor(self) -> int:
        return self._cursor

    @cursor.setter
    def cursor(self, value: int) -> None:
        self._cursor = value
        self._clamp()

    def _clamp(self) -> None:
        self._cursor = max(0, min(self._cursor, len(self._text)))

    def set(self, text: str, cursor: int | None = None) -> None:
        """Replace the whole text; cursor defaults to the end."""
        self._text = text
        self._cursor = len(text) if cursor is None else cursor
        self._clamp()

    def clear(self) -> None:
        self.set("")

    def insert(self, s: str) -> None:
        c = self._cursor
        self._text = self._text[:c] + s + self._text[c:]
        self._cursor = c + len(s)

    def delete_before(self) -> bool:
        if self._cursor == 0:
            return False
        c = self._cursor
        self._text = self._text[:c - 1] + self._text[c:]
        self._cursor = c - 1
        return True

    def delete_after(self) -> bool:
        if self._cursor >= len(self._text):
            return False
        c = self._cursor
        self._text = self._text[:c] + self._text[c + 1:]
        return True

    def replace(self, start: int, end: int, s: str) -> int:
        """Replace ``text[start:end]`` with ``s``; cursor goes after it.

        Returns the new end offset of the inserted text.
        """
        start = max(0, min(start, len(self._text)))
        end = max(start, min(end, len(self._text)))
        self._text = self._text[:start] + s + self._text[end:]
        self._cursor = start + len(s)
        return self._cursor

    def move(self, delta: int) -> None:
        self._cursor += delta
        self._clamp()

    def home(self) -> None:
        self._cursor = 0

    def end(self) -> None:
        self._cursor = len(self._text)

    def kill_to_start(self) -> None:
        self._text = self._text[self._cursor:]
        self._cursor = 0

    def kill_to_end(self) -> None:
        self._text = self._text[:self._cursor]

    def delete_word_before(self) -> None:
        """Delete back to the previous whitespace (Ctrl+W)."""
        c = self._cursor
        i = c
        while i > 0 and self._text[i - 1] in WHITESPACE:
            i -= 1
        while i > 0 and self._text[i - 1] not in WHITESPACE:
            i -= 1
        self._text = self._text[:i] + self._text[c:]
        self._cursor = i
