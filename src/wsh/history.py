# WSH — Interactive Shell with Context-Aware Completion
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
In-memory command history for WSH.

Bounded, oldest-first, with a browse cursor for Up/Down navigation.
The browse cursor is independent of the text cursor; ``None`` means
"past the end" (editing a fresh line).
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from enum import Enum

from .tokenizer import split_words


class Direction(Enum):
    OLDER = "older"
    NEWER = "newer"


class HistoryStore:
    """Append-only history with duplicate-adjacent suppression."""

    def __init__(self, capacity: int = 1000) -> None:
        if capacity < 0:
            raise ValueError(f"history capacity must be >= 0, got {capacity}")
        self.capacity = capacity
        self._entries: deque[str] = deque(maxlen=capacity)
        self._browse: int | None = None

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def entries(self) -> list[str]:
        """Snapshot of entries, oldest first."""
        return list(self._entries)

    @property
    def is_browsing(self) -> bool:
        return self._browse is not None

    def record(self, line: str) -> bool:
        """Append a finished line. Returns True if it was stored."""
        self._browse = None
        entry = line.strip()
        if not entry or self.capacity == 0:
            return False
        if self._entries and self._entries[-1] == entry:
            return False
        # deque(maxlen=...) evicts the oldest entry on overflow
        self._entries.append(entry)
        return True

    def browse(self, direction: Direction) -> str | None:
        """Move the browse cursor one step and return the entry there.

        Returns None when history is empty, or when moving newer than
        the newest entry (cursor pinned past the end).
        """
        if not self._entries:
            self._browse = None
            return None

        newest = len(self._entries) - 1

        if direction == Direction.OLDER:
            if self._browse is None:
                self._browse = newest
            elif self._browse > 0:
                self._browse -= 1
            return self._entries[self._browse]

        if self._browse is None or self._browse >= newest:
            self._browse = None
            return None
        self._browse += 1
        return self._entries[self._browse]

    def reset_browse(self) -> None:
        self._browse = None

    def first_words(self) -> list[str]:
        """First word of every entry (command names used so far)."""
        words: list[str] = []
        for entry in self._entries:
            parts = split_words(entry)
            if parts and parts[0] not in words:
                words.append(parts[0])
        return words
