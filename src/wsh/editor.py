# WSH — Interactive Shell with Context-Aware Completion
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
WSH line editor.

Owns the line buffer and routes decoded key events to:
- buffer mutation (typing, deletion, kill commands)
- history browsing (Up/Down, with a snapshot of the live line)
- completion cycling (Tab/Shift-Tab)

Terminal I/O lives in ui.py; this module never touches the terminal,
so every transition can be driven directly from tests.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, auto

from prompt_toolkit.utils import get_cwidth

from .aliases import AliasResolver
from .buffer import LineBuffer
from .completion import CompletionCycler, CompletionResult
from .history import Direction, HistoryStore
from .tokenizer import split_words


class Key(Enum):
    CHAR = auto()
    PASTE = auto()
    TAB = auto()
    BACKTAB = auto()
    ENTER = auto()
    BACKSPACE = auto()
    DELETE = auto()
    LEFT = auto()
    RIGHT = auto()
    UP = auto()
    DOWN = auto()
    HOME = auto()
    END = auto()
    CTRL_C = auto()
    CTRL_D = auto()
    CTRL_U = auto()
    CTRL_K = auto()
    CTRL_W = auto()
    CTRL_L = auto()
    IGNORED = auto()


@dataclass(frozen=True)
class KeyEvent:
    key: Key
    data: str = ""

    @classmethod
    def char(cls, ch: str) -> KeyEvent:
        return cls(Key.CHAR, ch)


class OutcomeKind(Enum):
    CONTINUE = auto()
    SUBMIT = auto()
    EMPTY = auto()
    INTERRUPTED = auto()
    END_OF_INPUT = auto()
    CLEAR_SCREEN = auto()


@dataclass(frozen=True)
class EditorOutcome:
    kind: OutcomeKind
    line: str = ""
    argv: list[str] = field(default_factory=list)
    # Set when the last Tab found nothing (UI may ring the bell)
    no_match: bool = False


CONTINUE = EditorOutcome(OutcomeKind.CONTINUE)

# Keys that leave an active completion cycle alone
_CYCLE_KEYS = frozenset({
    Key.TAB, Key.BACKTAB, Key.LEFT, Key.RIGHT, Key.HOME, Key.END,
})


class LineEditor:
    """Key-event state machine over one line of input."""

    def __init__(
        self,
        history: HistoryStore,
        cycler: CompletionCycler,
        resolver: AliasResolver,
    ) -> None:
        self.history = history
        self.cycler = cycler
        self.resolver = resolver
        self.buffer = LineBuffer()
        # Line being edited before Up/Down browsing began; None when live
        self._live_line: str | None = None

        self._handlers: dict[Key, Callable[[KeyEvent], EditorOutcome]] = {
            Key.CHAR: self._on_text,
            Key.PASTE: self._on_text,
            Key.TAB: self._on_tab,
            Key.BACKTAB: self._on_tab,
            Key.ENTER: self._on_enter,
            Key.BACKSPACE: self._on_edit,
            Key.DELETE: self._on_edit,
            Key.CTRL_U: self._on_edit,
            Key.CTRL_K: self._on_edit,
            Key.CTRL_W: self._on_edit,
            Key.LEFT: self._on_move,
            Key.RIGHT: self._on_move,
            Key.HOME: self._on_move,
            Key.END: self._on_move,
            Key.UP: self._on_history,
            Key.DOWN: self._on_history,
            Key.CTRL_C: self._on_interrupt,
            Key.CTRL_D: self._on_eof,
            Key.CTRL_L: self._on_clear_screen,
        }

    # -----------------------
    # Public API
    # -----------------------

    @property
    def is_browsing(self) -> bool:
        return self._live_line is not None

    def process_key(self, event: KeyEvent) -> EditorOutcome:
        if event.key not in _CYCLE_KEYS:
            self.cycler.reset()
        handler = self._handlers.get(event.key)
        if handler is None:
            return CONTINUE
        return handler(event)

    def render_state(self) -> tuple[str, int]:
        """(display_line, cursor_column) for the caller to draw."""
        text = self.buffer.text
        return text, get_cwidth(text[:self.buffer.cursor])

    def reset(self) -> None:
        """Abandon the current line and all transient state."""
        self.buffer.clear()
        self.cycler.reset()
        self.history.reset_browse()
        self._live_line = None

    # -----------------------
    # Handlers
    # -----------------------

    def _leave_browsing(self) -> None:
        self.history.reset_browse()
        self._live_line = None

    def _on_text(self, event: KeyEvent) -> EditorOutcome:
        self._leave_browsing()
        text = event.data
        if event.key == Key.PASTE:
            text = text.replace("\r\n", " ").replace("\n", " ").replace(
                "\r", " "
            )
        if text:
            self.buffer.insert(text)
        return CONTINUE

    def _on_edit(self, event: KeyEvent) -> EditorOutcome:
        self._leave_browsing()
        buf = self.buffer
        if event.key == Key.BACKSPACE:
            buf.delete_before()
        elif event.key == Key.DELETE:
            buf.delete_after()
        elif event.key == Key.CTRL_U:
            buf.kill_to_start()
        elif event.key == Key.CTRL_K:
            buf.kill_to_end()
        elif event.key == Key.CTRL_W:
            buf.delete_word_before()
        return CONTINUE

    def _on_move(self, event: KeyEvent) -> EditorOutcome:
        # Pure navigation: completion and history state are untouched
        buf = self.buffer
        if event.key == Key.LEFT:
            buf.move(-1)
        elif event.key == Key.RIGHT:
            buf.move(1)
        elif event.key == Key.HOME:
            buf.home()
        elif event.key == Key.END:
            buf.end()
        return CONTINUE

    def _on_history(self, event: KeyEvent) -> EditorOutcome:
        if event.key == Key.DOWN and self._live_line is None:
            return CONTINUE

        direction = Direction.OLDER if event.key == Key.UP else Direction.NEWER
        entry = self.history.browse(direction)
        if entry is None:
            if self._live_line is not None:
                self.buffer.set(self._live_line)
                self._live_line = None
            return CONTINUE

        if self._live_line is None:
            self._live_line = self.buffer.text
        self.buffer.set(entry)
        return CONTINUE

    def _on_tab(self, event: KeyEvent) -> EditorOutcome:
        result = self.cycler.complete(
            self.buffer, reverse=event.key == Key.BACKTAB
        )
        if result == CompletionResult.NO_MATCH:
            return EditorOutcome(OutcomeKind.CONTINUE, no_match=True)
        # The completed text is an edit; Down must not restore over it
        self._leave_browsing()
        return CONTINUE

    def _on_enter(self, event: KeyEvent) -> EditorOutcome:
        line = self.buffer.text
        self.reset()

        if not line.strip():
            return EditorOutcome(OutcomeKind.EMPTY, line=line)

        argv = self.resolver.resolve(split_words(line))
        self.history.record(line)
        return EditorOutcome(OutcomeKind.SUBMIT, line=line, argv=argv)

    def _on_interrupt(self, event: KeyEvent) -> EditorOutcome:
        self.reset()
        return EditorOutcome(OutcomeKind.INTERRUPTED)

    def _on_eof(self, event: KeyEvent) -> EditorOutcome:
        if self.buffer.text:
            return CONTINUE
        self.reset()
        return EditorOutcome(OutcomeKind.END_OF_INPUT)

    def _on_clear_screen(self, event: KeyEvent) -> EditorOutcome:
        return EditorOutcome(OutcomeKind.CLEAR_SCREEN)
