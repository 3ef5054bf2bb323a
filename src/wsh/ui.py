# WSH — Interactive Shell with Context-Aware Completion
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Terminal front end for WSH.

prompt_toolkit supplies the low-level pieces (raw mode, VT100 key
parsing, output control); the editing logic itself is LineEditor.

Raw mode is held for exactly one read_line() call. It is released on
every exit path, including SIGTERM/SIGHUP (turned into SystemExit while
the line is being read), so commands always run in cooked mode.
"""

from __future__ import annotations

import select
import signal
import termios
from collections.abc import Iterator
from contextlib import contextmanager

from prompt_toolkit.formatted_text import ANSI, to_plain_text
from prompt_toolkit.input import Input, create_input
from prompt_toolkit.key_binding import KeyPress
from prompt_toolkit.keys import Keys
from prompt_toolkit.output import Output, create_output
from prompt_toolkit.utils import get_cwidth

from .editor import EditorOutcome, Key, KeyEvent, LineEditor, OutcomeKind

# Seconds to wait before treating a lone ESC as a key of its own
ESCAPE_TIMEOUT = 0.05

MAX_MENU_ITEMS = 10


class TerminalError(RuntimeError):
    """Raw terminal mode could not be acquired or restored."""


_KEY_MAP: dict[Keys, Key] = {
    Keys.Tab: Key.TAB,
    Keys.BackTab: Key.BACKTAB,
    Keys.ControlM: Key.ENTER,
    Keys.ControlJ: Key.ENTER,
    Keys.Backspace: Key.BACKSPACE,
    Keys.Delete: Key.DELETE,
    Keys.Left: Key.LEFT,
    Keys.Right: Key.RIGHT,
    Keys.Up: Key.UP,
    Keys.Down: Key.DOWN,
    Keys.Home: Key.HOME,
    Keys.End: Key.END,
    Keys.ControlA: Key.HOME,
    Keys.ControlE: Key.END,
    Keys.ControlB: Key.LEFT,
    Keys.ControlF: Key.RIGHT,
    Keys.ControlP: Key.UP,
    Keys.ControlN: Key.DOWN,
    Keys.ControlC: Key.CTRL_C,
    Keys.ControlD: Key.CTRL_D,
    Keys.ControlU: Key.CTRL_U,
    Keys.ControlK: Key.CTRL_K,
    Keys.ControlW: Key.CTRL_W,
    Keys.ControlL: Key.CTRL_L,
    Keys.BracketedPaste: Key.PASTE,
}


def translate_key(press: KeyPress) -> KeyEvent:
    """Map a prompt_toolkit KeyPress onto the editor's KeyEvent."""
    key = press.key
    if isinstance(key, Keys):
        mapped = _KEY_MAP.get(key)
        if mapped is None:
            return KeyEvent(Key.IGNORED)
        if mapped == Key.PASTE:
            return KeyEvent(Key.PASTE, press.data)
        return KeyEvent(mapped)

    if len(key) == 1 and key.isprintable():
        return KeyEvent.char(key)
    return KeyEvent(Key.IGNORED)


@contextmanager
def _signals_raise_exit() -> Iterator[None]:
    """Turn SIGTERM/SIGHUP into SystemExit so context managers unwind."""

    def _raise(signum, frame) -> None:
        raise SystemExit(128 + signum)

    previous = {}
    for sig in (signal.SIGTERM, signal.SIGHUP):
        try:
            previous[sig] = signal.signal(sig, _raise)
        except (ValueError, OSError):
            # Not the main thread; nothing to install
            continue
    try:
        yield
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)


class TerminalUI:
    """Reads lines with LineEditor on a raw-mode terminal."""

    def __init__(
        self,
        editor: LineEditor,
        input: Input | None = None,
        output: Output | None = None,
    ) -> None:
        self.editor = editor
        self.input = input if input is not None else create_input()
        self.output = output if output is not None else create_output()
        # Rows drawn below the input line by the last render
        self._rows_below = 0
        self._last_text = ""

    # ---------- public API ----------

    def read_line(self, prompt: str) -> EditorOutcome:
        try:
            raw = self.input.raw_mode()
            raw.__enter__()
        except (termios.error, OSError) as e:
            raise TerminalError(f"cannot enter raw terminal mode: {e}") from e

        try:
            with _signals_raise_exit():
                return self._edit(prompt)
        finally:
            try:
                raw.__exit__(None, None, None)
            except (termios.error, OSError) as e:
                raise TerminalError(
                    f"cannot restore terminal mode: {e}"
                ) from e

    def write(self, text: str) -> None:
        """Write EXACTLY what we receive (no extra newline)."""
        if not text:
            return
        self.output.write_raw(text)
        self.output.flush()

    def clear(self) -> None:
        self.output.erase_screen()
        self.output.cursor_goto(0, 0)
        self.output.flush()

    # ---------- editing loop ----------

    def _edit(self, prompt: str) -> EditorOutcome:
        self._rows_below = 0
        self.render(prompt)
        while True:
            for press in self._next_keys():
                # Line as it stood before this key, for the ^C echo
                self._last_text = self.editor.buffer.text
                outcome = self.editor.process_key(translate_key(press))

                if outcome.kind == OutcomeKind.CONTINUE:
                    if outcome.no_match:
                        self.output.bell()
                    continue

                if outcome.kind == OutcomeKind.CLEAR_SCREEN:
                    self.clear()
                    self._rows_below = 0
                    continue

                self._finish(prompt, outcome)
                return outcome

            if self.input.closed:
                self.editor.reset()
                self._finish(prompt, EditorOutcome(OutcomeKind.END_OF_INPUT))
                return EditorOutcome(OutcomeKind.END_OF_INPUT)

            self.render(prompt)

    def _next_keys(self) -> list[KeyPress]:
        """Block until input arrives; flush a pending lone ESC on timeout."""
        fd = self.input.fileno()
        ready, _, _ = select.select([fd], [], [], ESCAPE_TIMEOUT)
        if ready:
            return self.input.read_keys()
        flushed = self.input.flush_keys()
        if flushed:
            return flushed
        select.select([fd], [], [])
        return self.input.read_keys()

    def _finish(self, prompt: str, outcome: EditorOutcome) -> None:
        """Final redraw of the line, then move to a fresh row."""
        line = outcome.line
        if outcome.kind == OutcomeKind.INTERRUPTED:
            line = self._last_text + "^C"
        self._draw(prompt, line, get_cwidth(line), menu_lines=[])
        self.output.write_raw("\r\n")
        self.output.flush()

    # ---------- rendering ----------

    def _menu_lines(self) -> list[str]:
        menu = self.editor.cycler.menu(MAX_MENU_ITEMS)
        if menu is None or menu.total <= 1:
            return []
        lines = [f"Completions ({menu.selected + 1}/{menu.total}):"]
        for i, item in enumerate(menu.items, start=menu.offset):
            marker = ">" if i == menu.selected else " "
            lines.append(f"  {marker}{item}")
        if menu.total > MAX_MENU_ITEMS:
            lines.append(f"  ... ({menu.total - MAX_MENU_ITEMS} more)")
        return lines

    def render(self, prompt: str) -> None:
        text, column = self.editor.render_state()
        self._last_text = text
        self._draw(prompt, text, column, self._menu_lines())

    def _draw(
        self, prompt: str, text: str, column: int, menu_lines: list[str]
    ) -> None:
        out = self.output
        if self._rows_below:
            out.cursor_up(self._rows_below)
        out.write_raw("\r")
        out.erase_down()
        out.write_raw(prompt)
        out.write(text)

        for line in menu_lines:
            out.write_raw("\r\n")
            out.write(line)
        self._rows_below = len(menu_lines)

        if menu_lines:
            out.cursor_up(len(menu_lines))
            out.write_raw("\r")
            out.cursor_forward(self._prompt_width(prompt) + column)
        else:
            back = get_cwidth(text) - column
            if back > 0:
                out.cursor_backward(back)
        out.flush()

    @staticmethod
    def _prompt_width(prompt: str) -> int:
        return get_cwidth(to_plain_text(ANSI(prompt)))
