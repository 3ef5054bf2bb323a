# WSH — Interactive Shell with Context-Aware Completion
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Tab completion for WSH.

Two layers:
- CompletionIndex: stateless candidate lookup for command names
  (builtins + executables on the search path + extra names) or
  filesystem paths. Takes cwd/search paths explicitly.
- CompletionCycler: the Idle/Active state machine behind repeated Tab
  presses. While a cycle is active exactly one candidate sits in the
  buffer; each Tab swaps it for the next one in the tracked span, so
  text never accumulates.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum, auto

from .buffer import LineBuffer
from .tokenizer import WHITESPACE, active_token, escape_word, tokenize
from .utils import expand_user, home_dir, is_executable


class CompletionKind(Enum):
    COMMAND = auto()
    PATH = auto()


class ForcedKind(Enum):
    """What the arguments of a given command complete as."""
    COMMAND = "command"
    PATH = "path"
    NONE = "none"


class CompletionState(Enum):
    IDLE = auto()
    ACTIVE = auto()


class CompletionResult(Enum):
    NO_MATCH = auto()
    COMPLETED = auto()
    CYCLING = auto()


# ----------------------------
# Candidate lookup
# ----------------------------


class CompletionIndex:
    """On-demand candidate scanner.

    Args:
        builtins: Built-in command names
        search_paths: Directories scanned for executables
        extra_commands: Callable returning more command names
            (aliases, commands seen in history)
        home: Directory ``~`` expands to (defaults to $HOME)
    """

    def __init__(
        self,
        builtins: Iterable[str] = (),
        search_paths: Sequence[str] = (),
        extra_commands: Callable[[], Iterable[str]] | None = None,
        home: str | None = None,
    ) -> None:
        self.builtins = list(builtins)
        self.search_paths = list(search_paths)
        self.extra_commands = extra_commands
        self.home = home

    def candidates_for(
        self, kind: CompletionKind, prefix: str, cwd: str
    ) -> list[str]:
        if kind == CompletionKind.COMMAND:
            if "/" in prefix:
                # ./script or /usr/bin/x in command position
                return self._path_candidates(prefix, cwd, executables=True)
            return self._command_candidates(prefix)
        return self._path_candidates(prefix, cwd)

    def _executables(self, prefix: str) -> set[str]:
        found: set[str] = set()
        for directory in self.search_paths:
            try:
                with os.scandir(directory) as it:
                    for entry in it:
                        if not entry.name.startswith(prefix):
                            continue
                        if is_executable(entry.path):
                            found.add(entry.name)
            except OSError:
                continue
        return found

    def _command_candidates(self, prefix: str) -> list[str]:
        names: set[str] = {b for b in self.builtins if b.startswith(prefix)}
        if self.extra_commands is not None:
            names.update(
                n for n in self.extra_commands() if n and n.startswith(prefix)
            )
        names.update(self._executables(prefix))
        return sorted(names)

    def _path_candidates(
        self, prefix: str, cwd: str, executables: bool = False
    ) -> list[str]:
        if prefix == "~":
            return ["~/"]

        slash = prefix.rfind("/")
        dir_part = prefix[:slash + 1]
        remainder = prefix[slash + 1:]

        if dir_part:
            base = expand_user(dir_part, self.home or home_dir())
            if not os.path.isabs(base):
                base = os.path.join(cwd, base)
        else:
            base = cwd

        show_hidden = remainder.startswith(".")
        out: list[str] = []
        try:
            with os.scandir(base) as it:
                entries = list(it)
        except OSError:
            return []

        for entry in entries:
            name = entry.name
            if not name.startswith(remainder):
                continue
            if name.startswith(".") and not show_hidden:
                continue
            try:
                is_dir = entry.is_dir()
            except OSError:
                is_dir = False
            if executables and not is_dir and not is_executable(entry.path):
                continue
            out.append(dir_part + name + ("/" if is_dir else ""))

        out.sort()
        return out


# ----------------------------
# Tab cycling
# ----------------------------


@dataclass
class CompletionAttempt:
    prefix: str
    kind: CompletionKind
    candidates: list[str]
    index: int
    # Span of the candidate currently in the buffer
    start: int
    end: int
    quote_char: str = ""

    @property
    def current(self) -> str:
        return self.candidates[self.index]


@dataclass(frozen=True)
class CompletionMenu:
    """Visible window of candidates for display."""
    items: list[str]
    offset: int
    selected: int
    total: int


@dataclass
class CompletionCycler:
    index: CompletionIndex
    forced_kinds: Mapping[str, ForcedKind] = field(default_factory=dict)
    cwd: Callable[[], str] = os.getcwd

    attempt: CompletionAttempt | None = None

    @property
    def state(self) -> CompletionState:
        if self.attempt is None:
            return CompletionState.IDLE
        return CompletionState.ACTIVE

    def reset(self) -> None:
        self.attempt = None

    def _kind_for(self, text: str, is_first: bool) -> CompletionKind | None:
        if is_first:
            return CompletionKind.COMMAND
        tokens = tokenize(text)
        command = tokens[0].value if tokens else ""
        forced = self.forced_kinds.get(command)
        if forced == ForcedKind.NONE:
            return None
        if forced == ForcedKind.COMMAND:
            return CompletionKind.COMMAND
        return CompletionKind.PATH

    def complete(
        self, buf: LineBuffer, reverse: bool = False
    ) -> CompletionResult:
        """Handle one Tab (or Shift-Tab when ``reverse``) press."""
        if self.attempt is not None:
            return self._advance(buf, self.attempt, -1 if reverse else 1)
        return self._start(buf, reverse)

    def _start(self, buf: LineBuffer, reverse: bool) -> CompletionResult:
        tok = active_token(buf.text, buf.cursor)
        kind = self._kind_for(buf.text, tok.is_first)
        if kind is None:
            return CompletionResult.NO_MATCH

        candidates = self.index.candidates_for(kind, tok.text, self.cwd())
        if not candidates:
            return CompletionResult.NO_MATCH

        if len(candidates) == 1:
            self._insert_final(buf, tok.start, tok.end, candidates[0],
                               tok.quote_char)
            return CompletionResult.COMPLETED

        index = len(candidates) - 1 if reverse else 0
        end = buf.replace(
            tok.start, tok.end,
            self._render(candidates[index], tok.quote_char),
        )
        self.attempt = CompletionAttempt(
            prefix=tok.text,
            kind=kind,
            candidates=candidates,
            index=index,
            start=tok.start,
            end=end,
            quote_char=tok.quote_char,
        )
        return CompletionResult.CYCLING

    def _advance(
        self, buf: LineBuffer, a: CompletionAttempt, step: int
    ) -> CompletionResult:
        a.index = (a.index + step) % len(a.candidates)
        a.end = buf.replace(a.start, a.end, self._render(a.current,
                                                         a.quote_char))
        return CompletionResult.CYCLING

    @staticmethod
    def _render(candidate: str, quote_char: str) -> str:
        return quote_char + escape_word(candidate, quote_char)

    def _insert_final(
        self, buf: LineBuffer, start: int, end: int,
        candidate: str, quote_char: str
    ) -> None:
        text = self._render(candidate, quote_char)
        is_dir = candidate.endswith("/")
        if not is_dir:
            text += quote_char
        new_end = buf.replace(start, end, text)
        if is_dir:
            return
        following = buf.text[new_end:new_end + 1]
        if following and following in WHITESPACE:
            buf.cursor = new_end + 1
        else:
            buf.insert(" ")

    def menu(self, max_display: int = 10) -> CompletionMenu | None:
        """Window of candidates around the selection, or None if idle."""
        a = self.attempt
        if a is None:
            return None

        total = len(a.candidates)
        current = a.index
        half = max_display // 2
        if total <= max_display or current < half:
            offset = 0
        elif current > total - half:
            offset = total - max_display
        else:
            offset = current - half

        return CompletionMenu(
            items=a.candidates[offset:offset + max_display],
            offset=offset,
            selected=current,
            total=total,
        )
