# WSH — Interactive Shell with Context-Aware Completion
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Protocol definitions for dependency injection.

These interfaces keep the shell loop independent of the real terminal
and of subprocess execution, so both can be faked in tests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from .editor import EditorOutcome  # pragma: no cover
    from .executor import TTYResult  # pragma: no cover


class Executor(Protocol):
    """Protocol for external command execution."""

    def run_tty(self, argv: list[str], cwd: str | None = None) -> TTYResult:
        """Run argv attached to the terminal and wait for it."""
        ...


class LineReader(Protocol):
    """Protocol for the interactive front end."""

    def read_line(self, prompt: str) -> EditorOutcome:
        """Edit one line and return how editing ended."""
        ...

    def write(self, text: str) -> None:
        """Write text exactly as given."""
        ...

    def clear(self) -> None:
        """Clear the screen."""
        ...
