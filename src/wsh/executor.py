# WSH — Interactive Shell with Context-Aware Completion
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Subprocess-backed executor for WSH.

Commands run with the shell's terminal (inherited stdin/stdout/stderr)
so pagers and interactive programs work. No shell is involved: argv is
executed directly, which is why pipes and redirection are not
available.
"""

from __future__ import annotations

import os
import subprocess
import time
from dataclasses import dataclass
from datetime import datetime

EXIT_NOT_FOUND = 127
EXIT_NOT_EXECUTABLE = 126


@dataclass(frozen=True)
class TTYResult:
    """Result from TTY/passthrough execution (no output capture)."""

    exit_code: int
    started_at: str
    duration_ms: int
    error: str | None = None


class SubprocessExecutor:
    """Subprocess implementation of Executor protocol."""

    def __init__(self, env: dict[str, str] | None = None) -> None:
        """Initialize executor.

        Args:
            env: Extra environment variables for child processes
        """
        self.env = env or {}

    def _build_env(self) -> dict:
        env = os.environ.copy()
        env.update(self.env)
        return env

    def run_tty(self, argv: list[str], cwd: str | None = None) -> TTYResult:
        """Run a command with full terminal control (no output capture).

        Args:
            argv: program and arguments
            cwd: working directory for the command (default: current directory)

        Returns:
            TTYResult (exit_code, started_at, duration_ms, error)
        """
        started_at = datetime.now().isoformat()
        start_ts = time.time()

        def _result(code: int, error: str | None = None) -> TTYResult:
            return TTYResult(
                exit_code=code,
                started_at=started_at,
                duration_ms=int((time.time() - start_ts) * 1000),
                error=error,
            )

        if not argv:
            return _result(0)

        if cwd is not None and not os.path.isdir(cwd):
            return _result(
                EXIT_NOT_EXECUTABLE, f"wsh: working directory is gone: {cwd}"
            )

        try:
            proc = subprocess.Popen(
                argv,
                stdin=None,  # inherit from parent
                stdout=None,  # inherit from parent
                stderr=None,  # inherit from parent
                env=self._build_env(),
                cwd=cwd,
            )
        except FileNotFoundError:
            return _result(
                EXIT_NOT_FOUND, f"wsh: command not found: {argv[0]}"
            )
        except PermissionError:
            return _result(
                EXIT_NOT_EXECUTABLE, f"wsh: permission denied: {argv[0]}"
            )
        except OSError as e:
            return _result(
                EXIT_NOT_EXECUTABLE, f"wsh: cannot execute {argv[0]}: {e}"
            )

        while True:
            try:
                proc.wait()
                break
            except KeyboardInterrupt:
                # The child shares our process group and got SIGINT too;
                # keep waiting until it decides to exit.
                continue

        return _result(proc.returncode)
