# WSH — Interactive Shell with Context-Aware Completion
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
WSH CLI entry point.

Design:
- CLI owns process startup: flags, config loading, wiring.
- Shell is the session engine (config + executor injected).
- TerminalUI edits lines in raw mode when stdin is a terminal;
  otherwise lines are read plainly, one command per line.
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Callable
from pathlib import Path

from . import __version__
from . import config
from .executor import SubprocessExecutor
from .shell import Shell, write_crash_log
from .ui import TerminalError, TerminalUI


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wsh",
        description="An interactive shell with context-aware completion",
    )
    parser.add_argument(
        "-f", "--config", type=Path, default=None,
        help="YAML config file (default: $WSH_CONFIG or ~/.wsh.yaml)",
    )
    parser.add_argument(
        "-c", "--command", default=None,
        help="run COMMAND and exit",
    )
    parser.add_argument(
        "-i", "--interactive", action="store_true",
        help="start an interactive session (after -c, if given)",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    return parser


def run_repl(
    shell: Shell,
    input_fn: Callable[[str], str] = input,
    prompt: str = "",
) -> int:
    """Plain line loop for non-terminal input (pipes, here-docs)."""
    shell.running = True
    while shell.running:
        try:
            line = input_fn(prompt)
        except (KeyboardInterrupt, EOFError):
            break

        try:
            shell.execute_line(line)
        except Exception as e:
            write_crash_log(e, raw_command=line, cwd=shell.cwd)
            shell.error(
                f"[ERROR] Unhandled exception: {type(e).__name__}: {e}"
            )
            shell.last_status = 1

    if shell.running:
        shell.running = False
        return shell.last_status
    return shell.exit_code


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the WSH CLI."""
    args = build_parser().parse_args(argv)

    try:
        cfg = config.load_config(args.config)
    except (config.ConfigError, FileNotFoundError) as e:
        print(f"wsh: {e}", file=sys.stderr)
        return 1

    # Explicit wiring: config + executor injected into the shell
    shell = Shell(config=cfg, executor=SubprocessExecutor())

    if args.command is not None:
        shell.running = True
        status = shell.execute_line(args.command)
        if not shell.running:
            # exit builtin
            return shell.exit_code
        shell.running = False
        if not args.interactive:
            return status

    if not sys.stdin.isatty():
        return run_repl(shell)

    ui = TerminalUI(shell.build_editor())
    try:
        return shell.run(ui)
    except TerminalError as e:
        print(f"wsh: {e}", file=sys.stderr)
        return 1
