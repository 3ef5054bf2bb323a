# WSH — Interactive Shell with Context-Aware Completion
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
WSH shell session.

Core of the dispatcher:
- built-in commands (cd, pwd, exit, help, history, alias)
- external commands through the injected executor
- the interactive loop over a LineReader front end
- crash logging for unexpected failures

Important boundary:
- Shell does not load YAML; it consumes the injected ShellConfig.
- Shell tracks its own working directory and passes it explicitly to
  the executor and to completion (the process cwd is never changed).
"""

from __future__ import annotations

import os
import sys
import traceback
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from . import config as cfg_module
from .aliases import AliasResolver
from .completion import CompletionCycler, CompletionIndex, ForcedKind
from .config import ShellConfig, colorize, format_prompt
from .editor import LineEditor, OutcomeKind
from .history import HistoryStore
from .interfaces import Executor, LineReader
from .tokenizer import has_unterminated_quote, split_words
from .utils import expand_user, format_table, home_dir, search_path_dirs

EXIT_USAGE = 2


def write_crash_log(
    error: Exception,
    raw_command: str = "",
    resolved_command: str = "",
    cwd: str = "",
) -> None:
    """Write an entry to the crash log.

    Logs unhandled exceptions or critical failures.
    Only creates the log directory when actually needed.
    Appends to crash.log (never overwrites).
    """
    try:
        log_path = cfg_module.crash_log_path(cfg_module.get_data_root())
        log_path.parent.mkdir(parents=True, exist_ok=True)

        lines = [f"{datetime.now().isoformat()}"]
        if raw_command:
            lines.append(f"raw={raw_command}")
        if resolved_command:
            lines.append(f"resolved={resolved_command}")
        if cwd:
            lines.append(f"cwd={cwd}")

        lines.append(f"error={type(error).__name__}: {error}")
        lines.append("traceback:")
        lines.append(traceback.format_exc())
        lines.append("----")

        with log_path.open("a", encoding="utf-8") as f:
            f.write("\n".join(lines) + "\n")

    except Exception:
        # Already in an error state; the session must keep going
        pass


@dataclass(frozen=True)
class Builtin:
    handler: Callable[[list[str]], int]
    completion: ForcedKind
    usage: str
    summary: str


KEY_HELP = [
    ("Ctrl+C", "Abandon the current line"),
    ("Ctrl+D", "Exit (on an empty line)"),
    ("Up/Down", "Navigate history"),
    ("Left/Right", "Move cursor"),
    ("Home/End", "Jump to line start/end (also Ctrl+A/Ctrl+E)"),
    ("Ctrl+U/Ctrl+K", "Delete to line start/end"),
    ("Ctrl+W", "Delete previous word"),
    ("Ctrl+L", "Clear screen"),
    ("Tab", "Complete commands and paths; repeat to cycle"),
    ("Shift+Tab", "Cycle completions backwards"),
]


class Shell:
    """WSH session engine."""

    def __init__(
        self,
        config: ShellConfig,
        executor: Executor,
        cwd: str | None = None,
        home: str | None = None,
    ) -> None:
        self.config = config
        self.executor = executor
        self.cwd = cwd or os.getcwd()
        self.prev_cwd: str | None = None
        self.home = home or home_dir()

        self.history = HistoryStore(config.history_size)
        self.resolver = AliasResolver(config.aliases)

        self.running = False
        self.exit_code = 0
        self.last_status = 0

        # Wired to the UI by run(); plain stdio otherwise
        self.output_fn: Callable[[str], None] = _stdout_write
        self.error_fn: Callable[[str], None] = _stderr_write

        self.builtins: dict[str, Builtin] = {
            "cd": Builtin(self._cd, ForcedKind.PATH,
                          "cd [path]", "Change directory"),
            "pwd": Builtin(self._pwd, ForcedKind.NONE,
                           "pwd", "Print working directory"),
            "history": Builtin(self._history, ForcedKind.NONE,
                               "history", "Show command history"),
            "alias": Builtin(self._alias, ForcedKind.COMMAND,
                             "alias [name cmd]", "Create or show aliases"),
            "help": Builtin(self._help, ForcedKind.COMMAND,
                            "help", "Show this help message"),
            "exit": Builtin(self._exit, ForcedKind.NONE,
                            "exit [code]", "Exit the shell"),
        }

    # -----------------------
    # Wiring
    # -----------------------

    def completion_kinds(self) -> dict[str, ForcedKind]:
        """Forced completion kinds: builtins first, config overrides."""
        kinds = {name: b.completion for name, b in self.builtins.items()}
        kinds.update(self.config.forced_kinds)
        return kinds

    def _extra_command_names(self) -> list[str]:
        return self.resolver.names() + self.history.first_words()

    def build_editor(self, search_paths: list[str] | None = None) -> LineEditor:
        """Line editor wired to this session's history, aliases and cwd."""
        index = CompletionIndex(
            builtins=self.builtins,
            search_paths=(
                search_paths if search_paths is not None
                else search_path_dirs()
            ),
            extra_commands=self._extra_command_names,
            home=self.home,
        )
        cycler = CompletionCycler(
            index, self.completion_kinds(), cwd=lambda: self.cwd
        )
        return LineEditor(self.history, cycler, self.resolver)

    def prompt(self) -> str:
        text = format_prompt(self.config.prompt, self.cwd, self.home)
        return colorize(
            text, self.config.prompt_color, self.config.enable_colors
        )

    def write(self, text: str) -> None:
        self.output_fn(text)

    def error(self, message: str) -> None:
        self.error_fn(
            colorize(message, self.config.error_color,
                     self.config.enable_colors) + "\n"
        )

    # -----------------------
    # Dispatch
    # -----------------------

    def dispatch(self, argv: list[str]) -> int:
        """Run an alias-resolved argv; returns its status."""
        if not argv:
            return 0

        name, args = argv[0], argv[1:]
        builtin = self.builtins.get(name)
        if builtin is not None:
            status = builtin.handler(args)
        else:
            status = self._external(argv)

        self.last_status = status
        return status

    def run_submitted(self, line: str, argv: list[str]) -> int:
        """Dispatch a line finalized by the editor (already in history)."""
        if has_unterminated_quote(line):
            self.error("wsh: unterminated quote")
            self.last_status = EXIT_USAGE
            return EXIT_USAGE
        return self.dispatch(argv)

    def execute_line(self, line: str) -> int:
        """Tokenize, resolve and dispatch a raw line (e.g. from -c)."""
        if not line.strip():
            return 0
        self.history.record(line)
        argv = self.resolver.resolve(split_words(line))
        return self.run_submitted(line, argv)

    def _external(self, argv: list[str]) -> int:
        result = self.executor.run_tty(argv, cwd=self.cwd)
        if result.error:
            self.error(result.error)
        elif result.exit_code != 0:
            self.error(f"Command '{argv[0]}' exited with non-zero status")
        return result.exit_code

    # -----------------------
    # Interactive loop
    # -----------------------

    def run(self, ui: LineReader) -> int:
        """Interactive session until end-of-input or exit."""
        self.output_fn = ui.write
        self.error_fn = ui.write
        self.running = True

        ui.write(
            "Welcome to WSH!\n"
            "Type 'help' for available commands or 'exit' to quit.\n"
        )

        while self.running:
            outcome = ui.read_line(self.prompt())

            if outcome.kind == OutcomeKind.END_OF_INPUT:
                break
            if outcome.kind != OutcomeKind.SUBMIT:
                continue

            try:
                self.run_submitted(outcome.line, outcome.argv)
            except Exception as e:
                write_crash_log(
                    e,
                    raw_command=outcome.line,
                    resolved_command=" ".join(outcome.argv),
                    cwd=self.cwd,
                )
                ui.write(
                    f"[ERROR] Unhandled exception: {type(e).__name__}: {e}\n"
                )
                self.last_status = 1

        self.running = False
        ui.write("\nGoodbye!\n")
        return self.exit_code

    # -----------------------
    # Builtins
    # -----------------------

    def _cd(self, args: list[str]) -> int:
        if not args:
            target = self.home
        elif args[0] == "-":
            if self.prev_cwd is None:
                self.error("cd: no previous directory")
                return 1
            target = self.prev_cwd
        else:
            target = expand_user(args[0], self.home)

        if not os.path.isabs(target):
            target = os.path.join(self.cwd, target)
        target = os.path.normpath(target)

        if not os.path.isdir(target):
            self.error(f"cd: no such directory: {target}")
            return 1

        self.prev_cwd = self.cwd
        self.cwd = target
        return 0

    def _pwd(self, args: list[str]) -> int:
        self.write(self.cwd + "\n")
        return 0

    def _history(self, args: list[str]) -> int:
        entries = self.history.entries()
        if not entries:
            self.write("No history available\n")
            return 0
        for i, cmd in enumerate(entries, start=1):
            self.write(f"{i:4}: {cmd}\n")
        return 0

    def _alias(self, args: list[str]) -> int:
        if not args:
            rows = [[name, self.config.aliases[name]]
                    for name in self.resolver.names()]
            if not rows:
                self.write("No aliases defined\n")
                return 0
            self.write(format_table(["ALIAS", "COMMAND"], rows) + "\n")
            return 0

        if "=" in args[0]:
            name, _, first = args[0].partition("=")
            command = " ".join([first] + args[1:]).strip()
        elif len(args) >= 2:
            name, command = args[0], " ".join(args[1:])
        else:
            expanded = self.resolver.expand(args[0])
            if expanded is None:
                self.error(f"alias: {args[0]}: not found")
                return 1
            self.write(f"{args[0]} -> {expanded}\n")
            return 0

        if not name or name in self.builtins:
            self.error(f"alias: invalid alias name: {name!r}")
            return EXIT_USAGE

        self.config.aliases[name] = command
        self.write(f"Alias '{name}' -> '{command}' added\n")
        return 0

    def _help(self, args: list[str]) -> int:
        if args:
            builtin = self.builtins.get(args[0])
            if builtin is None:
                self.error(f"help: no help for '{args[0]}'")
                return 1
            self.write(f"{builtin.usage} - {builtin.summary}\n")
            return 0

        width = max(len(b.usage) for b in self.builtins.values())
        lines = ["WSH - Built-in Commands:"]
        for b in self.builtins.values():
            lines.append(f"  {b.usage.ljust(width)}  - {b.summary}")
        lines.append("")
        lines.append("Keyboard shortcuts:")
        key_width = max(len(k) for k, _ in KEY_HELP)
        for key, text in KEY_HELP:
            lines.append(f"  {key.ljust(key_width)}  - {text}")
        lines.append("")
        lines.append("Completion: built-ins, aliases, executables in PATH,")
        lines.append("commands from history, and file/directory paths.")
        self.write("\n".join(lines) + "\n")
        return 0

    def _exit(self, args: list[str]) -> int:
        code = 0
        if args:
            try:
                code = int(args[0])
            except ValueError:
                self.error(f"exit: numeric argument required: {args[0]}")
                return EXIT_USAGE
        self.exit_code = code
        self.running = False
        return code


def _stdout_write(text: str) -> None:
    sys.stdout.write(text)
    sys.stdout.flush()


def _stderr_write(text: str) -> None:
    sys.stderr.write(text)
    sys.stderr.flush()
