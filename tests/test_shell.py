# tests/test_shell.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import pytest

from wsh.config import ShellConfig
from wsh.editor import EditorOutcome, OutcomeKind
from wsh.executor import TTYResult
from wsh.shell import Shell, write_crash_log


class FakeExecutor:
    def __init__(self, exit_code: int = 0, error: str | None = None):
        self.exit_code = exit_code
        self.error = error
        self.calls: list[tuple[list[str], str | None]] = []

    def run_tty(self, argv, cwd=None):
        self.calls.append((list(argv), cwd))
        return TTYResult(
            exit_code=self.exit_code,
            started_at="2025-01-01T00:00:00",
            duration_ms=0,
            error=self.error,
        )


class ExplodingExecutor:
    def run_tty(self, argv, cwd=None):
        raise RuntimeError("boom")


@dataclass
class FakeUI:
    """LineReader that replays editor outcomes."""

    outcomes: list[EditorOutcome]
    outputs: list[str] = field(default_factory=list)
    prompts: list[str] = field(default_factory=list)
    clears: int = 0

    def read_line(self, prompt: str) -> EditorOutcome:
        self.prompts.append(prompt)
        if not self.outcomes:
            return EditorOutcome(OutcomeKind.END_OF_INPUT)
        return self.outcomes.pop(0)

    def write(self, text: str) -> None:
        self.outputs.append(text)

    def clear(self) -> None:
        self.clears += 1

    @property
    def text(self) -> str:
        return "".join(self.outputs)


def submit(line: str, argv: list[str] | None = None) -> EditorOutcome:
    return EditorOutcome(
        OutcomeKind.SUBMIT, line=line, argv=argv if argv is not None else line.split()
    )


@pytest.fixture
def home(tmp_path: Path) -> Path:
    h = tmp_path / "home"
    (h / "projects").mkdir(parents=True)
    return h


def make_shell(home: Path, executor=None, **cfg) -> tuple[Shell, list[str]]:
    config = ShellConfig({"enable_colors": False, **cfg})
    shell = Shell(
        config, executor or FakeExecutor(), cwd=str(home), home=str(home)
    )
    out: list[str] = []
    shell.output_fn = out.append
    shell.error_fn = out.append
    return shell, out


# -----------------------
# Builtins
# -----------------------


def test_pwd_prints_tracked_cwd(home: Path):
    shell, out = make_shell(home)
    assert shell.dispatch(["pwd"]) == 0
    assert out == [f"{home}\n"]


def test_cd_relative_absolute_home_and_back(home: Path, tmp_path: Path):
    shell, _ = make_shell(home)

    assert shell.dispatch(["cd", "projects"]) == 0
    assert shell.cwd == str(home / "projects")

    assert shell.dispatch(["cd", str(tmp_path)]) == 0
    assert shell.cwd == str(tmp_path)

    assert shell.dispatch(["cd", "-"]) == 0
    assert shell.cwd == str(home / "projects")

    assert shell.dispatch(["cd"]) == 0
    assert shell.cwd == str(home)

    assert shell.dispatch(["cd", "~/projects"]) == 0
    assert shell.cwd == str(home / "projects")

    assert shell.dispatch(["cd", ".."]) == 0
    assert shell.cwd == str(home)


def test_cd_missing_directory_fails_and_keeps_cwd(home: Path):
    shell, out = make_shell(home)
    assert shell.dispatch(["cd", "nope"]) == 1
    assert shell.cwd == str(home)
    assert out == [f"cd: no such directory: {home / 'nope'}\n"]


def test_cd_dash_without_previous(home: Path):
    shell, out = make_shell(home)
    assert shell.dispatch(["cd", "-"]) == 1
    assert "cd: no previous directory" in out[0]


def test_history_builtin(home: Path):
    shell, out = make_shell(home)
    shell.dispatch(["history"])
    assert out == ["No history available\n"]

    out.clear()
    shell.execute_line("pwd")
    shell.execute_line("history")
    assert out[-2:] == ["   1: pwd\n", "   2: history\n"]


def test_alias_define_show_and_list(home: Path):
    shell, out = make_shell(home)
    assert shell.dispatch(["alias"]) == 0
    assert out == ["No aliases defined\n"]

    out.clear()
    assert shell.dispatch(["alias", "ll", "ls", "-la"]) == 0
    assert out == ["Alias 'll' -> 'ls -la' added\n"]
    assert shell.config.aliases["ll"] == "ls -la"

    assert shell.dispatch(["alias", "gs=git", "status"]) == 0
    assert shell.config.aliases["gs"] == "git status"

    out.clear()
    shell.dispatch(["alias", "ll"])
    assert out == ["ll -> ls -la\n"]

    out.clear()
    shell.dispatch(["alias"])
    table = out[0]
    assert table.splitlines()[0].split() == ["ALIAS", "COMMAND"]
    assert "gs     git status" in table
    assert "ll     ls -la" in table


def test_alias_unknown_and_invalid_names(home: Path):
    shell, out = make_shell(home)
    assert shell.dispatch(["alias", "zz"]) == 1
    assert "alias: zz: not found" in out[-1]
    assert shell.dispatch(["alias", "cd", "ls"]) == 2
    assert shell.dispatch(["alias", "=ls"]) == 2
    assert shell.config.aliases == {}


def test_new_alias_applies_to_next_line(home: Path):
    executor = FakeExecutor()
    shell, _ = make_shell(home, executor)
    shell.execute_line("alias ll ls -la")
    shell.execute_line("ll /tmp")
    assert executor.calls == [(["ls", "-la", "/tmp"], str(home))]


def test_help_lists_builtins_and_keys(home: Path):
    shell, out = make_shell(home)
    assert shell.dispatch(["help"]) == 0
    text = out[0]
    for name in ["cd", "pwd", "history", "alias", "help", "exit"]:
        assert f"  {name}" in text
    assert "Tab" in text

    out.clear()
    assert shell.dispatch(["help", "cd"]) == 0
    assert out == ["cd [path] - Change directory\n"]
    assert shell.dispatch(["help", "nope"]) == 1


def test_exit_sets_code_and_stops(home: Path):
    shell, out = make_shell(home)
    shell.running = True
    assert shell.dispatch(["exit", "3"]) == 3
    assert shell.exit_code == 3
    assert shell.running is False


def test_exit_rejects_non_numeric(home: Path):
    shell, out = make_shell(home)
    shell.running = True
    assert shell.dispatch(["exit", "soon"]) == 2
    assert shell.running is True
    assert "numeric argument required" in out[0]


# -----------------------
# External commands
# -----------------------


def test_external_runs_in_tracked_cwd(home: Path):
    executor = FakeExecutor()
    shell, _ = make_shell(home, executor)
    shell.dispatch(["cd", "projects"])
    assert shell.dispatch(["ls", "-la"]) == 0
    assert executor.calls == [(["ls", "-la"], str(home / "projects"))]


def test_external_non_zero_status_is_reported(home: Path):
    shell, out = make_shell(home, FakeExecutor(exit_code=2))
    assert shell.dispatch(["false"]) == 2
    assert shell.last_status == 2
    assert out == ["Command 'false' exited with non-zero status\n"]


def test_external_error_message_is_reported(home: Path):
    shell, out = make_shell(
        home, FakeExecutor(127, "wsh: command not found: nosuch")
    )
    assert shell.dispatch(["nosuch"]) == 127
    assert out == ["wsh: command not found: nosuch\n"]


def test_execute_line_records_history_and_resolves_aliases(home: Path):
    executor = FakeExecutor()
    shell, _ = make_shell(home, executor, aliases={"ll": "ls -la"})
    shell.execute_line("ll 'my dir'")
    assert executor.calls == [(["ls", "-la", "my dir"], str(home))]
    assert shell.history.entries() == ["ll 'my dir'"]


def test_execute_blank_line_does_nothing(home: Path):
    executor = FakeExecutor()
    shell, _ = make_shell(home, executor)
    assert shell.execute_line("   ") == 0
    assert executor.calls == []
    assert shell.history.entries() == []


def test_unterminated_quote_is_rejected(home: Path):
    executor = FakeExecutor()
    shell, out = make_shell(home, executor)
    assert shell.execute_line('echo "oops') == 2
    assert executor.calls == []
    assert out == ["wsh: unterminated quote\n"]


def test_errors_are_colored_when_enabled(home: Path):
    shell, out = make_shell(home)
    shell.config = ShellConfig({"enable_colors": True})
    shell.dispatch(["cd", "-"])
    assert out[0].startswith("\033[31m")


# -----------------------
# Wiring
# -----------------------


def test_completion_kinds_builtins_with_config_override(home: Path):
    shell, _ = make_shell(
        home, completion={"forced_kinds": {"help": "none", "sudo": "command"}}
    )
    kinds = shell.completion_kinds()
    assert kinds["cd"].value == "path"
    assert kinds["pwd"].value == "none"
    assert kinds["help"].value == "none"
    assert kinds["sudo"].value == "command"


def test_built_editor_completes_builtins_aliases_and_history(home: Path):
    from wsh.completion import CompletionKind

    shell, _ = make_shell(home, aliases={"hx": "history"})
    shell.history.record("hgfoo --bar")
    editor = shell.build_editor(search_paths=[])
    names = editor.cycler.index.candidates_for(
        CompletionKind.COMMAND, "h", shell.cwd
    )
    assert names == ["help", "hgfoo", "history", "hx"]


def test_built_editor_follows_cd(home: Path):
    shell, _ = make_shell(home)
    editor = shell.build_editor(search_paths=[])
    shell.dispatch(["cd", "projects"])
    assert editor.cycler.cwd() == str(home / "projects")


def test_prompt_shows_home_as_tilde(home: Path):
    shell, _ = make_shell(home, prompt="➜ {cwd} $ ")
    shell.dispatch(["cd", "projects"])
    assert shell.prompt() == "➜ ~/projects $ "


# -----------------------
# Interactive loop
# -----------------------


def test_run_loop_dispatches_until_end_of_input(home: Path):
    executor = FakeExecutor()
    shell, _ = make_shell(home, executor)
    ui = FakeUI([
        EditorOutcome(OutcomeKind.EMPTY),
        submit("ls"),
        EditorOutcome(OutcomeKind.INTERRUPTED),
        submit("pwd"),
    ])

    assert shell.run(ui) == 0
    assert executor.calls == [(["ls"], str(home))]
    assert ui.text.startswith("Welcome to WSH!")
    assert f"{home}\n" in ui.outputs
    assert ui.outputs[-1] == "\nGoodbye!\n"
    assert len(ui.prompts) == 5


def test_run_loop_stops_on_exit(home: Path):
    shell, _ = make_shell(home)
    ui = FakeUI([submit("exit 4"), submit("pwd")])
    assert shell.run(ui) == 4
    assert ui.outcomes == [submit("pwd")]


def test_run_loop_survives_unhandled_exception(
    home: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
):
    data = tmp_path / "data"
    monkeypatch.setenv("WSH_DATA_HOME", str(data))
    shell, _ = make_shell(home, ExplodingExecutor())
    ui = FakeUI([submit("explode now"), submit("pwd")])

    assert shell.run(ui) == 0
    assert "[ERROR] Unhandled exception: RuntimeError: boom\n" in ui.outputs
    assert f"{home}\n" in ui.outputs

    log = (data / "wsh" / "logs" / "crash.log").read_text(encoding="utf-8")
    assert "raw=explode now" in log
    assert "error=RuntimeError: boom" in log
    assert f"cwd={home}" in log


def test_write_crash_log_appends(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("WSH_DATA_HOME", str(tmp_path))
    write_crash_log(ValueError("one"))
    write_crash_log(ValueError("two"), raw_command="x")
    log = (tmp_path / "wsh" / "logs" / "crash.log").read_text(encoding="utf-8")
    assert log.count("----") == 2
    assert "error=ValueError: one" in log
    assert "raw=x" in log
