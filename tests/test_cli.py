# tests/test_cli.py
from __future__ import annotations

import io
import sys
from pathlib import Path

import pytest

import wsh.cli as cli
from wsh.config import ShellConfig
from wsh.executor import TTYResult
from wsh.shell import Shell


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("WSH_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.delenv("WSH_CONFIG", raising=False)
    return home


class FakeExecutor:
    def __init__(self):
        self.calls: list[list[str]] = []

    def run_tty(self, argv, cwd=None):
        self.calls.append(list(argv))
        return TTYResult(exit_code=0, started_at="", duration_ms=0)


def fake_input(lines: list[str]):
    def _read(prompt: str) -> str:
        if not lines:
            raise EOFError
        return lines.pop(0)
    return _read


def make_shell(tmp_path: Path) -> tuple[Shell, FakeExecutor, list[str]]:
    executor = FakeExecutor()
    shell = Shell(
        ShellConfig({"enable_colors": False}), executor, cwd=str(tmp_path)
    )
    out: list[str] = []
    shell.output_fn = out.append
    shell.error_fn = out.append
    return shell, executor, out


# -----------------------
# Argument parsing
# -----------------------


def test_parser_flags():
    args = cli.build_parser().parse_args(["-f", "x.yaml", "-c", "ls", "-i"])
    assert args.config == Path("x.yaml")
    assert args.command == "ls"
    assert args.interactive is True


def test_version_flag(capsys: pytest.CaptureFixture[str]):
    with pytest.raises(SystemExit) as exc:
        cli.main(["--version"])
    assert exc.value.code == 0
    assert "wsh 0.1.0" in capsys.readouterr().out


# -----------------------
# run_repl
# -----------------------


def test_run_repl_runs_each_line_until_eof(tmp_path: Path):
    shell, executor, out = make_shell(tmp_path)
    status = cli.run_repl(shell, fake_input(["ls -la", "", "pwd"]))
    assert status == 0
    assert executor.calls == [["ls", "-la"]]
    assert out == [f"{tmp_path}\n"]
    assert shell.running is False


def test_run_repl_returns_last_status_on_eof(tmp_path: Path):
    shell, _, _ = make_shell(tmp_path)
    assert cli.run_repl(shell, fake_input(["cd /does/not/exist"])) == 1


def test_run_repl_exit_builtin_stops_reading(tmp_path: Path):
    shell, executor, _ = make_shell(tmp_path)
    lines = ["exit 5", "ls"]
    assert cli.run_repl(shell, fake_input(lines)) == 5
    assert lines == ["ls"]
    assert executor.calls == []


def test_run_repl_logs_crash_and_continues(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
):
    shell, _, out = make_shell(tmp_path)

    def explode(argv):
        raise RuntimeError("kaboom")

    monkeypatch.setattr(shell, "_external", explode)
    status = cli.run_repl(shell, fake_input(["boom", "pwd"]))

    assert status == 0
    assert "[ERROR] Unhandled exception: RuntimeError: kaboom\n" in out
    log = tmp_path / "data" / "wsh" / "logs" / "crash.log"
    assert "raw=boom" in log.read_text(encoding="utf-8")


# -----------------------
# main
# -----------------------


def test_main_command_flag_runs_and_returns_status(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
):
    assert cli.main(["-c", "pwd"]) == 0
    assert capsys.readouterr().out.strip() != ""

    assert cli.main(["-c", "cd /does/not/exist"]) == 1
    assert "cd: no such directory" in capsys.readouterr().err


def test_main_command_flag_exit_code():
    assert cli.main(["-c", "exit 4"]) == 4


def test_main_bad_config_reports_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
):
    bad = tmp_path / "bad.yaml"
    bad.write_text("history_size: -3\n", encoding="utf-8")
    assert cli.main(["-f", str(bad), "-c", "pwd"]) == 1
    err = capsys.readouterr().err
    assert err.startswith("wsh: ")
    assert "history_size" in err


def test_main_uses_config_aliases(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
):
    cfg = tmp_path / "cfg.yaml"
    cfg.write_text("aliases:\n  where: pwd\n", encoding="utf-8")
    assert cli.main(["-f", str(cfg), "-c", "where"]) == 0
    assert capsys.readouterr().out.strip() != ""


def test_main_reads_piped_stdin(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
):
    monkeypatch.setattr(sys, "stdin", io.StringIO("alias hi pwd\nexit 3\npwd\n"))
    assert cli.main([]) == 3
    assert "Alias 'hi' -> 'pwd' added" in capsys.readouterr().out


def test_main_interactive_after_command(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
):
    monkeypatch.setattr(sys, "stdin", io.StringIO("exit 6\n"))
    assert cli.main(["-c", "alias p pwd", "-i"]) == 6
    assert "Alias 'p' -> 'pwd' added" in capsys.readouterr().out
