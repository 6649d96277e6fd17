import importlib
from pathlib import Path

import pytest
from typer.testing import CliRunner

cli_app_module = importlib.import_module("forksh.cli.app")


def test_run_command_exit_code_is_status(tmp_path: Path) -> None:
    runner = CliRunner()
    target = tmp_path / "out.txt"
    result = runner.invoke(cli_app_module.app, ["run", "-c", f"echo hi > {target}"])
    assert result.exit_code == 0
    assert target.read_text() == "hi\n"

    result = runner.invoke(cli_app_module.app, ["run", "-c", "sh -c 'exit 4'"])
    assert result.exit_code == 4


def test_run_parse_error_maps_sentinel_to_exit_code() -> None:
    runner = CliRunner()
    result = runner.invoke(cli_app_module.app, ["run", "-c", "echo 'oops"])
    assert result.exit_code == 255


def test_script_stops_at_exit(tmp_path: Path) -> None:
    first = tmp_path / "first.txt"
    never = tmp_path / "never.txt"
    script = tmp_path / "script.fsh"
    script.write_text(f"echo a > {first}\n\n# comment\nexit 5\necho b > {never}\n", encoding="utf-8")

    runner = CliRunner()
    result = runner.invoke(cli_app_module.app, ["script", str(script)])
    assert result.exit_code == 5
    assert first.read_text() == "a\n"
    assert not never.exists()


def test_script_missing_file(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli_app_module.app, ["script", str(tmp_path / "missing.fsh")])
    assert result.exit_code == 1


def test_repl_reads_piped_stdin(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli_app_module.app, ["repl"], input="status\nsh -c 'exit 3'\nstatus\n")
    assert result.exit_code == 3
    assert "0\n3\n" in result.output


def test_default_command_is_repl() -> None:
    runner = CliRunner()
    result = runner.invoke(cli_app_module.app, [], input="pwd\nexit 6\n")
    assert result.exit_code == 6


def test_invalid_configuration_exits_with_usage_code(monkeypatch) -> None:
    monkeypatch.setenv("FORKSH_EXEC_FAILURE_STATUS", "0")
    runner = CliRunner()
    result = runner.invoke(cli_app_module.app, ["run", "-c", "true"])
    assert result.exit_code == 2


def test_spawn_failure_terminates(monkeypatch) -> None:
    from forksh.process import spawn as spawn_module

    def _failing_fork() -> int:
        raise OSError(11, "Resource temporarily unavailable")

    monkeypatch.setattr(spawn_module.os, "fork", _failing_fork)
    runner = CliRunner()
    result = runner.invoke(cli_app_module.app, ["run", "-c", "true"])
    assert result.exit_code == 1


class _ScriptedRenderer:
    """Renderer stand-in that replays input lines and records output."""

    def __init__(self, lines: list[str]) -> None:
        self._lines = list(lines)
        self.infos: list[str] = []
        self.errors: list[str] = []

    def info(self, message: str) -> None:
        self.infos.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)

    def get_user_input(self, prompt: str) -> str:
        if not self._lines:
            raise EOFError
        return self._lines.pop(0)


def test_interactive_loop_says_goodbye_on_eof(shell) -> None:
    renderer = _ScriptedRenderer(["sh -c 'exit 7'"])
    assert cli_app_module._run_interactive(shell, renderer) == 7
    assert renderer.infos == ["Goodbye!"]
    assert renderer.errors == []


def test_interactive_loop_renders_spawn_failure(monkeypatch, shell) -> None:
    from forksh.errors import SpawnError
    from forksh.process import spawn as spawn_module

    def _failing_fork() -> int:
        raise OSError(11, "Resource temporarily unavailable")

    monkeypatch.setattr(spawn_module.os, "fork", _failing_fork)
    renderer = _ScriptedRenderer(["true", "pwd"])
    with pytest.raises(SpawnError):
        cli_app_module._run_interactive(shell, renderer)
    assert len(renderer.errors) == 1
    assert renderer.errors[0].startswith("shell terminated:")
    assert renderer.infos == []
