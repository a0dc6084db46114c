"""Tests for the command-line front end."""

import json

import pytest

from deskcalc_pkg import cli
from deskcalc_pkg.logging_config import setup_logging


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    setup_logging()


class TestEval:
    def test_human_output(self, capsys):
        assert cli.main_entry(["-e", "12 + 3 ="]) == 0
        out = capsys.readouterr().out
        assert "12 + 3 =" in out
        assert "15" in out
        assert "[Result]" in out

    def test_json_output(self, capsys):
        assert cli.main_entry(["-e", "4 √ √", "--format", "json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["main_display"] == "1.4142135624"
        assert data["history"] == ["sqrt(sqrt(4)) = 1.4142135624"]

    def test_error_exit_code(self, capsys):
        assert cli.main_entry(["-e", "5 ÷ 0 ="]) == 1
        assert "Cannot divide by zero" in capsys.readouterr().out

    def test_unknown_key(self, capsys):
        assert cli.main_entry(["-e", "5 sin"]) == 2
        assert "Unknown key" in capsys.readouterr().err


class TestMisc:
    def test_version(self, capsys):
        assert cli.main_entry(["--version"]) == 0
        assert capsys.readouterr().out.startswith("deskcalc ")

    def test_health_check(self, capsys):
        assert cli.main_entry(["--health-check"]) == 0
        assert "FAIL" not in capsys.readouterr().out

    def test_log_file(self, tmp_path, capsys):
        log_file = tmp_path / "calc.log"
        cli.main_entry(["-e", "1 + 1 =", "--log-level", "INFO", "--log-file", str(log_file)])
        setup_logging()
        assert "Evaluated 1 + 1 = 2" in log_file.read_text(encoding="utf-8")


class TestRepl:
    def test_session_persists_between_lines(self, monkeypatch, capsys):
        lines = iter(["5 +", "3 =", "show", "Memory", "show", "bogus", "help", "quit"])
        monkeypatch.setattr("builtins.input", lambda prompt="": next(lines))
        cli.repl_loop()
        out = capsys.readouterr().out
        assert "5 + 3 =" in out
        assert "History:" in out
        assert "5 + 3 = 8" in out
        assert "Memory:" in out
        assert "(empty)" in out
        assert "Unknown key(s): bogus" in out
        assert "Goodbye." in out

    def test_eof_exits(self, monkeypatch, capsys):
        def raise_eof(prompt=""):
            raise EOFError

        monkeypatch.setattr("builtins.input", raise_eof)
        cli.repl_loop()
        assert "Goodbye." in capsys.readouterr().out
