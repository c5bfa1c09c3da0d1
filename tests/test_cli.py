"""
Tests for the diffmd command line.
"""

import json
import sys

import pytest
import structlog

from diffmd import cli
from diffmd.document import annotate_file

DOC = (
    "intro\n"
    "%%% req-start id:1 %%%\n"
    "hello, I am DIFF-MD.\n"
    "%%% req-end %%%\n"
    "%%% rev-start id:1 %%%\n"
    "hello, I am DIFF-MC.\n"
    "%%% rev-end %%%\n"
)


def _run(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["diffmd", *argv])
    cli.main()


class TestApply:
    def test_overwrites_input(self, tmp_path, monkeypatch, capsys):
        path = tmp_path / "doc.md"
        path.write_text(DOC, encoding="utf-8")

        _run(monkeypatch, "apply", str(path))

        assert path.read_text(encoding="utf-8") == "intro\nhello, I am ~~DIFF-MD~~`DIFF-MC`.\n"
        assert "1 pairs annotated" in capsys.readouterr().err

    def test_output_option(self, tmp_path, monkeypatch):
        path = tmp_path / "doc.md"
        path.write_text(DOC, encoding="utf-8")
        out = tmp_path / "out.md"

        _run(monkeypatch, "apply", str(path), "-o", str(out))

        assert path.read_text(encoding="utf-8") == DOC
        assert out.read_text(encoding="utf-8") == "intro\nhello, I am ~~DIFF-MD~~`DIFF-MC`.\n"

    def test_missing_file(self, tmp_path, monkeypatch, capsys):
        with pytest.raises(SystemExit) as exc_info:
            _run(monkeypatch, "apply", str(tmp_path / "nope.md"))
        assert exc_info.value.code == 1
        assert "File not found" in capsys.readouterr().err

    def test_parse_error_exits(self, tmp_path, monkeypatch, capsys):
        path = tmp_path / "doc.md"
        path.write_text("%%% what %%%\n", encoding="utf-8")

        with pytest.raises(SystemExit) as exc_info:
            _run(monkeypatch, "apply", str(path))
        assert exc_info.value.code == 1
        assert "Unexpected syntax" in capsys.readouterr().err


class TestDiff:
    def _write(self, tmp_path, original, revised):
        a = tmp_path / "a.txt"
        b = tmp_path / "b.txt"
        a.write_text(original, encoding="utf-8")
        b.write_text(revised, encoding="utf-8")
        return a, b

    def test_prints_markup(self, tmp_path, monkeypatch, capsys):
        a, b = self._write(tmp_path, "keep this word\n", "keep that word\n")
        _run(monkeypatch, "diff", str(a), str(b))
        assert capsys.readouterr().out == "keep ~~this~~`that` word\n"

    def test_missing_file(self, tmp_path, monkeypatch, capsys):
        a, _ = self._write(tmp_path, "x\n", "y\n")
        with pytest.raises(SystemExit) as exc_info:
            _run(monkeypatch, "diff", str(a), str(tmp_path / "nope.txt"))
        assert exc_info.value.code == 1
        assert "File not found" in capsys.readouterr().err

    def test_close_runs(self, tmp_path, monkeypatch, capsys):
        a, b = self._write(tmp_path, "keep this\n", "keep\n")
        _run(monkeypatch, "diff", str(a), str(b), "--close-runs")
        assert capsys.readouterr().out == "keep ~~this~~\n"

    def test_json(self, tmp_path, monkeypatch, capsys):
        a, b = self._write(tmp_path, "a b\n", "c d\n")
        _run(monkeypatch, "diff", str(a), str(b), "--json")

        data = json.loads(capsys.readouterr().out)
        assert data["source"] == ["a", "b"]
        assert data["target"] == ["c", "d"]
        assert data["cost"] == 2
        assert data["raw"] == [{"cmd": "Replace", "word": "c"}, {"cmd": "Replace", "word": "d"}]
        assert data["normalized"] == [{"cmd": "Delete", "word": None}, {"cmd": "Replace", "word": "c d"}]


class TestLoggingConfig:
    def test_cli_binds_logging_to_current_stderr(self, tmp_path, monkeypatch, capsys):
        path = tmp_path / "doc.md"
        path.write_text(DOC, encoding="utf-8")

        _run(monkeypatch, "apply", str(path))

        assert structlog.is_configured()
        assert "backup:" in capsys.readouterr().err

    def test_logging_after_a_cli_run_still_works(self, tmp_path):
        # Runs after the CLI tests above; their captured stderr is closed by now.
        assert not structlog.is_configured()

        path = tmp_path / "doc.md"
        path.write_text(DOC, encoding="utf-8")

        assert annotate_file(path) == 1
        assert path.read_text(encoding="utf-8") == "intro\nhello, I am ~~DIFF-MD~~`DIFF-MC`.\n"
