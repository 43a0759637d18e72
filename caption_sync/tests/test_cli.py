"""
Unit tests for the caption_sync command line (caption_sync.__main__).
"""

import json

import pytest

from caption_sync.__main__ import build_parser, build_sinks, main
from caption_sync.config.settings import TranscriptionSettings


def write_script(tmp_path, *events) -> str:
    path = tmp_path / "session.jsonl"
    path.write_text("\n".join(json.dumps(e) for e in events) + "\n", encoding="utf-8")
    return str(path)


def result(*pairs):
    return {
        "type": "result",
        "results": [{"transcript": text, "final": is_final} for text, is_final in pairs],
    }


@pytest.fixture(autouse=True)
def fast_restart(monkeypatch):
    monkeypatch.setenv("CAPTION_RESTART_DELAY_MS", "5")
    monkeypatch.setenv("CAPTION_LOG_LEVEL", "WARNING")


class TestParser:
    """Tests for argument parsing."""

    def test_replay_arguments(self):
        """Test replay options parse."""
        args = build_parser().parse_args(
            ["replay", "x.jsonl", "--language", "zh-CN", "--history-max", "20", "--html"]
        )
        assert args.script == "x.jsonl"
        assert args.language == "zh-CN"
        assert args.history_max == 20
        assert args.html is True

    def test_command_required(self):
        """Test a subcommand is required."""
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_html_and_json_exclusive(self):
        """Test output formats are mutually exclusive."""
        with pytest.raises(SystemExit):
            build_parser().parse_args(["replay", "x.jsonl", "--html", "--json"])


class TestReplay:
    """Tests for the replay command."""

    def test_replay_prints_entries_and_transcript(self, tmp_path, capsys):
        """Test committed entries and the final transcript are printed."""
        script = write_script(
            tmp_path,
            result(("hel", False)),
            result(("hello", False)),
            result(("hello there", True)),
            result(("general kenobi", True)),
        )

        assert main(["replay", script]) == 0

        out = capsys.readouterr().out
        assert "[s0] (other) hello there" in out
        assert "[s1] (other) general kenobi" in out
        assert out.strip().endswith("hello there general kenobi")

    def test_replay_across_restart(self, tmp_path, capsys):
        """Test the transcript continues after an unsolicited end."""
        script = write_script(
            tmp_path,
            result(("before the pause", True)),
            {"type": "end"},
            result(("after the pause", True)),
        )

        assert main(["replay", script, "--quiet"]) == 0
        assert capsys.readouterr().out.strip() == "before the pause after the pause"

    def test_replay_duplicates_suppressed(self, tmp_path, capsys):
        """Test repeated finals print once."""
        script = write_script(
            tmp_path,
            result(("testing one two", True)),
            {"type": "end"},
            result(("testing one two", True)),
        )

        main(["replay", script])

        assert capsys.readouterr().out.count("testing one two") == 2  # entry line + transcript

    def test_replay_html(self, tmp_path, capsys):
        """Test HTML output."""
        script = write_script(tmp_path, result(("a < b", True)))
        main(["replay", script, "--html", "--quiet"])
        assert 'data-id="s0"' in capsys.readouterr().out

    def test_replay_json(self, tmp_path, capsys):
        """Test archive JSON output records the source."""
        script = write_script(tmp_path, result(("archived", True)))
        main(["replay", script, "--json", "--quiet", "--source-url", "https://example.com/call"])

        out = capsys.readouterr().out
        records = json.loads(out[out.index("[") :])
        assert records[0]["text"] == "archived"
        assert records[0]["url"] == "https://example.com/call"

    def test_replay_permission_error_exit_code(self, tmp_path, capsys):
        """Test a fatal recognizer error exits non-zero and skips the rest."""
        script = write_script(
            tmp_path,
            result(("kept", True)),
            {"type": "error", "error": "not-allowed"},
            result(("never seen", True)),
        )

        assert main(["replay", script]) == 1

        captured = capsys.readouterr()
        assert "never seen" not in captured.out
        assert "Microphone permission denied" in captured.err

    def test_view_separator_follows_language(self):
        """Test character-tokenized languages render interim text unspaced."""
        args = build_parser().parse_args(["replay", "x.jsonl", "--quiet"])

        view, _, _ = build_sinks(args, TranscriptionSettings(language_tag="zh-CN"))
        view.interim_changed(["你", "好", "世", "界"])
        assert view.interim_text == "你好世界"

        view, _, _ = build_sinks(args, TranscriptionSettings())
        view.interim_changed(["hello", "there"])
        assert view.interim_text == "hello there"

    def test_missing_script(self, tmp_path, capsys):
        """Test a missing file exits with code 2."""
        assert main(["replay", str(tmp_path / "missing.jsonl")]) == 2
        assert "Error:" in capsys.readouterr().err

    def test_bad_script(self, tmp_path, capsys):
        """Test a malformed script exits with code 2."""
        path = tmp_path / "bad.jsonl"
        path.write_text('{"type": "nope"}\n', encoding="utf-8")
        assert main(["replay", str(path)]) == 2


class TestLanguages:
    """Tests for the languages command."""

    def test_lists_languages(self, capsys):
        """Test known tags are listed."""
        assert main(["languages"]) == 0
        out = capsys.readouterr().out
        assert "en-US" in out
        assert "Chinese (Simplified)" in out
