"""Tests for the command-line session runner."""

import asyncio

import pytest

from conftest import FakeClient
from docinsight.error_handling import RequestFailed
from docinsight.main import format_document, parse_arguments, run_session
from tools.document_renderer import DocumentRenderer


class TestFormatting:

    def test_terms_bracketed_and_emphasis_upper_cased(self):
        document = DocumentRenderer().render_text(
            "Plants use [COMPLEX:photosynthesis] **daily**.\n\n- one\n- two"
        )
        assert format_document(document) == (
            "Plants use [photosynthesis] DAILY.\n\n  - one\n  - two"
        )


class TestArguments:

    def test_source_is_required(self):
        with pytest.raises(SystemExit):
            parse_arguments([])

    def test_file_and_text_are_exclusive(self):
        with pytest.raises(SystemExit):
            parse_arguments(["--file", "a.txt", "--text", "hello"])

    def test_repeatable_options(self):
        args = parse_arguments(["--text", "hi", "--ask", "a?", "--ask", "b?", "--define", "x"])
        assert args.ask == ["a?", "b?"]
        assert args.define == ["x"]
        assert args.log_dir is None


class TestRunSession:

    def test_summary_definition_and_answer_printed(self, make_orchestrator, capsys):
        client = FakeClient(
            "Plants use [COMPLEX:photosynthesis].",
            "Turning light into food.",
            "Sunlight.",
        )
        args = parse_arguments([
            "--text", "Long botany text",
            "--define", "photosynthesis",
            "--ask", "What do plants need?",
        ])

        code = asyncio.run(run_session(make_orchestrator(client), args))

        out = capsys.readouterr().out
        assert code == 0
        assert "Plants use [photosynthesis]." in out
        assert "Flagged terms: photosynthesis" in out
        assert "photosynthesis: Turning light into food." in out
        assert "You: What do plants need?" in out
        assert "Assistant: Sunlight." in out

    def test_blank_text_is_an_error(self, make_orchestrator, capsys):
        client = FakeClient()
        args = parse_arguments(["--text", "   "])

        code = asyncio.run(run_session(make_orchestrator(client), args))

        assert code == 1
        assert client.calls == []
        assert "Error:" in capsys.readouterr().err

    def test_missing_file(self, make_orchestrator, tmp_path):
        args = parse_arguments(["--file", str(tmp_path / "absent.txt")])
        assert asyncio.run(run_session(make_orchestrator(FakeClient()), args)) == 1

    def test_failed_definition_exits_with_error(self, make_orchestrator, capsys):
        client = FakeClient(
            "Plants use [COMPLEX:photosynthesis].",
            RequestFailed("", status_code=503),
        )
        args = parse_arguments(["--text", "Long botany text", "--define", "photosynthesis"])

        code = asyncio.run(run_session(make_orchestrator(client), args))

        assert code == 1
        assert "Error defining photosynthesis" in capsys.readouterr().err
