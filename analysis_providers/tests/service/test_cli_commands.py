"""CLI parsing and command execution against a mocked transport."""
from __future__ import annotations

import json
import logging

import httpx
import pytest

from analysis_providers.base.streaming import orchestrator
from analysis_providers.config.defaults import PROVIDER_CLI_DEFAULT_CAPTURE_DIR
from analysis_providers.service.cli import main
from analysis_providers.service.cli.cli_parser import build_parser


def test_parser_defaults_and_record_flag():
    args = build_parser().parse_args(["text", "--prompt", "hi"])
    assert args.provider == "gemini" and args.record is None  # nosec B101 - assert is appropriate in unit tests
    args = build_parser().parse_args(["stream", "--prompt", "hi", "--record"])
    assert args.record == PROVIDER_CLI_DEFAULT_CAPTURE_DIR  # nosec B101 - assert is appropriate in unit tests
    args = build_parser().parse_args(["analyze", "--file", "c.txt", "--images", "low", "--record", "/tmp/caps"])
    assert args.images == "low" and args.record == "/tmp/caps" and args.density == "medium"  # nosec B101 - assert is appropriate in unit tests


def test_parser_rejects_unknown_reasoning():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["text", "--prompt", "hi", "--reasoning", "maximum"])


def test_missing_key_prints_friendly_message(capsys):
    assert main(["text", "--prompt", "hi", "--provider", "openai"]) == 1  # nosec B101 - assert is appropriate in unit tests
    assert "No API key configured for openai" in capsys.readouterr().err  # nosec B101 - assert is appropriate in unit tests


def test_unknown_provider_exits_with_error(capsys):
    assert main(["text", "--prompt", "hi", "--provider", "mistral"]) == 1  # nosec B101 - assert is appropriate in unit tests
    assert "Unknown provider" in capsys.readouterr().err  # nosec B101 - assert is appropriate in unit tests


def test_text_command_prints_response(monkeypatch, capsys, mock_client):
    body = {
        "output": [{"type": "message", "content": [{"type": "output_text", "text": "Hello there"}]}],
        "usage": {"input_tokens": 3, "output_tokens": 2},
    }
    client, _ = mock_client(httpx.Response(200, json=body))
    monkeypatch.setattr(orchestrator, "get_httpx_client", lambda purpose="llm": client)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-live")

    assert main(["text", "--prompt", "hi", "--provider", "openai", "--json"]) == 0  # nosec B101 - assert is appropriate in unit tests
    out = json.loads(capsys.readouterr().out)
    assert out["text"] == "Hello there"  # nosec B101 - assert is appropriate in unit tests
    assert out["usage"]["total"] == 5  # nosec B101 - assert is appropriate in unit tests


def test_analyze_command_streams_progress(monkeypatch, capsys, mock_client, sse_body, tmp_path):
    payload = {"annotations": [], "quizQuestions": [{"question": "q", "answer": "a", "sourceBlockId": 1}], "summary": "s"}
    text = json.dumps(payload)
    events = [
        {"type": "response.output_text.delta", "delta": text},
        {"type": "response.completed", "response": {"usage": {"input_tokens": 9, "output_tokens": 4}}},
    ]
    client, _ = mock_client(httpx.Response(200, content=sse_body(events)))
    monkeypatch.setattr(orchestrator, "get_httpx_client", lambda purpose="llm": client)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-live")
    chapter = tmp_path / "chapter.txt"
    chapter.write_text("[1] Something happens.", encoding="utf-8")
    captures = tmp_path / "captures"

    code = main(["analyze", "--file", str(chapter), "--provider", "openai", "--record", str(captures), "--json"])

    assert code == 0  # nosec B101 - assert is appropriate in unit tests
    captured = capsys.readouterr()
    assert json.loads(captured.out)["quizQuestions"][0]["question"] == "q"  # nosec B101 - assert is appropriate in unit tests
    assert "questions: 1" in captured.err and "total=13" in captured.err  # nosec B101 - assert is appropriate in unit tests
    assert list(captures.glob("chapter_analysis_stream_*.jsonl"))  # nosec B101 - assert is appropriate in unit tests


def test_log_file_flag_writes_json_lines_and_detaches(tmp_path, capsys):
    log_path = tmp_path / "logs" / "cli.log"
    assert main(["text", "--prompt", "hi", "--provider", "openai", "--log-file", str(log_path)]) == 1  # nosec B101 - assert is appropriate in unit tests
    capsys.readouterr()
    lines = [json.loads(line) for line in log_path.read_text(encoding="utf-8").splitlines() if line.strip()]
    errors = [line for line in lines if line.get("event") == "cli.error"]
    assert errors and errors[0]["error_code"] == "no_api_key"  # nosec B101 - assert is appropriate in unit tests
    base = logging.getLogger("analysis_providers")
    assert not [h for h in base.handlers if getattr(h, "baseFilename", None)]  # nosec B101 - assert is appropriate in unit tests
