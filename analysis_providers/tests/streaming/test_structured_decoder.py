"""Tolerant structured decoding of model output."""
from __future__ import annotations

import pytest

from analysis_providers.base.dto import ChapterAnalysis, SummaryResponse
from analysis_providers.base.errors import ErrorCode, ProviderError
from analysis_providers.base.structured import decode_structured, iter_object_spans


def test_plain_json_decodes_directly():
    assert decode_structured('  {"summary": "x"}  ') == {"summary": "x"}  # nosec B101 - assert is appropriate in unit tests


def test_prefix_and_suffix_text_is_stripped():
    text = 'Here you go:\n```json\n{"summary": "done"}\n```\nHope that helps.'
    result = decode_structured(text, SummaryResponse)
    assert result.summary == "done"  # nosec B101 - assert is appropriate in unit tests


def test_longest_decodable_object_wins():
    text = 'note {"a": 1} and the payload {"summary": "long one", "extra": [1, 2, 3]} end'
    assert decode_structured(text) == {"summary": "long one", "extra": [1, 2, 3]}  # nosec B101 - assert is appropriate in unit tests


def test_braces_inside_strings_do_not_break_spans():
    text = 'x {"summary": "a } tricky { value"} y'
    assert decode_structured(text, SummaryResponse).summary == "a } tricky { value"  # nosec B101 - assert is appropriate in unit tests


def test_span_failing_validation_is_skipped():
    text = '{"unrelated": "a much longer object that is not a summary"} {"summary": "ok"}'
    assert decode_structured(text, SummaryResponse).summary == "ok"  # nosec B101 - assert is appropriate in unit tests


def test_wire_aliases_decode_into_chapter_analysis():
    text = (
        '{"annotations": [{"type": "science", "title": "T", "content": "C", "sourceBlockId": 4}],'
        ' "quizQuestions": [], "imageSuggestions": [{"excerpt": "E", "sourceBlockId": 2}], "summary": "S"}'
    )
    result = decode_structured(text, ChapterAnalysis)
    assert result.annotations[0].source_block_id == 4  # nosec B101 - assert is appropriate in unit tests
    assert result.image_suggestions[0].excerpt == "E"  # nosec B101 - assert is appropriate in unit tests


@pytest.mark.parametrize("text", ["", "no json here", '{"summary": "unterminated"'])
def test_nothing_decodable_is_invalid_response(text: str):
    with pytest.raises(ProviderError) as ei:
        decode_structured(text, SummaryResponse)
    assert ei.value.code is ErrorCode.INVALID_RESPONSE  # nosec B101 - assert is appropriate in unit tests


def test_iter_object_spans_reports_top_level_only():
    text = 'a {"x": {"y": 1}} b {"z": 2}'
    spans = [text[s:e] for s, e in iter_object_spans(text)]
    assert spans == ['{"x": {"y": 1}}', '{"z": 2}']  # nosec B101 - assert is appropriate in unit tests
