"""Tests for answer-block extraction."""
import pytest

from errors import ExtractionError
from extractor import extract_answer


def test_single_block_is_trimmed():
    raw = "noise ##start response## ANSWER ##end response## trailing"
    assert extract_answer(raw) == "ANSWER"


def test_last_block_wins():
    raw = (
        "##start response##\n[your explanation]\n##end response##\n"
        "Here you go:\n##start response##\nA mother is a female parent.\n##end response##"
    )
    assert extract_answer(raw) == "A mother is a female parent."


def test_multiline_answer_keeps_inner_newlines():
    raw = "##start response##\n  line one\nline two  \n##end response##"
    assert extract_answer(raw) == "line one\nline two"


def test_start_without_end_fails():
    with pytest.raises(ExtractionError) as exc_info:
        extract_answer("blah ##start response## half an answer")
    assert exc_info.value.raw == "blah ##start response## half an answer"


def test_no_markers_fails():
    with pytest.raises(ExtractionError):
        extract_answer("I think the answer is 42.")


def test_empty_input_fails():
    with pytest.raises(ExtractionError):
        extract_answer("")


def test_end_before_start_gives_empty_text():
    raw = "##end response## oops ##start response## dangling"
    assert extract_answer(raw) == ""


def test_empty_block():
    assert extract_answer("##start response##\n\n##end response##") == ""
