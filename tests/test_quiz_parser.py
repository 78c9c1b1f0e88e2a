import json

import pytest

from errors import ValidationFailed
from services.quiz_parser import parse_quiz_response, strip_code_fence
from tests.conftest import make_questions, quiz_json


def test_fenced_json_is_parsed():
    questions = parse_quiz_response(quiz_json(3, fenced=True))
    assert len(questions) == 3
    assert questions[0]["correctAnswer"] == "A"
    assert questions[0]["options"][0] == "A) One"


def test_strip_code_fence_variants():
    assert strip_code_fence('```\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fence('```json{"a": 1}```') == '{"a": 1}'
    assert strip_code_fence('  {"a": 1} ') == '{"a": 1}'


def test_bare_list_is_accepted():
    assert len(parse_quiz_response(json.dumps(make_questions(2)))) == 2


def test_unlabeled_options_get_labels_and_answer_is_normalized():
    raw = json.dumps({"questions": [{
        "question": "Capital of France?",
        "options": ["Berlin", "b. Paris", "Rome", "Madrid"],
        "correctAnswer": "b) Paris",
        "explanation": "Paris is the capital.",
    }]})
    q = parse_quiz_response(raw)[0]
    assert q["options"] == ["A) Berlin", "B) Paris", "C) Rome", "D) Madrid"]
    assert q["correctAnswer"] == "B"


@pytest.mark.parametrize("mutate", [
    lambda q: q.update(options=["A) x", "B) y", "C) z"]),
    lambda q: q.update(options=["A) x", "B) y", "C) z", "D) w", "E) v"]),
    lambda q: q.update(question=""),
    lambda q: q.pop("explanation"),
    lambda q: q.update(explanation="   "),
    lambda q: q.update(correctAnswer="E"),
    lambda q: q.pop("correctAnswer"),
    lambda q: q.update(options=["A) x", "", "C) z", "D) w"]),
])
def test_structural_violations_fail(mutate):
    questions = make_questions(3)
    mutate(questions[1])
    with pytest.raises(ValidationFailed):
        parse_quiz_response(json.dumps({"questions": questions}))


@pytest.mark.parametrize("raw", [
    "",
    "Sure! Here is your quiz.",
    '{"quiz": []}',
    '{"questions": []}',
    '{"questions": "none"}',
    '"just a string"',
])
def test_malformed_envelopes_fail(raw):
    with pytest.raises(ValidationFailed):
        parse_quiz_response(raw)
