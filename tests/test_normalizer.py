"""Tests for the normalizer module."""
from quiz_session.normalizer import normalize_question, normalize_questions


def test_normalize_standard_shape():
    q = normalize_question({
        "id": 5,
        "question": "What is a V8?",
        "options": ["Engine", "Juice"],
        "correctAnswer": "Engine",
        "timeLimit": 20,
    })
    assert q.id == "5"
    assert q.prompt == "What is a V8?"
    assert q.options == ("Engine", "Juice")
    assert q.correct_answer == "Engine"
    assert q.time_limit_seconds == 20


def test_normalize_alternate_field_names():
    q = normalize_question({
        "id": "x",
        "question_text": "Alt prompt",
        "options": {"a": "One", "b": "Two"},
        "correct_answer": 2,
    })
    assert q.prompt == "Alt prompt"
    assert q.options == ("One", "Two")
    assert q.correct_answer == "2"


def test_normalize_invalid_time_limit_uses_default():
    assert normalize_question({"id": "a", "timeLimit": 0}).time_limit_seconds == 30
    assert normalize_question({"id": "a", "timeLimit": "10"}).time_limit_seconds == 30
    assert normalize_question({"id": "a"}, default_time_limit=45).time_limit_seconds == 45


def test_normalize_missing_fields_do_not_raise():
    q = normalize_question({})
    assert q.id == ""
    assert q.prompt == ""
    assert q.options == ()
    assert q.correct_answer is None


def test_normalize_questions_non_list():
    assert normalize_questions({"questions": []}) == []
    assert normalize_questions(None) == []


def test_normalize_questions_skips_non_mappings():
    questions = normalize_questions([{"id": "a", "question": "p", "options": ["x"],
                                      "correctAnswer": "x"}, "junk", 3])
    assert [q.id for q in questions] == ["a"]


def test_normalize_optional_metadata():
    q = normalize_question({"id": "a", "category": "cars", "difficulty": 3})
    assert q.category == "cars"
    assert q.difficulty is None
