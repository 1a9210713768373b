import pytest

from assessment.answers import MultiSelectAnswer, ScalarAnswer, StructuredAnswer, is_answered, parse_answer
from assessment.catalog import (
    STEPS,
    QuestionType,
    change_readiness_score,
    get_question,
    get_step,
    step_for_question,
    total_steps,
)


def test_catalog_has_six_ordered_steps():
    assert total_steps() == 6
    assert [step.id for step in STEPS] == [1, 2, 3, 4, 5, 6]


def test_question_keys_are_unique():
    keys = [question.key for step in STEPS for question in step.questions]
    assert len(keys) == len(set(keys))


def test_get_step_unknown_id():
    with pytest.raises(KeyError):
        get_step(7)


def test_lookup_by_key():
    assert get_question("timeline").type == QuestionType.SINGLE_SELECT
    assert step_for_question("timeline") == 5
    assert get_question("not_a_question") is None
    assert step_for_question("not_a_question") is None


def test_follow_up_questions_are_conditional():
    industry_other = get_question("industry_other")
    assert industry_other.required
    assert industry_other.visible_when.is_met({"industry": "other"})
    assert not industry_other.visible_when.is_met({"industry": "retail"})

    erp_other = get_question("erp_system_other")
    assert erp_other.visible_when.is_met({"erp_system": ["sap", "other"]})
    assert not erp_other.visible_when.is_met({"erp_system": ["sap"]})
    assert not erp_other.visible_when.is_met({})


def test_ranking_question_caps_selection():
    question = get_question("top_frustration")
    assert question.type == QuestionType.RANKING
    assert question.max_selection == 3


@pytest.mark.parametrize(
    "value, expected",
    [
        ("eager", 5),
        ("open", 4),
        ("hesitant", 2),
        ("resistant", 1),
        (None, 1),
        ("", 1),
    ],
)
def test_change_readiness_score(value, expected):
    assert change_readiness_score(value) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, False),
        ("", False),
        ([], False),
        ("x", True),
        (["a"], True),
        (0, True),
        (False, True),
        ({}, True),
    ],
)
def test_is_answered(raw, expected):
    assert is_answered(raw) is expected


@pytest.mark.parametrize(
    "key, raw, expected",
    [
        ("pain_points", "manual_tasks", False),
        ("pain_points", [], False),
        ("pain_points", ["manual_tasks"], True),
        ("top_frustration", "manual_tasks", False),
        ("company_name", [], True),
        ("company_name", "", False),
        ("data_maturity", 0, True),
    ],
)
def test_is_answered_follows_question_type(key, raw, expected):
    assert is_answered(raw, get_question(key)) is expected


def test_erp_follow_up_is_optional_but_counted():
    question = get_question("erp_system_other")
    assert question.required is False
    assert question.counted is True
    assert question.visible_when.is_met({"erp_system": ["sap", "other"]})


def test_parse_answer_uses_question_type():
    ranking = parse_answer("top_frustration", ["manual_tasks", "data_scattered"])
    assert ranking == MultiSelectAnswer(("manual_tasks", "data_scattered"), ranked=True)
    assert ranking.to_json() == ["manual_tasks", "data_scattered"]

    assert parse_answer("pain_points", "manual_tasks") == MultiSelectAnswer(("manual_tasks",))
    assert parse_answer("data_maturity", 3) == ScalarAnswer(3)
    assert parse_answer("company_name", "Acme").to_json() == "Acme"


def test_parse_answer_falls_back_to_shape_for_unknown_keys():
    assert parse_answer("legacy_key", ["a", "b"]) == MultiSelectAnswer(("a", "b"))
    assert parse_answer("existing_tools", {"microsoft": ["teams"]}) == StructuredAnswer({"microsoft": ["teams"]})
    assert parse_answer("legacy_key", "text") == ScalarAnswer("text")
