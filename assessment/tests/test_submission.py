from unittest.mock import patch

import pytest
from django.contrib.auth.models import AnonymousUser
from django.db import DatabaseError
from django.urls import reverse

from assessment.models import Assessment, AssessmentResponse
from assessment.services.exceptions import SubmissionError
from assessment.services.submission import submit_assessment


@pytest.fixture
def submission():
    return {
        "assessment": {
            "session_id": "session-123",
            "company_name": "Acme",
            "company_size": "50-200",
            "industry": "manufacturing",
            "change_readiness_score": 4,
            "wants_consultation": True,
        },
        "responses": [
            {"question_key": "company_size", "answer_value": "50-200", "step_number": 1, "question_text": ""},
            {"question_key": "pain_points", "answer_value": ["manual_tasks"], "step_number": 2, "question_text": ""},
            {"question_key": "company_name", "answer_value": "", "step_number": 6, "question_text": ""},
            {"question_key": "team_comfort_level", "answer_value": [], "step_number": 1, "question_text": ""},
        ],
    }


def test_submit_assessment_persists_answered_responses(submission):
    assessment = submit_assessment(submission["assessment"], submission["responses"], user=AnonymousUser())

    assert assessment.status == Assessment.Status.COMPLETED
    assert assessment.completed_at is not None
    assert assessment.user is None
    assert assessment.change_readiness_score == 4
    keys = set(assessment.responses.values_list("question_key", flat=True))
    assert keys == {"company_size", "pain_points"}


def test_submit_assessment_denormalizes_from_catalog(submission):
    submission["responses"][1]["step_number"] = 9
    submission["responses"][1]["question_text"] = "stale"

    assessment = submit_assessment(submission["assessment"], submission["responses"])

    response = assessment.responses.get(question_key="pain_points")
    assert response.step_number == 2
    assert response.question_text == "What challenges is your business facing?"
    assert response.answer_value == ["manual_tasks"]


def test_submit_assessment_keeps_unknown_keys(submission):
    submission["responses"].append(
        {"question_key": "legacy_question", "answer_value": "x", "step_number": 3, "question_text": "Legacy?"}
    )

    assessment = submit_assessment(submission["assessment"], submission["responses"])

    response = assessment.responses.get(question_key="legacy_question")
    assert response.step_number == 3
    assert response.question_text == "Legacy?"


def test_submit_assessment_links_authenticated_user(submission, user):
    assessment = submit_assessment(submission["assessment"], submission["responses"], user=user)
    assert assessment.user == user


def test_submit_assessment_requires_session_id(submission):
    submission["assessment"]["session_id"] = ""
    with pytest.raises(SubmissionError):
        submit_assessment(submission["assessment"], submission["responses"])


def test_submit_assessment_writes_nothing_on_failure(submission):
    with patch.object(AssessmentResponse, "save", side_effect=DatabaseError("disk full")):
        with pytest.raises(SubmissionError):
            submit_assessment(submission["assessment"], submission["responses"])

    assert Assessment.objects.count() == 0
    assert AssessmentResponse.objects.count() == 0


def test_submit_view(client, submission):
    response = client.post(
        reverse("assessment:submit"),
        submission,
        content_type="application/json",
        HTTP_X_FORWARDED_FOR="203.0.113.7, 10.0.0.1",
        HTTP_USER_AGENT="pytest",
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assessment = Assessment.objects.get(id=body["assessment_id"])
    assert assessment.ip_address == "203.0.113.7"
    assert assessment.user_agent == "pytest"
    assert assessment.responses.count() == 2


def test_submit_view_rejects_invalid_body(client):
    response = client.post(reverse("assessment:submit"), {"responses": []}, content_type="application/json")

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid assessment submission"
    assert Assessment.objects.count() == 0


@patch("assessment.views.submit_assessment")
def test_submit_view_reports_storage_failure(mock_submit, client, submission):
    mock_submit.side_effect = SubmissionError("database unavailable")

    response = client.post(reverse("assessment:submit"), submission, content_type="application/json")

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to save assessment"
