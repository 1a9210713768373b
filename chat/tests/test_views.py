import json
import uuid
from unittest.mock import patch

import pytest
from django.db import DatabaseError
from django.test import override_settings
from django.urls import reverse

from assessment.models import Project
from chat.models import AppliedUpdate, ContextType, Conversation, Message
from chat.services.insights import ExtractionResult, ExtractionStatus

INSIGHT = {
    "type": "risk",
    "action": "update",
    "suggestedUpdate": {
        "entityId": None,
        "entityName": "Vendor lock-in",
        "field": "severity",
        "currentValue": "medium",
        "suggestedValue": "high",
        "reason": "Single supplier",
    },
    "confidence": 0.8,
}
SECTION_INSIGHT = {
    "type": "tool_recommendation",
    "summary": "Swap the tier 1 tool",
    "suggestedUpdate": {
        "sectionPath": "tier1_citizen_led[1].name",
        "currentValue": "Zapier",
        "suggestedValue": "Make",
        "reason": "Already licensed",
    },
    "confidence": 0.9,
}


class FakeCompletionStream:
    model = "claude-test-model"
    prompt_tokens = 20
    completion_tokens = 2

    def __init__(self, *args):
        self.args = args

    def __iter__(self):
        return iter(["Quick ", "wins first."])

    def close(self):
        pass


def read_events(response) -> list[dict]:
    body = b"".join(response.streaming_content).decode()
    return [json.loads(event[len("data: ") :]) for event in body.split("\n\n") if event]


@pytest.fixture(autouse=True)
def mock_detect():
    with patch("chat.services.pipeline.detect_message_insights") as mock_task:
        yield mock_task


def test_health_check(client):
    response = client.get(reverse("chat:health-check"))
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@patch("chat.services.pipeline.CompletionStream", FakeCompletionStream)
def test_chat_streams_events(client, assessment_results):
    response = client.post(
        reverse("chat:chat", args=[assessment_results.assessment.id]),
        {"message": "Where do we start?"},
        content_type="application/json",
    )

    assert response.status_code == 200
    assert response["Content-Type"] == "text/event-stream"
    assert response["Cache-Control"] == "no-cache"
    events = read_events(response)
    assert [e["type"] for e in events] == ["conversation_id", "text", "text", "done"]
    conversation = Conversation.objects.get()
    assert events[0]["conversation_id"] == str(conversation.id)
    assert conversation.context_type == ContextType.GENERAL
    assert list(conversation.messages.values_list("role", flat=True)) == ["user", "assistant"]


@patch("chat.services.pipeline.CompletionStream", FakeCompletionStream)
def test_chat_continues_conversation(client, assessment_results, conversation_factory):
    conversation = conversation_factory(assessment=assessment_results.assessment)

    response = client.post(
        reverse("chat:chat", args=[assessment_results.assessment.id]),
        {"message": "And then?", "conversation_id": str(conversation.id)},
        content_type="application/json",
    )

    assert read_events(response)[0]["conversation_id"] == str(conversation.id)
    assert Conversation.objects.count() == 1


@patch("chat.services.insights.chat_completion", return_value=json.dumps([INSIGHT]))
@patch("chat.services.pipeline.CompletionStream", FakeCompletionStream)
def test_journey_chat_streams_insights(mock_completion, client, assessment_results):
    response = client.post(
        reverse("chat:journey-chat", args=[assessment_results.assessment.id]),
        {"message": "What about risks?"},
        content_type="application/json",
    )

    events = read_events(response)
    assert [e["type"] for e in events] == ["conversation_id", "text", "text", "analyzing", "metadata", "done"]
    assert events[4]["metadata"]["insights"] == [INSIGHT]
    assert Conversation.objects.get().context_type == ContextType.JOURNEY


@pytest.mark.parametrize("body", [{}, {"message": ""}, {"message": "Hi", "conversation_id": "not-a-uuid"}])
def test_chat_requires_message(client, assessment_results, body):
    response = client.post(
        reverse("chat:chat", args=[assessment_results.assessment.id]), body, content_type="application/json"
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Message is required"


def test_chat_without_results(client, assessment):
    response = client.post(
        reverse("chat:chat", args=[assessment.id]), {"message": "Hi"}, content_type="application/json"
    )

    assert response.status_code == 404
    assert response.json()["error"] == "Assessment or results not found"
    assert not Conversation.objects.exists()


@override_settings(LLM_API_KEY="")
def test_chat_without_api_key(client, assessment_results):
    response = client.post(
        reverse("chat:chat", args=[assessment_results.assessment.id]),
        {"message": "Hi"},
        content_type="application/json",
    )

    assert response.status_code == 500
    assert response.json()["error"] == "AI API key not configured"
    assert not Conversation.objects.exists()


@patch("chat.services.pipeline.save_user_message", side_effect=DatabaseError("connection lost"))
def test_chat_unexpected_failure_returns_json(mock_save, client, assessment_results):
    response = client.post(
        reverse("chat:chat", args=[assessment_results.assessment.id]),
        {"message": "Hi"},
        content_type="application/json",
    )

    assert response.status_code == 500
    assert response["Content-Type"] == "application/json"
    assert response.json() == {"error": "Failed to process chat message", "details": "connection lost"}


@patch("chat.views.list_conversations", side_effect=DatabaseError("connection lost"))
def test_list_conversations_unexpected_failure_returns_json(mock_list, client, assessment):
    response = client.get(reverse("chat:journey-chat", args=[assessment.id]))

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch chat history", "details": "connection lost"}


def test_chat_about_owned_assessment_requires_login(client, assessment_results_factory, user):
    results = assessment_results_factory(assessment__user=user)

    response = client.post(
        reverse("chat:chat", args=[results.assessment.id]), {"message": "Hi"}, content_type="application/json"
    )

    assert response.status_code == 403
    assert not Conversation.objects.exists()


def test_chat_unknown_conversation(client, assessment_results):
    response = client.post(
        reverse("chat:chat", args=[assessment_results.assessment.id]),
        {"message": "Hi", "conversation_id": str(uuid.uuid4())},
        content_type="application/json",
    )

    assert response.status_code == 404
    assert response.json()["error"] == "Conversation not found"


def test_list_conversations(client, assessment, user_factory, conversation_factory, message_factory):
    owner = user_factory(username="owner")
    shared = conversation_factory(assessment=assessment)
    mine = conversation_factory(assessment=assessment, user=owner)
    conversation_factory(assessment=assessment, user=user_factory(username="other"))
    conversation_factory(assessment=assessment, context_type=ContextType.JOURNEY)
    message_factory(conversation=shared, content="Hello")

    anonymous = client.get(reverse("chat:chat", args=[assessment.id])).json()
    assert [c["id"] for c in anonymous["conversations"]] == [str(shared.id)]
    assert anonymous["conversations"][0]["messages"][0]["content"] == "Hello"

    client.force_login(owner)
    signed_in = client.get(reverse("chat:chat", args=[assessment.id])).json()
    assert {c["id"] for c in signed_in["conversations"]} == {str(shared.id), str(mine.id)}

    journey = client.get(reverse("chat:journey-chat", args=[assessment.id])).json()
    assert len(journey["conversations"]) == 1


def test_list_conversations_unknown_assessment(client):
    response = client.get(reverse("chat:chat", args=[uuid.uuid4()]))
    assert response.status_code == 404


@pytest.fixture
def assistant_message(assessment_results, conversation_factory, message_factory):
    conversation = conversation_factory(assessment=assessment_results.assessment)
    return message_factory(conversation=conversation, role=Message.Role.ASSISTANT, content="Raise the risk severity.")


@patch("chat.tasks.extract_results_insights")
def test_detect_insights(mock_extract, client, assistant_message):
    mock_extract.return_value = ExtractionResult(ExtractionStatus.FOUND, [SECTION_INSIGHT])
    assessment_id = assistant_message.conversation.assessment_id

    response = client.post(
        reverse("chat:detect-insights", args=[assessment_id]),
        {"messageId": str(assistant_message.id)},
        content_type="application/json",
    )

    assert response.status_code == 200
    assert response.json() == {"hasActionableInsights": True, "insights": [SECTION_INSIGHT]}
    assistant_message.refresh_from_db()
    assert assistant_message.metadata["insights"] == [SECTION_INSIGHT]


@patch("chat.tasks.extract_results_insights")
def test_detect_insights_none_found(mock_extract, client, assistant_message):
    mock_extract.return_value = ExtractionResult(ExtractionStatus.NONE)

    response = client.post(
        reverse("chat:detect-insights", args=[assistant_message.conversation.assessment_id]),
        {"messageId": str(assistant_message.id)},
        content_type="application/json",
    )

    assert response.json() == {"hasActionableInsights": False, "insights": []}


@patch("chat.tasks.extract_results_insights")
def test_detect_insights_failure(mock_extract, client, assistant_message):
    mock_extract.return_value = ExtractionResult(ExtractionStatus.FAILED, error="timeout")

    response = client.post(
        reverse("chat:detect-insights", args=[assistant_message.conversation.assessment_id]),
        {"messageId": str(assistant_message.id)},
        content_type="application/json",
    )

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to analyze message"


@patch("chat.tasks.extract_results_insights")
def test_detect_insights_checks_context_and_role(mock_extract, client, assistant_message, message_factory):
    assessment_id = assistant_message.conversation.assessment_id
    user_message = message_factory(conversation=assistant_message.conversation, role=Message.Role.USER)

    wrong_context = client.post(
        reverse("chat:journey-detect-insights", args=[assessment_id]),
        {"messageId": str(assistant_message.id)},
        content_type="application/json",
    )
    wrong_role = client.post(
        reverse("chat:detect-insights", args=[assessment_id]),
        {"messageId": str(user_message.id)},
        content_type="application/json",
    )
    missing_id = client.post(reverse("chat:detect-insights", args=[assessment_id]), {}, content_type="application/json")

    assert wrong_context.status_code == 404
    assert wrong_role.status_code == 404
    assert missing_id.status_code == 400
    mock_extract.assert_not_called()


@pytest.fixture
def journey_conversation(assessment, conversation_factory):
    return conversation_factory(assessment=assessment, context_type=ContextType.JOURNEY)


def test_apply_updates(client, assessment, journey_conversation, project_factory, message_factory):
    project = project_factory(assessment=assessment, title="Data warehouse")
    message = message_factory(conversation=journey_conversation, role=Message.Role.ASSISTANT)

    response = client.post(
        reverse("chat:journey-apply-update", args=[assessment.id]),
        {
            "messageId": str(message.id),
            "conversationId": str(journey_conversation.id),
            "updates": [
                {
                    "type": "project",
                    "action": "update",
                    "entityId": str(project.id),
                    "entityName": "Data warehouse",
                    "field": "status",
                    "oldValue": "not_started",
                    "newValue": "in_progress",
                    "reason": "Kickoff happened",
                },
                {
                    "type": "project",
                    "action": "update",
                    "entityId": str(project.id),
                    "entityName": "Data warehouse",
                    "field": "assessment",
                    "newValue": "x",
                },
            ],
        },
        content_type="application/json",
    )

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "appliedUpdates": ["Updated Data warehouse: status = in_progress"],
        "message": "Successfully applied 1 update(s)",
    }
    project.refresh_from_db()
    assert project.status == Project.Status.IN_PROGRESS
    audit = AppliedUpdate.objects.get()
    assert audit.message == message
    assert audit.old_value == "not_started"


def test_apply_updates_validation(client, assessment, journey_conversation):
    response = client.post(
        reverse("chat:journey-apply-update", args=[assessment.id]),
        {"conversationId": str(journey_conversation.id), "updates": []},
        content_type="application/json",
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid updates"


def test_apply_updates_conversation_must_belong_to_assessment(client, assessment, conversation_factory):
    foreign = conversation_factory()

    response = client.post(
        reverse("chat:journey-apply-update", args=[assessment.id]),
        {
            "conversationId": str(foreign.id),
            "updates": [{"type": "risk", "action": "update", "entityName": "x", "newValue": "high"}],
        },
        content_type="application/json",
    )

    assert response.status_code == 404
    assert not AppliedUpdate.objects.exists()


def test_apply_updates_unknown_assessment(client):
    response = client.post(
        reverse("chat:journey-apply-update", args=[uuid.uuid4()]),
        {
            "conversationId": str(uuid.uuid4()),
            "updates": [{"type": "risk", "action": "update", "entityName": "x", "newValue": "high"}],
        },
        content_type="application/json",
    )

    assert response.status_code == 404
    assert response.json()["error"] == "Assessment not found"


def test_detect_insights_needs_results(client, conversation, message_factory):
    message = message_factory(conversation=conversation, role=Message.Role.ASSISTANT)

    response = client.post(
        reverse("chat:detect-insights", args=[conversation.assessment_id]),
        {"messageId": str(message.id)},
        content_type="application/json",
    )

    assert response.status_code == 404
    assert response.json()["error"] == "Assessment results not found"


def test_apply_results_updates(client, assessment_results, conversation_factory, message_factory):
    assessment = assessment_results.assessment
    conversation = conversation_factory(assessment=assessment)
    message = message_factory(conversation=conversation, role=Message.Role.ASSISTANT, metadata={"insights": []})

    response = client.post(
        reverse("chat:apply-update", args=[assessment.id]),
        {
            "messageId": str(message.id),
            "conversationId": str(conversation.id),
            "updates": [
                {
                    "updateType": "tool_recommendation",
                    "sectionPath": "tier1_citizen_led[1].name",
                    "oldValue": "Zapier",
                    "newValue": "Make",
                    "reason": "Already licensed",
                },
                {"updateType": "quick_win", "sectionPath": "quick_wins[5].title", "newValue": "Out of range"},
                {"updateType": "priority", "sectionPath": "company_name", "newValue": "Renamed Inc"},
            ],
        },
        content_type="application/json",
    )

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "appliedUpdates": ["Updated tier1_citizen_led[1].name"],
        "message": "Successfully applied 1 update(s)",
    }
    assessment_results.refresh_from_db()
    assert assessment_results.tier1_citizen_led == [{"name": "Power Automate"}, {"name": "Make"}]
    assert assessment_results.company_name == "Acme Manufacturing"
    audit = AppliedUpdate.objects.get()
    assert (audit.update_type, audit.section_path) == ("tool_recommendation", "tier1_citizen_led[1].name")
    assert (audit.old_value, audit.new_value) == ("Zapier", "Make")
    assert audit.message == message


def test_apply_results_updates_validation(client, assessment_results, conversation_factory):
    conversation = conversation_factory(assessment=assessment_results.assessment)

    response = client.post(
        reverse("chat:apply-update", args=[assessment_results.assessment.id]),
        {
            "conversationId": str(conversation.id),
            "updates": [{"updateType": "project", "sectionPath": "quick_wins[0].title", "newValue": "x"}],
        },
        content_type="application/json",
    )

    assert response.status_code == 400
    assert "updates" in response.json()["details"]


def test_apply_results_updates_needs_results(client, conversation):
    response = client.post(
        reverse("chat:apply-update", args=[conversation.assessment_id]),
        {
            "conversationId": str(conversation.id),
            "updates": [{"updateType": "quick_win", "sectionPath": "quick_wins[0].title", "newValue": "x"}],
        },
        content_type="application/json",
    )

    assert response.status_code == 404
    assert response.json()["error"] == "Assessment results not found"
    assert not AppliedUpdate.objects.exists()
