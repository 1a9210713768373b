import uuid
from unittest.mock import patch

import pytest

from chat.models import ContextType, Message
from chat.services.insights import ExtractionResult, ExtractionStatus
from chat.tasks import detect_message_insights

INSIGHT = {
    "type": "new_pbi",
    "action": "create",
    "suggestedUpdate": {
        "entityId": None,
        "entityName": "Automate invoice intake",
        "field": None,
        "currentValue": None,
        "suggestedValue": "Set up OCR for incoming invoices",
        "reason": "Quick win",
    },
    "confidence": 0.9,
}
SECTION_INSIGHT = {
    "type": "quick_win",
    "summary": "Sharper description",
    "suggestedUpdate": {
        "sectionPath": "quick_wins[0].description",
        "currentValue": None,
        "suggestedValue": "Scan invoices with OCR",
        "reason": "More specific",
    },
    "confidence": 0.9,
}


@pytest.fixture
def assistant_message(conversation_factory, message_factory, project_factory):
    conversation = conversation_factory(context_type=ContextType.JOURNEY)
    project_factory(assessment=conversation.assessment)
    return message_factory(conversation=conversation, role=Message.Role.ASSISTANT, content="Automate invoice intake.")


@pytest.fixture
def general_message(assessment_results, conversation_factory, message_factory):
    conversation = conversation_factory(assessment=assessment_results.assessment, context_type=ContextType.GENERAL)
    return message_factory(conversation=conversation, role=Message.Role.ASSISTANT, content="Use OCR for invoices.")


@patch("chat.tasks.extract_results_insights")
@patch("chat.tasks.extract_insights")
def test_detect_message_insights_attaches_results(mock_extract, mock_results_extract, assistant_message):
    mock_extract.return_value = ExtractionResult(ExtractionStatus.FOUND, [INSIGHT])

    status = detect_message_insights.apply(args=[str(assistant_message.id)]).get()

    assert status == "found"
    text, summary = mock_extract.call_args.args
    assert text == "Automate invoice intake."
    assert summary.projects == 1
    mock_results_extract.assert_not_called()
    assistant_message.refresh_from_db()
    assert assistant_message.metadata == {"hasActionableInsights": True, "insights": [INSIGHT]}


@patch("chat.tasks.extract_results_insights")
@patch("chat.tasks.extract_insights")
def test_general_messages_are_analyzed_against_results(mock_extract, mock_results_extract, general_message):
    mock_results_extract.return_value = ExtractionResult(ExtractionStatus.FOUND, [SECTION_INSIGHT])

    assert detect_message_insights(str(general_message.id)) == "found"

    text, results = mock_results_extract.call_args.args
    assert text == "Use OCR for invoices."
    assert results.assessment == general_message.conversation.assessment
    mock_extract.assert_not_called()
    general_message.refresh_from_db()
    assert general_message.metadata["insights"] == [SECTION_INSIGHT]


@patch("chat.tasks.extract_results_insights")
def test_general_message_without_results_fails(mock_results_extract, conversation, message_factory):
    message = message_factory(conversation=conversation, role=Message.Role.ASSISTANT)

    assert detect_message_insights(str(message.id)) == "failed"
    mock_results_extract.assert_not_called()


@pytest.mark.parametrize("status", [ExtractionStatus.NONE, ExtractionStatus.FAILED])
@patch("chat.tasks.extract_insights")
def test_detect_message_insights_leaves_metadata_alone(mock_extract, assistant_message, status):
    mock_extract.return_value = ExtractionResult(status)

    assert detect_message_insights(str(assistant_message.id)) == status.value

    assistant_message.refresh_from_db()
    assert assistant_message.metadata is None


@patch("chat.tasks.extract_insights")
def test_detect_message_insights_skips_missing_or_user_messages(mock_extract, message):
    assert detect_message_insights(str(uuid.uuid4())) is None
    assert detect_message_insights(str(message.id)) is None
    mock_extract.assert_not_called()
