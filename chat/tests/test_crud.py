import uuid
from datetime import date, datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from django.contrib.auth.models import AnonymousUser
from django.db import DatabaseError
from freezegun import freeze_time

from chat.models import ContextType, Conversation, Message
from chat.services.crud import (
    attach_insights,
    get_or_create_conversation,
    list_conversations,
    load_history,
    load_journey,
    save_assistant_message,
    save_user_message,
)
from chat.services.exceptions import ConversationNotFound


def test_new_conversation_is_titled_from_the_message(assessment):
    conversation = get_or_create_conversation(assessment, AnonymousUser(), ContextType.GENERAL, "x" * 150)

    assert conversation.title == "x" * 100
    assert conversation.user is None
    assert conversation.context_type == ContextType.GENERAL


def test_new_conversation_records_signed_in_user(assessment, user):
    conversation = get_or_create_conversation(assessment, user, ContextType.JOURNEY, "Hi")
    assert conversation.user == user


def test_existing_conversation_is_reused(assessment, conversation_factory):
    existing = conversation_factory(assessment=assessment, context_type=ContextType.JOURNEY)

    conversation = get_or_create_conversation(assessment, None, ContextType.JOURNEY, "Hi", existing.id)

    assert conversation == existing
    assert Conversation.objects.count() == 1


@pytest.mark.parametrize("wrong", ["assessment", "context_type", "id"])
def test_conversation_must_match_assessment_and_context(wrong, assessment, assessment_factory, conversation_factory):
    existing = conversation_factory(assessment=assessment, context_type=ContextType.GENERAL)
    target_assessment = assessment_factory() if wrong == "assessment" else assessment
    context_type = ContextType.JOURNEY if wrong == "context_type" else ContextType.GENERAL
    conversation_id = uuid.uuid4() if wrong == "id" else existing.id

    with pytest.raises(ConversationNotFound):
        get_or_create_conversation(target_assessment, None, context_type, "Hi", conversation_id)
    assert Conversation.objects.count() == 1


def test_load_history_is_chronological_and_skips_empty_turns(conversation, message_factory):
    start = datetime(2026, 1, 1, tzinfo=timezone.utc)
    assistant = Message.Role.ASSISTANT
    later = start + timedelta(seconds=2)
    message_factory(conversation=conversation, role=assistant, content="Second", created_at=later)
    message_factory(conversation=conversation, role=Message.Role.USER, content="First", created_at=start)
    message_factory(conversation=conversation, role=assistant, content="", created_at=start + timedelta(seconds=1))

    assert load_history(conversation) == [
        {"role": "user", "content": "First"},
        {"role": "assistant", "content": "Second"},
    ]


def test_save_user_message_touches_conversation(conversation):
    with freeze_time("2030-01-01 09:00:00"):
        message = save_user_message(conversation, "How do I start?")

    conversation.refresh_from_db()
    assert message.role == Message.Role.USER
    assert conversation.updated_at == datetime(2030, 1, 1, 9, tzinfo=timezone.utc)


def test_save_assistant_message(conversation):
    message = save_assistant_message(conversation, "Start small.", input_tokens=120, output_tokens=3, model_version="m")

    assert message.role == Message.Role.ASSISTANT
    assert (message.input_tokens, message.output_tokens, message.model_version) == (120, 3, "m")
    assert message.is_partial is False


def test_save_assistant_message_failure_returns_none(conversation):
    with patch.object(Message.objects, "create", side_effect=DatabaseError("locked")):
        assert save_assistant_message(conversation, "Start small.") is None


def test_attach_insights(message):
    attach_insights(message, [{"type": "risk"}])

    message.refresh_from_db()
    assert message.metadata == {"hasActionableInsights": True, "insights": [{"type": "risk"}]}


def test_list_conversations_visibility(assessment, user_factory, conversation_factory):
    owner = user_factory(username="owner")
    other = user_factory(username="other")
    shared = conversation_factory(assessment=assessment, user=None)
    mine = conversation_factory(assessment=assessment, user=owner)
    theirs = conversation_factory(assessment=assessment, user=other)
    conversation_factory(user=None)

    assert set(list_conversations(assessment, owner)) == {shared, mine}
    assert set(list_conversations(assessment, other)) == {shared, theirs}
    assert set(list_conversations(assessment, AnonymousUser())) == {shared}


def test_list_conversations_filters_and_orders(assessment, conversation_factory, message_factory):
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)
    older = conversation_factory(assessment=assessment, updated_at=now - timedelta(days=1))
    newer = conversation_factory(assessment=assessment, updated_at=now)
    conversation_factory(assessment=assessment, context_type=ContextType.JOURNEY)
    message_factory(conversation=newer, content="b", created_at=now + timedelta(seconds=1))
    message_factory(conversation=newer, content="a", created_at=now)

    conversations = list(list_conversations(assessment, None, ContextType.GENERAL))

    assert conversations == [newer, older]
    assert [m.content for m in conversations[0].messages.all()] == ["a", "b"]


def test_load_journey_is_scoped_to_assessment(
    assessment, project_factory, backlog_item_factory, sprint_factory, risk_factory
):
    project = project_factory(assessment=assessment)
    item = backlog_item_factory(project=project)
    late = sprint_factory(project=project, start_date=date(2026, 6, 1))
    early = sprint_factory(project=project, start_date=date(2026, 5, 1))
    risk = risk_factory(assessment=assessment)
    other = project_factory()
    backlog_item_factory(project=other)
    sprint_factory(project=other)
    risk_factory(assessment=other.assessment)

    journey = load_journey(assessment)

    assert journey.projects == [project]
    assert journey.backlog_items == [item]
    assert journey.sprints == [early, late]
    assert journey.risks == [risk]
