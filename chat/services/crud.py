import logging
import uuid

from django.db import DatabaseError, transaction
from django.db.models import Prefetch, Q

from assessment.models import Assessment, BacklogItem, Sprint

from ..models import CONVERSATION_TITLE_LENGTH, ContextType, Conversation, Message
from .exceptions import ConversationNotFound
from .prompts import JourneyData

logger = logging.getLogger(__name__)


def get_or_create_conversation(
    assessment: Assessment, user, context_type: ContextType, message: str, conversation_id: uuid.UUID | None = None
) -> Conversation:
    if conversation_id:
        try:
            return Conversation.objects.get(id=conversation_id, assessment=assessment, context_type=context_type)
        except Conversation.DoesNotExist:
            raise ConversationNotFound(f"Conversation {conversation_id} not found for assessment {assessment.id}")

    conversation = Conversation.objects.create(
        assessment=assessment,
        user=user if user is not None and user.is_authenticated else None,
        title=message[:CONVERSATION_TITLE_LENGTH],
        context_type=context_type,
    )
    logger.info(f"Created {context_type} conversation {conversation.id} for assessment {assessment.id}")
    return conversation


def load_history(conversation: Conversation) -> list[dict]:
    """Stored turns in chronological order, as role/content dicts for the model."""
    return [
        {"role": role, "content": content}
        for role, content in conversation.messages.order_by("created_at").values_list("role", "content")
        if content
    ]


@transaction.atomic
def save_user_message(conversation: Conversation, content: str) -> Message:
    message = Message.objects.create(conversation=conversation, role=Message.Role.USER, content=content)
    conversation.touch()
    return message


def save_assistant_message(
    conversation: Conversation,
    content: str,
    input_tokens: int | None = None,
    output_tokens: int | None = None,
    model_version: str = "",
    is_partial: bool = False,
) -> Message | None:
    """Store the assistant reply. A failure here must not fail the turn, so it is logged and None is returned."""
    try:
        with transaction.atomic():
            message = Message.objects.create(
                conversation=conversation,
                role=Message.Role.ASSISTANT,
                content=content,
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                model_version=model_version,
                is_partial=is_partial,
            )
            conversation.touch()
    except DatabaseError as e:
        logger.error(f"Failed to save assistant message for conversation {conversation.id}: {e}")
        return None
    return message


def attach_insights(message: Message, insights: list[dict]):
    message.metadata = {"hasActionableInsights": True, "insights": insights}
    message.save(update_fields=["metadata"])


def list_conversations(assessment: Assessment, user, context_type: ContextType | None = None):
    """Conversations visible to the caller, most recently active first, with their messages prefetched."""
    conversations = Conversation.objects.filter(assessment=assessment)
    if user is not None and user.is_authenticated:
        conversations = conversations.filter(Q(user=user) | Q(user__isnull=True))
    else:
        conversations = conversations.filter(user__isnull=True)
    if context_type:
        conversations = conversations.filter(context_type=context_type)
    return conversations.order_by("-updated_at").prefetch_related(
        Prefetch("messages", queryset=Message.objects.order_by("created_at"))
    )


def load_journey(assessment: Assessment) -> JourneyData:
    return JourneyData(
        projects=list(assessment.projects.order_by("created_at")),
        backlog_items=list(BacklogItem.objects.filter(project__assessment=assessment).order_by("created_at")),
        sprints=list(Sprint.objects.filter(project__assessment=assessment).order_by("start_date", "created_at")),
        risks=list(assessment.risks.order_by("created_at")),
    )
