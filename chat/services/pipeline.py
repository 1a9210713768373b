"""One chat turn, from the incoming message to the server-sent event stream.

`prepare_chat_turn` does everything that can fail with a plain HTTP error
(configuration, missing context, access, unknown conversation) before any
event is written. `stream_chat_turn` then relays the model output:

    conversation_id, text*, [analyzing], [metadata], done
    conversation_id, text*, error

How insights are extracted depends on the conversation's context type, see
`DetachedInsightStrategy` and `InlineInsightStrategy`.
"""

import json
import logging
import uuid
from dataclasses import dataclass
from typing import Iterator

from django.db import DatabaseError

from assessment.models import Assessment, AssessmentResults

from ..models import ContextType, Conversation, Message
from ..tasks import detect_message_insights
from .completion import CompletionStream, ensure_llm_configured
from .crud import (
    attach_insights,
    get_or_create_conversation,
    load_history,
    load_journey,
    save_assistant_message,
    save_user_message,
)
from .exceptions import ChatAccessDenied, ChatContextNotFound
from .insights import ExtractionStatus, JourneySummary, extract_insights
from .prompts import JourneyData, build_chat_system_prompt, build_journey_system_prompt

logger = logging.getLogger(__name__)

STREAM_ERROR = "Streaming failed"


def sse_event(event_type: str, **data) -> str:
    return f"data: {json.dumps({'type': event_type, **data})}\n\n"


@dataclass
class ChatContext:
    assessment: Assessment
    results: AssessmentResults
    context_type: ContextType
    journey: JourneyData | None = None

    def system_prompt(self) -> str:
        if self.context_type == ContextType.JOURNEY:
            return build_journey_system_prompt(self.assessment, self.results, self.journey or JourneyData())
        return build_chat_system_prompt(self.assessment, self.results)


@dataclass
class ChatTurn:
    context: ChatContext
    conversation: Conversation
    history: list[dict]
    message: str


def load_chat_context(assessment_id: uuid.UUID, context_type: ContextType) -> ChatContext:
    try:
        assessment = Assessment.objects.select_related("results").get(id=assessment_id)
        results = assessment.results
    except (Assessment.DoesNotExist, AssessmentResults.DoesNotExist):
        raise ChatContextNotFound(f"Assessment or results not found for {assessment_id}")

    journey = load_journey(assessment) if context_type == ContextType.JOURNEY else None
    return ChatContext(assessment=assessment, results=results, context_type=context_type, journey=journey)


def check_access(assessment: Assessment, user):
    if assessment.user_id is not None and (user is None or not user.is_authenticated):
        raise ChatAccessDenied(f"Assessment {assessment.id} belongs to a user, sign in to chat about it")


def prepare_chat_turn(
    assessment_id: uuid.UUID,
    context_type: ContextType,
    message: str,
    user=None,
    conversation_id: uuid.UUID | None = None,
) -> ChatTurn:
    ensure_llm_configured()
    context = load_chat_context(assessment_id, context_type)
    check_access(context.assessment, user)

    conversation = get_or_create_conversation(context.assessment, user, context_type, message, conversation_id)
    history = load_history(conversation)
    save_user_message(conversation, message)
    return ChatTurn(context=context, conversation=conversation, history=history, message=message)


class DetachedInsightStrategy:
    """Queue extraction on a worker. The stream closes without waiting and emits no insight events."""

    def events(self, turn: ChatTurn, text: str, message: Message | None) -> Iterator[str]:
        if message is None:
            return
        try:
            detect_message_insights.delay(str(message.id))
        except Exception as e:
            logger.error(f"Failed to queue insight detection for message {message.id}: {e}")
        yield from ()


class InlineInsightStrategy:
    """Extract insights before `done`, so the client gets them on the same stream."""

    def events(self, turn: ChatTurn, text: str, message: Message | None) -> Iterator[str]:
        yield sse_event("analyzing")
        result = extract_insights(text, JourneySummary.from_journey(turn.context.journey or JourneyData()))
        if result.status == ExtractionStatus.FAILED:
            logger.warning(f"Insight extraction failed for conversation {turn.conversation.id}: {result.error}")
        if not result.insights:
            return

        if message is not None:
            try:
                attach_insights(message, result.insights)
            except DatabaseError as e:
                logger.error(f"Failed to store insights on message {message.id}: {e}")
        yield sse_event("metadata", metadata={"hasActionableInsights": True, "insights": result.insights})


def insight_strategy(context_type: ContextType):
    if context_type == ContextType.JOURNEY:
        return InlineInsightStrategy()
    return DetachedInsightStrategy()


def _save_partial(turn: ChatTurn, chunks: list[str], stream: CompletionStream | None):
    if not chunks:
        return
    save_assistant_message(
        turn.conversation,
        "".join(chunks),
        model_version=stream.model if stream else "",
        is_partial=True,
    )
    logger.info(f"Saved partial reply for conversation {turn.conversation.id}")


def stream_chat_turn(turn: ChatTurn) -> Iterator[str]:
    yield sse_event("conversation_id", conversation_id=str(turn.conversation.id))

    stream = None
    chunks: list[str] = []
    try:
        stream = CompletionStream(turn.history, turn.context.system_prompt(), turn.message)
        for token in stream:
            chunks.append(token)
            yield sse_event("text", text=token)
    except GeneratorExit:
        # client went away mid-stream
        if stream is not None:
            stream.close()
        _save_partial(turn, chunks, stream)
        raise
    except Exception as e:
        logger.error(f"Streaming failed for conversation {turn.conversation.id}: {e}")
        _save_partial(turn, chunks, stream)
        yield sse_event("error", error=STREAM_ERROR)
        return

    text = "".join(chunks)
    message = save_assistant_message(
        turn.conversation,
        text,
        input_tokens=stream.prompt_tokens,
        output_tokens=stream.completion_tokens,
        model_version=stream.model,
    )
    yield from insight_strategy(turn.context.context_type).events(turn, text, message)
    yield sse_event(
        "done",
        message_id=str(message.id) if message else None,
        usage={"input_tokens": stream.prompt_tokens, "output_tokens": stream.completion_tokens},
    )
