import logging

from celery import shared_task

from assessment.models import AssessmentResults

from .models import ContextType, Message
from .services.crud import attach_insights, load_journey
from .services.insights import (
    ExtractionResult,
    ExtractionStatus,
    JourneySummary,
    extract_insights,
    extract_results_insights,
)

logger = logging.getLogger(__name__)


def _extract_for(message: Message) -> ExtractionResult:
    assessment = message.conversation.assessment
    if message.conversation.context_type == ContextType.JOURNEY:
        journey = load_journey(assessment)
        return extract_insights(message.content, JourneySummary.from_journey(journey))

    # general chat suggestions address the generated results
    try:
        results = AssessmentResults.objects.get(assessment=assessment)
    except AssessmentResults.DoesNotExist:
        logger.warning(f"No results for assessment {assessment.id}, cannot analyze message {message.id}")
        return ExtractionResult(ExtractionStatus.FAILED, error="Assessment results not found")
    return extract_results_insights(message.content, results)


def detect_insights_for_message(message: Message) -> ExtractionResult:
    """Run extraction for a stored assistant reply and attach whatever is found to its metadata."""
    result = _extract_for(message)
    if result.insights:
        attach_insights(message, result.insights)
    logger.info(f"Insight detection for message {message.id}: {result.status.value}, {len(result.insights)} found")
    return result


@shared_task
def detect_message_insights(message_id: str):
    try:
        message = Message.objects.select_related("conversation__assessment").get(
            id=message_id, role=Message.Role.ASSISTANT
        )
    except Message.DoesNotExist:
        logger.warning(f"Skipping insight detection, assistant message {message_id} not found")
        return None
    return detect_insights_for_message(message).status.value
