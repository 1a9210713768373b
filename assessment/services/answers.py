import logging

from django.db import transaction
from django.utils import timezone

from ..models import Assessment, AssessmentResponse
from .exceptions import AssessmentNotFound

logger = logging.getLogger(__name__)


def get_assessment(assessment_id) -> Assessment:
    try:
        return Assessment.objects.get(id=assessment_id)
    except Assessment.DoesNotExist:
        raise AssessmentNotFound(f"Assessment {assessment_id} not found")


def get_answers(assessment_id) -> tuple[Assessment, list[AssessmentResponse]]:
    assessment = get_assessment(assessment_id)
    responses = list(assessment.responses.order_by("step_number", "question_key"))
    return assessment, responses


def update_answers(assessment_id, updates: list[dict]) -> list[str]:
    """Edit individual answers after submission. Returns the keys that were updated.

    Regenerating results from the edited answers happens downstream.
    """
    assessment = get_assessment(assessment_id)
    updated = []
    with transaction.atomic():
        for update in updates:
            key = update["question_key"]
            response = assessment.responses.filter(question_key=key).first()
            if response is None:
                logger.warning(f"Assessment {assessment.id} has no response for {key}, skipping")
                continue
            response.answer_value = update.get("answer_value")
            response.save(update_fields=["answer_value"])
            updated.append(key)
        assessment.updated_at = timezone.now()
        assessment.save(update_fields=["updated_at"])
    logger.info(f"Updated {len(updated)} answers for assessment {assessment.id}")
    return updated
