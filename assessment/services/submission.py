import logging

from django.db import DatabaseError, transaction
from django.utils import timezone

from ..answers import is_answered
from ..catalog import get_question, step_for_question
from ..models import Assessment, AssessmentResponse
from .exceptions import SubmissionError

logger = logging.getLogger(__name__)

ASSESSMENT_FIELDS = (
    "session_id",
    "company_name",
    "company_size",
    "industry",
    "operational_areas",
    "user_role",
    "technical_capability",
    "team_comfort_level",
    "existing_tools",
    "change_readiness_score",
    "transformation_approach",
    "has_champion",
    "contact_name",
    "email",
    "wants_consultation",
    "current_step",
    "referrer",
)


def _build_response(assessment: Assessment, response: dict) -> AssessmentResponse:
    key = response["question_key"]
    question = get_question(key)
    if question is not None:
        # denormalize from the catalog as it is right now
        step_number = step_for_question(key)
        question_text = question.text
    else:
        logger.warning(f"Question key {key} is not in the catalog, storing submitted text")
        step_number = response.get("step_number") or 1
        question_text = response.get("question_text") or key
    return AssessmentResponse(
        assessment=assessment,
        step_number=step_number,
        question_key=key,
        question_text=question_text,
        answer_value=response.get("answer_value"),
    )


def submit_assessment(
    assessment_data: dict,
    responses: list[dict],
    user=None,
    ip_address: str | None = None,
    user_agent: str = "",
) -> Assessment:
    """Persist a completed assessment and its responses as one unit."""
    fields = {k: v for k, v in assessment_data.items() if k in ASSESSMENT_FIELDS and v is not None}
    if not fields.get("session_id"):
        raise SubmissionError("session_id is required")

    answered = [
        r for r in responses if is_answered(r.get("answer_value"), get_question(r.get("question_key") or ""))
    ]
    try:
        with transaction.atomic():
            assessment = Assessment.objects.create(
                **fields,
                user=user if user is not None and user.is_authenticated else None,
                status=Assessment.Status.COMPLETED,
                completed_at=timezone.now(),
                ip_address=ip_address,
                user_agent=user_agent or "",
            )
            for response in answered:
                _build_response(assessment, response).save()
    except DatabaseError as e:
        logger.exception(f"Failed to save assessment for session {fields.get('session_id')}")
        raise SubmissionError(str(e)) from e

    logger.info(f"Saved assessment {assessment.id} with {len(answered)} responses")
    return assessment
