import logging
from dataclasses import dataclass
from datetime import datetime

from django.utils import timezone

from ..models import AssessmentDraft

logger = logging.getLogger(__name__)


@dataclass
class DraftSyncResult:
    draft: AssessmentDraft
    conflict: bool


def get_draft(user, session_id: str) -> AssessmentDraft | None:
    return AssessmentDraft.objects.filter(user=user, session_id=session_id).first()


def sync_draft(user, session_id: str, answers: dict, current_step: int, timestamp: datetime | None) -> DraftSyncResult:
    """Latest draft wins: a server copy newer than the client's timestamp is returned untouched."""
    local_timestamp = timestamp or timezone.now()
    existing = get_draft(user, session_id)
    if existing is not None and existing.updated_at > local_timestamp:
        logger.info(
            f"Draft conflict for session {session_id}: local {local_timestamp.isoformat()}, "
            f"server {existing.updated_at.isoformat()}"
        )
        return DraftSyncResult(draft=existing, conflict=True)

    draft, _ = AssessmentDraft.objects.update_or_create(
        user=user,
        session_id=session_id,
        defaults={"answers": answers, "current_step": current_step, "updated_at": timezone.now()},
    )
    logger.info(f"Draft synced for session {session_id} at step {current_step} with {len(answers)} answers")
    return DraftSyncResult(draft=draft, conflict=False)


def delete_draft(user, session_id: str) -> int:
    deleted, _ = AssessmentDraft.objects.filter(user=user, session_id=session_id).delete()
    return deleted
