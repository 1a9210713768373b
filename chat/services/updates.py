import copy
import logging
import re

from django.core.exceptions import ObjectDoesNotExist, ValidationError
from django.db import DatabaseError, transaction

from assessment.models import Assessment, AssessmentResults, BacklogItem, Project, Risk, Sprint

from ..models import AppliedUpdate, Conversation, Message
from .exceptions import ChatContextNotFound
from .insights import RESULTS_SECTIONS

logger = logging.getLogger(__name__)

PROJECT_FIELDS = {
    "title",
    "description",
    "status",
    "progress_percentage",
    "priority",
    "complexity",
    "operational_area",
    "estimated_annual_savings",
    "actual_annual_savings",
}
BACKLOG_ITEM_FIELDS = {"title", "description", "status", "priority", "story_points"}
SPRINT_FIELDS = {"name", "goal", "status", "start_date", "end_date", "velocity"}
RISK_FIELDS = {"title", "description", "severity", "status", "mitigation_plan"}

CREATE_TYPES = {
    "new_pbi": BacklogItem.ItemType.PBI,
    "new_user_story": BacklogItem.ItemType.USER_STORY,
}

SECTION_PATH_PART = re.compile(r"^(\w+)(?:\[(\d+)\])?$")


class UpdateRejected(Exception):
    pass


def _applied_by(assessment: Assessment, user):
    return user if user is not None and user.is_authenticated else assessment.user


def _entities(assessment: Assessment, update_type: str):
    """Queryset and editable fields for an update type, scoped to the assessment."""
    if update_type == "project":
        return Project.objects.filter(assessment=assessment), PROJECT_FIELDS
    if update_type in ("pbi", "user_story"):
        return BacklogItem.objects.filter(project__assessment=assessment), BACKLOG_ITEM_FIELDS
    if update_type == "sprint":
        return Sprint.objects.filter(project__assessment=assessment), SPRINT_FIELDS
    if update_type == "risk":
        return Risk.objects.filter(assessment=assessment), RISK_FIELDS
    raise UpdateRejected(f"Unknown update type {update_type}")


def _apply_field_update(assessment: Assessment, update: dict):
    entities, fields = _entities(assessment, update["type"])
    field = update.get("field")
    if not update.get("entity_id") or not field:
        raise UpdateRejected("Updates need an entity id and a field")
    if field not in fields:
        raise UpdateRejected(f"Field {field} cannot be changed on {update['type']}")
    entity = entities.get(id=update["entity_id"])
    setattr(entity, field, update["new_value"])
    entity.full_clean()
    entity.save()
    section_path = f"{update['type']}.{update['entity_id']}.{field}"
    return section_path, f"Updated {update['entity_name']}: {field} = {update['new_value']}"


def _create_backlog_item(assessment: Assessment, update: dict):
    new_value = update["new_value"]
    values = new_value if isinstance(new_value, dict) else {"description": str(new_value or "")}
    project_id = values.get("project_id")
    if not project_id:
        raise UpdateRejected(f"No project given for new item {update['entity_name']}")
    project = Project.objects.get(id=project_id, assessment=assessment)

    item = BacklogItem(
        project=project,
        item_type=CREATE_TYPES[update["type"]],
        title=values.get("title") or update["entity_name"],
        description=values.get("description") or "",
        priority=values.get("priority") or "medium",
        story_points=values.get("story_points"),
    )
    item.full_clean()
    item.save()
    label = "PBI" if item.item_type == BacklogItem.ItemType.PBI else "user story"
    return f"{update['type']}.{update['entity_name']}", f"Created new {label}: {update['entity_name']}"


def apply_journey_updates(
    assessment: Assessment, conversation: Conversation, message: Message | None, updates: list[dict], user=None
) -> list[str]:
    """Apply accepted suggestions one by one. A failing update is logged and skipped; the rest still apply."""
    applied_by = _applied_by(assessment, user)
    applied = []
    for update in updates:
        try:
            with transaction.atomic():
                if update["action"] == "create" and update["type"] in CREATE_TYPES:
                    section_path, description = _create_backlog_item(assessment, update)
                    old_value = None
                elif update["action"] == "update":
                    section_path, description = _apply_field_update(assessment, update)
                    old_value = update.get("old_value")
                else:
                    raise UpdateRejected(f"Cannot {update['action']} {update['type']}")

                AppliedUpdate.objects.create(
                    assessment=assessment,
                    conversation=conversation,
                    message=message,
                    update_type=update["type"],
                    section_path=section_path,
                    old_value=old_value,
                    new_value=update["new_value"],
                    reason=update.get("reason") or "",
                    applied_by=applied_by,
                )
        except (UpdateRejected, ObjectDoesNotExist, ValidationError, DatabaseError, ValueError, TypeError) as e:
            logger.error(f"Failed to apply {update['type']} update for {update.get('entity_name')}: {e}")
            continue
        applied.append(description)

    logger.info(f"Applied {len(applied)} of {len(updates)} updates to assessment {assessment.id}")
    return applied


def parse_section_path(section_path: str) -> list:
    """`quick_wins[0].description` -> ["quick_wins", 0, "description"]"""
    keys = []
    for part in section_path.split("."):
        match = SECTION_PATH_PART.match(part)
        if not match:
            raise UpdateRejected(f"Invalid section path {section_path}")
        keys.append(match.group(1))
        if match.group(2) is not None:
            keys.append(int(match.group(2)))
    return keys


def _set_section_value(results: AssessmentResults, keys: list, new_value):
    """Write `new_value` at the parsed path and return what was there before."""
    section = keys[0]
    if section not in RESULTS_SECTIONS:
        raise UpdateRejected(f"Section {section} cannot be changed")
    if len(keys) == 1:
        old_value = getattr(results, section)
        setattr(results, section, new_value)
        return old_value

    value = copy.deepcopy(getattr(results, section))
    container = value
    for key in keys[1:-1]:
        container = container[key]
    last = keys[-1]
    if isinstance(container, dict) and isinstance(last, str):
        old_value = container.get(last)
    elif isinstance(container, list) and isinstance(last, int):
        old_value = container[last]
    else:
        raise UpdateRejected(f"Path {keys} does not match the stored results")
    container[last] = new_value
    setattr(results, section, value)
    return old_value


def apply_results_updates(
    assessment: Assessment, conversation: Conversation, message: Message | None, updates: list[dict], user=None
) -> list[str]:
    """Apply accepted general chat suggestions to the assessment results, one section path at a time."""
    if not AssessmentResults.objects.filter(assessment=assessment).exists():
        raise ChatContextNotFound(f"Assessment results not found for {assessment.id}")

    applied_by = _applied_by(assessment, user)
    applied = []
    for update in updates:
        section_path = update["section_path"]
        try:
            with transaction.atomic():
                results = AssessmentResults.objects.select_for_update().get(assessment=assessment)
                keys = parse_section_path(section_path)
                old_value = _set_section_value(results, keys, update["new_value"])
                results.full_clean()
                results.save(update_fields=[keys[0], "updated_at"])

                AppliedUpdate.objects.create(
                    assessment=assessment,
                    conversation=conversation,
                    message=message,
                    update_type=update["update_type"],
                    section_path=section_path,
                    old_value=old_value,
                    new_value=update["new_value"],
                    reason=update.get("reason") or "",
                    applied_by=applied_by,
                )
        except (UpdateRejected, ObjectDoesNotExist, ValidationError, DatabaseError, LookupError, TypeError) as e:
            logger.error(f"Failed to apply {update['update_type']} update to {section_path}: {e}")
            continue
        applied.append(f"Updated {section_path}")

    logger.info(f"Applied {len(applied)} of {len(updates)} results updates to assessment {assessment.id}")
    return applied
