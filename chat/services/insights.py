import json
import logging
import re
from dataclasses import dataclass, field
from enum import Enum

from rest_framework import serializers

from assessment.models import AssessmentResults

from .completion import chat_completion
from .prompts import JourneyData

logger = logging.getLogger(__name__)

INSIGHT_TYPES = ("project", "pbi", "user_story", "sprint", "risk", "new_project", "new_pbi", "new_user_story")
INSIGHT_ACTIONS = ("update", "create")
RESULTS_INSIGHT_TYPES = ("tool_recommendation", "timeline", "quick_win", "roadmap", "priority")
RESULTS_SECTIONS = (
    "executive_summary",
    "maturity_assessment",
    "quick_wins",
    "tier1_citizen_led",
    "tier2_hybrid",
    "tier3_technical",
    "roadmap",
    "long_term_vision",
)
CONFIDENCE_THRESHOLD = 0.7
INSIGHT_MAX_TOKENS = 2048

JSON_ARRAY_PATTERN = re.compile(r"\[[\s\S]*\]")


@dataclass(frozen=True)
class JourneySummary:
    """Counts only; the extractor gets scale context, never the records themselves."""

    projects: int = 0
    pbis: int = 0
    sprints: int = 0
    risks: int = 0

    @classmethod
    def from_journey(cls, journey: JourneyData) -> "JourneySummary":
        return cls(
            projects=len(journey.projects),
            pbis=len(journey.backlog_items),
            sprints=len(journey.sprints),
            risks=len(journey.risks),
        )


class ExtractionStatus(str, Enum):
    FOUND = "found"
    NONE = "none"
    FAILED = "failed"


@dataclass
class ExtractionResult:
    status: ExtractionStatus
    insights: list[dict] = field(default_factory=list)
    error: str | None = None


class SuggestedUpdateSerializer(serializers.Serializer):
    entityId = serializers.CharField(allow_null=True, allow_blank=True, required=False, default=None)
    entityName = serializers.CharField()
    field = serializers.CharField(allow_null=True, required=False, default=None)
    currentValue = serializers.JSONField(allow_null=True, required=False, default=None)
    suggestedValue = serializers.JSONField(allow_null=True)
    reason = serializers.CharField(allow_blank=True, required=False, default="")


class InsightSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=INSIGHT_TYPES)
    action = serializers.ChoiceField(choices=INSIGHT_ACTIONS)
    suggestedUpdate = SuggestedUpdateSerializer()
    confidence = serializers.FloatField(min_value=0, max_value=1, required=False, allow_null=True, default=None)


class SectionUpdateSerializer(serializers.Serializer):
    sectionPath = serializers.CharField(max_length=255)
    currentValue = serializers.JSONField(allow_null=True, required=False, default=None)
    suggestedValue = serializers.JSONField(allow_null=True)
    reason = serializers.CharField(allow_blank=True, required=False, default="")


class ResultsInsightSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=RESULTS_INSIGHT_TYPES)
    summary = serializers.CharField(allow_blank=True, required=False, default="")
    suggestedUpdate = SectionUpdateSerializer()
    confidence = serializers.FloatField(min_value=0, max_value=1, required=False, allow_null=True, default=None)


def build_insight_prompt(text: str, summary: JourneySummary) -> str:
    return f"""You are an expert at analyzing AI assistant responses and extracting actionable insights for \
transformation journey management.

Given the following AI assistant response, identify any SPECIFIC, ACTIONABLE recommendations that could be \
directly applied to the transformation journey data.

JOURNEY CONTEXT:
- Projects: {summary.projects} total
- PBIs: {summary.pbis} total
- Sprints: {summary.sprints} total
- Risks: {summary.risks} total

AI ASSISTANT'S RESPONSE:
{text}

TASK: Extract ONLY concrete, actionable suggestions from the response that can be automatically applied. For each \
suggestion, provide:

1. **type**: The entity type (project, pbi, user_story, sprint, risk, new_pbi, new_user_story, new_project)
2. **action**: Either "update" (modify existing) or "create" (create new)
3. **suggestedUpdate**:
   - entityId: The ID of the entity to update (null if creating new)
   - entityName: A clear name/title for the entity
   - field: The field to update (e.g., "status", "priority", "progress_percentage", "story_points", "goal")
   - currentValue: The current value (or null if creating new)
   - suggestedValue: The new recommended value
   - reason: A brief explanation of why this change is recommended
4. **confidence**: 0.0-1.0 (always required), set to 0.8+ only if the suggestion is specific and implementable

IMPORTANT:
- ONLY extract suggestions that are EXPLICIT in the assistant's response
- Do NOT infer or make up suggestions that weren't clearly stated
- If the assistant was just answering a question or providing information without recommendations, return an \
empty array
- Focus on suggestions that modify projects, PBIs, sprints, or risks
- For status changes, only extract if the assistant gave SPECIFIC new status for SPECIFIC items
- Return a JSON array of insights

Return ONLY valid JSON in this exact format:
[
  {{
    "type": "project",
    "action": "update",
    "suggestedUpdate": {{
      "entityId": "actual-project-id",
      "entityName": "Project Title",
      "field": "status",
      "currentValue": "not_started",
      "suggestedValue": "in_progress",
      "reason": "Team has resources available and dependencies are resolved"
    }},
    "confidence": 0.9
  }}
]

If there are no actionable suggestions, return: []"""


def results_context(results: AssessmentResults) -> dict:
    return {
        "company_name": results.company_name,
        **{section: getattr(results, section) for section in RESULTS_SECTIONS},
    }


def build_results_insight_prompt(text: str, results: AssessmentResults) -> str:
    return f"""Analyze this AI assistant message and detect if it contains actionable insights that could update \
the user's assessment results.

Message:
{text}

Current Assessment Context:
{json.dumps(results_context(results), indent=2, default=str)}

Identify:
1. Does this message suggest changes to tool recommendations, timelines, quick wins, roadmap items, priorities, \
or implementation details?
2. What specific updates are suggested? Look for:
   - New or modified quick win titles, descriptions, timelines, or priorities
   - Tool recommendation changes (add/remove/modify tools)
   - Timeline adjustments (estimated hours, completion dates)
   - Roadmap modifications (phases, deliverables, milestones)
   - Priority changes (reordering, importance shifts)
3. What's the reason/context for each update?

IMPORTANT:
- ONLY extract suggestions that are EXPLICIT in the message, do not make up new ones
- If the message provides improvements, clarifications, or modifications to existing content, treat it as actionable
- sectionPath must point into the context above, e.g. "quick_wins[0].description" or "tier1_citizen_led[0].name"
- confidence is always required, set it to 0.8+ only if the message provides specific, implementable changes

Return ONLY a valid JSON array in this exact format:
[
  {{
    "type": "quick_win",
    "summary": "Brief summary of the insight",
    "suggestedUpdate": {{
      "sectionPath": "quick_wins[0].description",
      "currentValue": "...",
      "suggestedValue": "...",
      "reason": "Why this change is suggested"
    }},
    "confidence": 0.9
  }}
]

type is one of: {', '.join(RESULTS_INSIGHT_TYPES)}.
If there are no actionable suggestions, return: []"""


def _parse_insights(raw: str) -> list:
    match = JSON_ARRAY_PATTERN.search(raw or "")
    if not match:
        raise ValueError("No JSON array found in model output")
    parsed = json.loads(match.group(0))
    if not isinstance(parsed, list):
        raise ValueError("Model output is not a JSON array")
    return parsed


def _label(insight: dict) -> str:
    update = insight["suggestedUpdate"]
    return update.get("entityName") or update.get("sectionPath")


def _validated(items: list, serializer_class) -> list[dict]:
    insights = []
    for item in items:
        serializer = serializer_class(data=item)
        if not serializer.is_valid():
            logger.warning(f"Dropping malformed insight {item}: {serializer.errors}")
            continue
        insight = json.loads(json.dumps(serializer.validated_data))
        confidence = insight["confidence"]
        if confidence is None or confidence <= CONFIDENCE_THRESHOLD:
            logger.info(f"Dropping low confidence ({confidence}) insight for {_label(insight)}")
            continue
        insights.append(insight)
    return insights


def _conflict_key(index: int, insight: dict) -> tuple:
    update = insight["suggestedUpdate"]
    if update.get("sectionPath"):
        return ("section", update["sectionPath"])
    if insight.get("action") == "update" and update.get("field"):
        return (insight["type"], update.get("entityId") or update["entityName"], update["field"])
    return ("create", index)


def _resolve_conflicts(insights: list[dict]) -> list[dict]:
    """Two updates to the same target in one turn: the later one wins."""
    resolved: dict[tuple, dict] = {}
    for index, insight in enumerate(insights):
        key = _conflict_key(index, insight)
        if key in resolved:
            logger.warning(
                f"Conflicting insights for {key}: {resolved[key]['suggestedUpdate']['suggestedValue']} replaced by "
                f"{insight['suggestedUpdate']['suggestedValue']}"
            )
            del resolved[key]
        resolved[key] = insight
    return list(resolved.values())


def _extract(text: str, prompt: str, serializer_class) -> ExtractionResult:
    if not text or not text.strip():
        return ExtractionResult(ExtractionStatus.NONE)

    try:
        raw = chat_completion(prompt, max_tokens=INSIGHT_MAX_TOKENS, temperature=0)
        items = _parse_insights(raw)
    except Exception as e:
        logger.error(f"Insight extraction failed: {e}")
        return ExtractionResult(ExtractionStatus.FAILED, error=str(e))

    insights = _resolve_conflicts(_validated(items, serializer_class))
    logger.info(f"Extracted {len(insights)} insights from {len(items)} candidates")
    if not insights:
        return ExtractionResult(ExtractionStatus.NONE)
    return ExtractionResult(ExtractionStatus.FOUND, insights)


def extract_insights(text: str, summary: JourneySummary) -> ExtractionResult:
    """Turn a journey chat reply into suggested data changes. Never raises and never applies anything."""
    return _extract(text, build_insight_prompt(text, summary), InsightSerializer)


def extract_results_insights(text: str, results: AssessmentResults) -> ExtractionResult:
    """Same as `extract_insights`, for general chat replies: suggestions address a section path of the results."""
    return _extract(text, build_results_insight_prompt(text, results), ResultsInsightSerializer)
