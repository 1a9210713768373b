from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from rest_framework import serializers
from rest_framework_dataclasses.serializers import DataclassSerializer

from .models import Assessment, AssessmentDraft, AssessmentResponse

_BLANKABLE = (
    "company_name",
    "company_size",
    "industry",
    "user_role",
    "technical_capability",
    "transformation_approach",
    "contact_name",
    "email",
    "referrer",
)


@dataclass
class AssessmentPayload:
    session_id: str
    company_name: str = ""
    company_size: str = ""
    industry: str = ""
    operational_areas: list[str] = field(default_factory=list)
    user_role: str = ""
    technical_capability: str = ""
    team_comfort_level: list[str] = field(default_factory=list)
    existing_tools: dict[str, list[str]] = field(default_factory=dict)
    change_readiness_score: Optional[int] = None
    transformation_approach: str = ""
    has_champion: bool = False
    contact_name: str = ""
    email: str = ""
    wants_consultation: bool = False
    current_step: Optional[int] = None
    referrer: str = ""


@dataclass
class ResponsePayload:
    question_key: str
    answer_value: Any = None
    step_number: Optional[int] = None
    question_text: str = ""


@dataclass
class SubmitAssessment:
    assessment: AssessmentPayload
    responses: list[ResponsePayload]


@dataclass
class AnswerUpdate:
    question_key: str
    answer_value: Any = None


@dataclass
class AnswersPatch:
    updates: list[AnswerUpdate]


@dataclass
class DraftSync:
    session_id: str
    answers: dict
    current_step: int
    timestamp: Optional[datetime] = None


class AssessmentPayloadSerializer(DataclassSerializer):
    class Meta:
        dataclass = AssessmentPayload
        extra_kwargs = {
            **{name: {"allow_blank": True} for name in _BLANKABLE},
            "change_readiness_score": {"min_value": 1, "max_value": 5},
        }


class ResponsePayloadSerializer(DataclassSerializer):
    answer_value = serializers.JSONField(allow_null=True, required=False)

    class Meta:
        dataclass = ResponsePayload
        extra_kwargs = {"question_text": {"allow_blank": True}}


class SubmitAssessmentSerializer(DataclassSerializer):
    assessment = AssessmentPayloadSerializer()
    responses = ResponsePayloadSerializer(many=True)

    class Meta:
        dataclass = SubmitAssessment


class AnswerUpdateSerializer(DataclassSerializer):
    answer_value = serializers.JSONField(allow_null=True, required=False)

    class Meta:
        dataclass = AnswerUpdate


class AnswersPatchSerializer(DataclassSerializer):
    updates = AnswerUpdateSerializer(many=True, allow_empty=False)

    class Meta:
        dataclass = AnswersPatch


class DraftSyncSerializer(DataclassSerializer):
    answers = serializers.DictField()

    class Meta:
        dataclass = DraftSync
        extra_kwargs = {"current_step": {"min_value": 1}}


class AssessmentSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Assessment
        fields = ["id", "company_name", "company_size", "industry", "user_role", "created_at", "updated_at"]


class AssessmentResponseSerializer(serializers.ModelSerializer):
    class Meta:
        model = AssessmentResponse
        fields = ["id", "step_number", "question_key", "question_text", "answer_value", "created_at"]


class AssessmentDraftSerializer(serializers.ModelSerializer):
    class Meta:
        model = AssessmentDraft
        fields = ["id", "session_id", "answers", "current_step", "updated_at"]
