import uuid
from dataclasses import dataclass
from typing import Optional

from rest_framework import serializers
from rest_framework_dataclasses.serializers import DataclassSerializer

from .models import Conversation, Message
from .services.insights import INSIGHT_ACTIONS, INSIGHT_TYPES, RESULTS_INSIGHT_TYPES


@dataclass
class ChatRequest:
    message: str
    conversation_id: Optional[uuid.UUID] = None


class ChatRequestSerializer(DataclassSerializer):
    class Meta:
        dataclass = ChatRequest


# request bodies below use the client's camelCase keys; `source` maps them to snake_case


class DetectInsightsSerializer(serializers.Serializer):
    messageId = serializers.UUIDField(source="message_id")
    conversationId = serializers.UUIDField(source="conversation_id", required=False, allow_null=True, default=None)


class AppliedUpdateItemSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=INSIGHT_TYPES)
    action = serializers.ChoiceField(choices=INSIGHT_ACTIONS)
    entityId = serializers.CharField(
        source="entity_id", required=False, allow_null=True, allow_blank=True, default=None
    )
    entityName = serializers.CharField(source="entity_name")
    field = serializers.CharField(required=False, allow_null=True, default=None)
    oldValue = serializers.JSONField(source="old_value", required=False, allow_null=True, default=None)
    newValue = serializers.JSONField(source="new_value", allow_null=True)
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class ApplyUpdatesSerializer(serializers.Serializer):
    messageId = serializers.UUIDField(source="message_id", required=False, allow_null=True, default=None)
    conversationId = serializers.UUIDField(source="conversation_id")
    updates = AppliedUpdateItemSerializer(many=True, allow_empty=False)


class ResultsUpdateItemSerializer(serializers.Serializer):
    updateType = serializers.ChoiceField(source="update_type", choices=RESULTS_INSIGHT_TYPES)
    sectionPath = serializers.CharField(source="section_path", max_length=255)
    oldValue = serializers.JSONField(source="old_value", required=False, allow_null=True, default=None)
    newValue = serializers.JSONField(source="new_value", allow_null=True)
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class ApplyResultsUpdatesSerializer(ApplyUpdatesSerializer):
    updates = ResultsUpdateItemSerializer(many=True, allow_empty=False)


class MessageSerializer(serializers.ModelSerializer):
    class Meta:
        model = Message
        fields = [
            "id",
            "role",
            "content",
            "input_tokens",
            "output_tokens",
            "model_version",
            "is_partial",
            "metadata",
            "created_at",
        ]


class ConversationSerializer(serializers.ModelSerializer):
    messages = MessageSerializer(many=True, read_only=True)

    class Meta:
        model = Conversation
        fields = ["id", "title", "context_type", "created_at", "updated_at", "messages"]
