import logging

from django.http import StreamingHttpResponse
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from assessment.models import AssessmentResults
from assessment.services.answers import get_assessment
from assessment.services.exceptions import AssessmentNotFound
from assessment.views import error_response

from .models import ContextType, Conversation, Message
from .serializers import (
    ApplyResultsUpdatesSerializer,
    ApplyUpdatesSerializer,
    ChatRequestSerializer,
    ConversationSerializer,
    DetectInsightsSerializer,
)
from .services.crud import list_conversations
from .services.exceptions import ChatAccessDenied, ChatContextNotFound, ConversationNotFound, LLMConfigurationError
from .services.insights import ExtractionStatus
from .services.pipeline import check_access, prepare_chat_turn, stream_chat_turn
from .services.updates import apply_journey_updates, apply_results_updates
from .tasks import detect_insights_for_message

logger = logging.getLogger(__name__)


class HealthCheckView(APIView):
    def get(self, request):
        return Response({"message": "Service is healthy", "status": "ok", "code": 200}, status=status.HTTP_200_OK)


class BaseChatView(APIView):
    """POST streams one chat turn as server-sent events, GET lists earlier conversations."""

    context_type = ContextType.GENERAL

    def get(self, request, assessment_id):
        try:
            assessment = get_assessment(assessment_id)
        except AssessmentNotFound:
            return error_response("Assessment not found", status.HTTP_404_NOT_FOUND)
        try:
            conversations = list_conversations(assessment, request.user, self.context_type)
            data = ConversationSerializer(conversations, many=True).data
        except Exception as e:
            logger.exception(f"Failed to fetch chat history for assessment {assessment_id}")
            return error_response("Failed to fetch chat history", status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))
        return Response({"success": True, "conversations": data})

    def post(self, request, assessment_id):
        serializer = ChatRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response("Message is required", status.HTTP_400_BAD_REQUEST, serializer.errors)
        payload = serializer.validated_data

        try:
            turn = prepare_chat_turn(
                assessment_id, self.context_type, payload.message, request.user, payload.conversation_id
            )
        except LLMConfigurationError as e:
            logger.error(f"Chat request for assessment {assessment_id} rejected: {e}")
            return error_response("AI API key not configured", status.HTTP_500_INTERNAL_SERVER_ERROR)
        except ChatContextNotFound as e:
            return error_response("Assessment or results not found", status.HTTP_404_NOT_FOUND, str(e))
        except ChatAccessDenied as e:
            return error_response("Not allowed to chat about this assessment", status.HTTP_403_FORBIDDEN, str(e))
        except ConversationNotFound as e:
            return error_response("Conversation not found", status.HTTP_404_NOT_FOUND, str(e))
        except Exception as e:
            logger.exception(f"Chat request for assessment {assessment_id} failed")
            return error_response("Failed to process chat message", status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))

        response = StreamingHttpResponse(stream_chat_turn(turn), content_type="text/event-stream")
        response["Cache-Control"] = "no-cache"
        response["X-Accel-Buffering"] = "no"
        return response


class AssessmentChatView(BaseChatView):
    context_type = ContextType.GENERAL


class JourneyChatView(BaseChatView):
    context_type = ContextType.JOURNEY


class BaseDetectInsightsView(APIView):
    """Re-run extraction for a stored assistant reply."""

    context_type = ContextType.GENERAL
    requires_results = False

    def post(self, request, assessment_id):
        serializer = DetectInsightsSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response("messageId is required", status.HTTP_400_BAD_REQUEST, serializer.errors)

        messages = Message.objects.select_related("conversation__assessment").filter(
            role=Message.Role.ASSISTANT,
            conversation__assessment_id=assessment_id,
            conversation__context_type=self.context_type,
        )
        try:
            message = messages.get(id=serializer.validated_data["message_id"])
        except Message.DoesNotExist:
            return error_response("Message not found", status.HTTP_404_NOT_FOUND)
        try:
            check_access(message.conversation.assessment, request.user)
        except ChatAccessDenied as e:
            return error_response("Not allowed to access this assessment", status.HTTP_403_FORBIDDEN, str(e))
        if self.requires_results and not AssessmentResults.objects.filter(assessment_id=assessment_id).exists():
            return error_response("Assessment results not found", status.HTTP_404_NOT_FOUND)

        result = detect_insights_for_message(message)
        if result.status == ExtractionStatus.FAILED:
            return Response(
                {"hasActionableInsights": False, "insights": [], "error": "Failed to analyze message"},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        return Response({"hasActionableInsights": bool(result.insights), "insights": result.insights})


class DetectInsightsView(BaseDetectInsightsView):
    context_type = ContextType.GENERAL
    requires_results = True


class JourneyDetectInsightsView(BaseDetectInsightsView):
    context_type = ContextType.JOURNEY


class BaseApplyUpdatesView(APIView):
    """Apply insights the user accepted. Each update succeeds or fails on its own."""

    serializer_class = ApplyUpdatesSerializer

    def apply(self, assessment, conversation, message, updates, user) -> list[str]:
        raise NotImplementedError

    def post(self, request, assessment_id):
        serializer = self.serializer_class(data=request.data)
        if not serializer.is_valid():
            return error_response("Invalid updates", status.HTTP_400_BAD_REQUEST, serializer.errors)
        data = serializer.validated_data

        try:
            assessment = get_assessment(assessment_id)
            check_access(assessment, request.user)
        except AssessmentNotFound:
            return error_response("Assessment not found", status.HTTP_404_NOT_FOUND)
        except ChatAccessDenied as e:
            return error_response("Not allowed to update this assessment", status.HTTP_403_FORBIDDEN, str(e))

        try:
            conversation = Conversation.objects.get(id=data["conversation_id"], assessment=assessment)
        except Conversation.DoesNotExist:
            return error_response("Conversation not found", status.HTTP_404_NOT_FOUND)
        message = conversation.messages.filter(id=data["message_id"]).first() if data["message_id"] else None

        try:
            applied = self.apply(assessment, conversation, message, data["updates"], request.user)
        except ChatContextNotFound as e:
            return error_response("Assessment results not found", status.HTTP_404_NOT_FOUND, str(e))
        return Response(
            {
                "success": True,
                "appliedUpdates": applied,
                "message": f"Successfully applied {len(applied)} update(s)",
            }
        )


class ApplyResultsUpdatesView(BaseApplyUpdatesView):
    serializer_class = ApplyResultsUpdatesSerializer

    def apply(self, assessment, conversation, message, updates, user):
        return apply_results_updates(assessment, conversation, message, updates, user)


class ApplyJourneyUpdatesView(BaseApplyUpdatesView):
    serializer_class = ApplyUpdatesSerializer

    def apply(self, assessment, conversation, message, updates, user):
        return apply_journey_updates(assessment, conversation, message, updates, user)
