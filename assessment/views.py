import logging
from dataclasses import asdict

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import (
    AnswersPatchSerializer,
    AssessmentDraftSerializer,
    AssessmentResponseSerializer,
    AssessmentSummarySerializer,
    DraftSyncSerializer,
    SubmitAssessmentSerializer,
)
from .services.answers import get_answers, update_answers
from .services.drafts import delete_draft, get_draft, sync_draft
from .services.exceptions import AssessmentNotFound, SubmissionError
from .services.submission import submit_assessment

logger = logging.getLogger(__name__)


def error_response(error: str, status_code: int, details=None) -> Response:
    body = {"error": error}
    if details is not None:
        body["details"] = details
    return Response(body, status=status_code)


def get_client_ip(request) -> str | None:
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.headers.get("X-Real-Ip") or request.META.get("REMOTE_ADDR")


class SubmitAssessmentView(APIView):
    def post(self, request):
        serializer = SubmitAssessmentSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response("Invalid assessment submission", status.HTTP_400_BAD_REQUEST, serializer.errors)
        submission = serializer.validated_data
        try:
            assessment = submit_assessment(
                asdict(submission.assessment),
                [asdict(r) for r in submission.responses],
                user=request.user,
                ip_address=get_client_ip(request),
                user_agent=request.headers.get("User-Agent", ""),
            )
        except SubmissionError as e:
            return error_response("Failed to save assessment", status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))
        return Response({"success": True, "assessment_id": str(assessment.id)}, status=status.HTTP_201_CREATED)


class AssessmentAnswersView(APIView):
    def get(self, request, assessment_id):
        try:
            assessment, responses = get_answers(assessment_id)
        except AssessmentNotFound:
            return error_response("Assessment not found", status.HTTP_404_NOT_FOUND)
        return Response(
            {
                "assessment": AssessmentSummarySerializer(assessment).data,
                "responses": AssessmentResponseSerializer(responses, many=True).data,
            }
        )

    def patch(self, request, assessment_id):
        serializer = AnswersPatchSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response("Updates array is required", status.HTTP_400_BAD_REQUEST, serializer.errors)
        try:
            updated = update_answers(assessment_id, [asdict(u) for u in serializer.validated_data.updates])
        except AssessmentNotFound:
            return error_response("Assessment not found", status.HTTP_404_NOT_FOUND)
        return Response({"success": True, "updated": updated})


class DraftSyncView(APIView):
    def get(self, request):
        if not request.user.is_authenticated:
            return error_response("Unauthorized - Please sign in", status.HTTP_401_UNAUTHORIZED)
        session_id = request.query_params.get("session_id")
        if not session_id:
            return error_response("session_id query parameter is required", status.HTTP_400_BAD_REQUEST)
        draft = get_draft(request.user, session_id)
        if draft is None:
            return Response({"success": True, "draft": None, "message": "No draft found for this session"})
        return Response({"success": True, "draft": AssessmentDraftSerializer(draft).data})

    def post(self, request):
        if not request.user.is_authenticated:
            return error_response("Unauthorized - Please sign in to sync drafts", status.HTTP_401_UNAUTHORIZED)
        serializer = DraftSyncSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response(
                "Missing required fields: session_id, answers, current_step",
                status.HTTP_400_BAD_REQUEST,
                serializer.errors,
            )
        payload = serializer.validated_data
        result = sync_draft(request.user, payload.session_id, payload.answers, payload.current_step, payload.timestamp)
        if result.conflict:
            return Response(
                {
                    "success": True,
                    "conflict": True,
                    "server_draft": {
                        "answers": result.draft.answers,
                        "current_step": result.draft.current_step,
                        "timestamp": result.draft.updated_at.isoformat(),
                    },
                    "message": "Server has newer draft",
                }
            )
        return Response(
            {
                "success": True,
                "conflict": False,
                "draft": AssessmentDraftSerializer(result.draft).data,
                "message": "Draft synced successfully",
            }
        )


class DraftDeleteView(APIView):
    def delete(self, request):
        if not request.user.is_authenticated:
            return error_response("Unauthorized - Please sign in", status.HTTP_401_UNAUTHORIZED)
        session_id = request.query_params.get("session_id") or request.data.get("session_id")
        if not session_id:
            return error_response("session_id is required", status.HTTP_400_BAD_REQUEST)
        deleted = delete_draft(request.user, session_id)
        return Response({"success": True, "deleted": deleted})
