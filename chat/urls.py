from django.urls import path
from .views import (
    ApplyJourneyUpdatesView,
    ApplyResultsUpdatesView,
    AssessmentChatView,
    DetectInsightsView,
    HealthCheckView,
    JourneyChatView,
    JourneyDetectInsightsView,
)

app_name = "chat"

urlpatterns = [
    path("health/", HealthCheckView.as_view(), name="health-check"),
    path("assessment/<uuid:assessment_id>/chat", AssessmentChatView.as_view(), name="chat"),
    path(
        "assessment/<uuid:assessment_id>/chat/detect-insights", DetectInsightsView.as_view(), name="detect-insights"
    ),
    path(
        "assessment/<uuid:assessment_id>/chat/apply-update",
        ApplyResultsUpdatesView.as_view(),
        name="apply-update",
    ),
    path("assessment/<uuid:assessment_id>/journey-chat", JourneyChatView.as_view(), name="journey-chat"),
    path(
        "assessment/<uuid:assessment_id>/journey-chat/detect-insights",
        JourneyDetectInsightsView.as_view(),
        name="journey-detect-insights",
    ),
    path(
        "assessment/<uuid:assessment_id>/journey-chat/apply-update",
        ApplyJourneyUpdatesView.as_view(),
        name="journey-apply-update",
    ),
]
