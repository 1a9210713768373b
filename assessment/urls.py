from django.urls import path
from .views import AssessmentAnswersView, DraftDeleteView, DraftSyncView, SubmitAssessmentView

app_name = "assessment"

urlpatterns = [
    path("submit", SubmitAssessmentView.as_view(), name="submit"),
    path("drafts/sync", DraftSyncView.as_view(), name="drafts-sync"),
    path("drafts/delete", DraftDeleteView.as_view(), name="drafts-delete"),
    path("<uuid:assessment_id>/answers", AssessmentAnswersView.as_view(), name="answers"),
]
