import logging

from django.contrib import admin
from import_export.admin import ImportExportModelAdmin
from simple_history.admin import SimpleHistoryAdmin

from .models import (
    Assessment,
    AssessmentDraft,
    AssessmentResponse,
    AssessmentResults,
    BacklogItem,
    Project,
    Risk,
    Sprint,
)

log = logging.getLogger(__name__)


class BaseAdmin(SimpleHistoryAdmin):
    # base admin class that logs all actions
    def render_change_form(self, request, context, add=False, change=False, form_url="", obj=None):
        if obj:
            log.info(f"Admin Site: User {request.user} viewed {self.model.__name__} {obj.pk}")
        return super().render_change_form(request, context, add, change, form_url, obj)

    def changelist_view(self, request, extra_context=None):
        log.info(f"Admin Site: User {request.user} viewed {self.model.__name__} list")
        return super().changelist_view(request, extra_context)


class ReadonlyAdmin(BaseAdmin):
    # submitted data is only editable by superusers
    def has_change_permission(self, request, obj=None):
        if request.user.is_superuser:
            return super().has_change_permission(request, obj)
        return False


class EditableAdmin(BaseAdmin, ImportExportModelAdmin):
    pass


class ReadonlyTabularInline(admin.TabularInline):
    fields: tuple = ()
    extra = 0
    can_delete = False
    classes = ["collapse"]

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False


class AssessmentResponseInline(ReadonlyTabularInline):
    model = AssessmentResponse
    fields = ("step_number", "question_key", "question_text", "answer_value")
    readonly_fields = fields
    ordering = ("step_number", "question_key")


class ProjectInline(ReadonlyTabularInline):
    model = Project
    fields = ("title", "status", "progress_percentage", "actual_annual_savings")
    readonly_fields = fields
    ordering = ("created_at",)


@admin.register(Assessment)
class AssessmentAdmin(ReadonlyAdmin):
    list_display = ("id", "company_name", "industry", "company_size", "status", "user", "created_at")
    list_filter = ("status", "industry", "company_size")
    search_fields = ("company_name", "email", "session_id")
    inlines = [AssessmentResponseInline, ProjectInline]


@admin.register(AssessmentResponse)
class AssessmentResponseAdmin(ReadonlyAdmin):
    list_display = ("assessment", "step_number", "question_key", "created_at")
    list_filter = ("step_number",)
    search_fields = ("question_key", "assessment__company_name")


@admin.register(AssessmentResults)
class AssessmentResultsAdmin(EditableAdmin):
    list_display = ("assessment", "company_name", "updated_at")


@admin.register(AssessmentDraft)
class AssessmentDraftAdmin(ReadonlyAdmin):
    list_display = ("session_id", "user", "current_step", "updated_at")


@admin.register(Project)
class ProjectAdmin(EditableAdmin):
    list_display = ("title", "assessment", "status", "progress_percentage", "actual_annual_savings")
    list_filter = ("status", "priority")
    search_fields = ("title",)


@admin.register(Sprint)
class SprintAdmin(EditableAdmin):
    list_display = ("name", "project", "status", "start_date", "end_date")


@admin.register(BacklogItem)
class BacklogItemAdmin(EditableAdmin):
    list_display = ("title", "project", "item_type", "status", "sprint")
    list_filter = ("status", "item_type")


@admin.register(Risk)
class RiskAdmin(EditableAdmin):
    list_display = ("title", "assessment", "severity", "status")
    list_filter = ("severity", "status")
