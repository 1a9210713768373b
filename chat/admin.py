from django.contrib import admin
from django.db.models import Count
from django.urls import reverse
from django.utils.html import format_html

from assessment.admin import ReadonlyAdmin, ReadonlyTabularInline

from .models import AppliedUpdate, Conversation, Message


class MessageInline(ReadonlyTabularInline):
    model = Message
    fields = ("role", "content", "is_partial", "input_tokens", "output_tokens", "has_insights", "created_at")
    readonly_fields = fields
    ordering = ("created_at",)

    @admin.display(description="Insights", boolean=True)
    def has_insights(self, obj):
        return bool(obj.metadata and obj.metadata.get("hasActionableInsights"))


@admin.register(Conversation)
class ConversationAdmin(ReadonlyAdmin):
    list_display = ("title", "assessment_link", "context_type", "user", "message_count", "updated_at")
    list_filter = ("context_type",)
    search_fields = ("title", "assessment__company_name")
    inlines = [MessageInline]

    def get_queryset(self, request):
        return super().get_queryset(request).annotate(_message_count=Count("messages"))

    @admin.display(description="Messages", ordering="_message_count")
    def message_count(self, obj):
        return obj._message_count

    @admin.display(description="Assessment")
    def assessment_link(self, obj):
        url = reverse("admin:assessment_assessment_change", args=[obj.assessment_id])
        return format_html('<a href="{}">{}</a>', url, obj.assessment)


@admin.register(Message)
class MessageAdmin(ReadonlyAdmin):
    list_display = ("__str__", "conversation", "role", "is_partial", "model_version", "created_at")
    list_filter = ("role", "is_partial")
    search_fields = ("content",)


@admin.register(AppliedUpdate)
class AppliedUpdateAdmin(ReadonlyAdmin):
    list_display = ("section_path", "update_type", "assessment", "applied_by", "created_at")
    list_filter = ("update_type",)
    search_fields = ("section_path", "reason")
