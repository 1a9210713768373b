from django.conf import settings
from django.db import models
from django.utils import timezone

from assessment.models import Assessment, ModelBase, ModelBaseWithUuidId

CONVERSATION_TITLE_LENGTH = 100


class ContextType(models.TextChoices):
    GENERAL = "general", "General"
    JOURNEY = "journey", "Journey"


class Conversation(ModelBaseWithUuidId):
    assessment = models.ForeignKey(Assessment, on_delete=models.CASCADE, related_name="conversations")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="conversations"
    )
    title = models.CharField(max_length=CONVERSATION_TITLE_LENGTH, blank=True, default="")
    context_type = models.CharField(max_length=20, choices=ContextType.choices, default=ContextType.GENERAL)
    updated_at = models.DateTimeField(default=timezone.now, db_index=True)

    def touch(self):
        self.updated_at = timezone.now()
        self.save(update_fields=["updated_at"])

    def __str__(self):
        return self.title or str(self.id)

    class Meta:
        ordering = ["-updated_at"]


class Message(ModelBaseWithUuidId):
    class Role(models.TextChoices):
        USER = "user", "User"
        ASSISTANT = "assistant", "Assistant"

    conversation = models.ForeignKey(Conversation, on_delete=models.CASCADE, related_name="messages")
    role = models.CharField(max_length=20, choices=Role.choices)
    content = models.TextField()
    input_tokens = models.IntegerField(null=True, blank=True)
    output_tokens = models.IntegerField(null=True, blank=True)
    model_version = models.CharField(max_length=100, blank=True, default="")
    # set when the stream failed or the client went away before the reply finished
    is_partial = models.BooleanField(default=False)
    # extracted insights, attached after the reply is stored
    metadata = models.JSONField(null=True, blank=True)

    def __str__(self):
        return f"{self.role}: {self.content[:50]}"

    class Meta:
        ordering = ["created_at"]


class AppliedUpdate(ModelBase):
    """Audit row for a suggested change that the user accepted and that was applied."""

    assessment = models.ForeignKey(Assessment, on_delete=models.CASCADE, related_name="applied_updates")
    conversation = models.ForeignKey(
        Conversation, on_delete=models.SET_NULL, null=True, blank=True, related_name="applied_updates"
    )
    message = models.ForeignKey(
        Message, on_delete=models.SET_NULL, null=True, blank=True, related_name="applied_updates"
    )
    update_type = models.CharField(max_length=30)
    section_path = models.CharField(max_length=255)
    old_value = models.JSONField(null=True, blank=True)
    new_value = models.JSONField(null=True, blank=True)
    reason = models.TextField(blank=True, default="")
    applied_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="applied_updates"
    )

    def __str__(self):
        return f"{self.update_type} {self.section_path}"

    class Meta:
        ordering = ["-created_at"]
