import logging
import re
import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone
from simple_history.models import HistoricalRecords

from .answers import Answer, parse_answer

logger = logging.getLogger(__name__)

LEGACY_SAVINGS_PATTERN = re.compile(r"Actual Annual Savings: \$(\d+(?:\.\d+)?)([KM])", re.IGNORECASE)


def parse_legacy_savings(text: str | None) -> Decimal | None:
    """Parse the old free-text "Actual Annual Savings: $120K" marker into dollars."""
    if not text:
        return None
    match = LEGACY_SAVINGS_PATTERN.search(text)
    if not match:
        return None
    multiplier = 1_000_000 if match.group(2).upper() == "M" else 1_000
    return Decimal(match.group(1)) * multiplier


class ModelBase(models.Model):
    history = HistoricalRecords(inherit=True, excluded_fields=["created_at"])

    # created_at is duplicated in the HistoricalModel, but is useful for sorting. We don't
    # want to depend on the HistoricalModel for anything besides an audit log.
    created_at = models.DateTimeField(default=timezone.now, editable=False)

    class Meta:
        abstract = True


class ModelBaseWithUuidId(ModelBase):
    """Base class for models exposed by id over the API"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    class Meta:
        abstract = True


class Assessment(ModelBaseWithUuidId):
    class Status(models.TextChoices):
        IN_PROGRESS = "in_progress", "In progress"
        COMPLETED = "completed", "Completed"
        FAILED = "failed", "Failed"

    session_id = models.CharField(max_length=255, db_index=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="assessments"
    )
    company_name = models.CharField(max_length=255, blank=True, default="")
    company_size = models.CharField(max_length=50, blank=True, default="")
    industry = models.CharField(max_length=255, blank=True, default="")
    operational_areas = models.JSONField(default=list, blank=True)
    user_role = models.CharField(max_length=100, blank=True, default="")
    technical_capability = models.CharField(max_length=100, blank=True, default="")
    team_comfort_level = models.JSONField(default=list, blank=True)
    existing_tools = models.JSONField(default=dict, blank=True)
    change_readiness_score = models.PositiveSmallIntegerField(
        null=True, blank=True, validators=[MinValueValidator(1), MaxValueValidator(5)]
    )
    transformation_approach = models.CharField(max_length=100, blank=True, default="")
    has_champion = models.BooleanField(default=False)
    contact_name = models.CharField(max_length=255, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    wants_consultation = models.BooleanField(default=False)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.IN_PROGRESS)
    current_step = models.PositiveSmallIntegerField(default=1)
    completed_at = models.DateTimeField(null=True, blank=True)
    referrer = models.CharField(max_length=500, blank=True, default="")
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True, default="")
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.company_name or 'Anonymous'} ({self.session_id})"

    class Meta:
        ordering = ["-created_at"]


class AssessmentResponse(ModelBase):
    assessment = models.ForeignKey(Assessment, on_delete=models.CASCADE, related_name="responses")
    step_number = models.PositiveSmallIntegerField()
    question_key = models.CharField(max_length=100)
    question_text = models.TextField()
    answer_value = models.JSONField(null=True, blank=True)

    @property
    def answer(self) -> Answer:
        return parse_answer(self.question_key, self.answer_value)

    def __str__(self):
        return f"{self.assessment_id} - {self.question_key}"

    class Meta:
        ordering = ["step_number", "question_key"]
        unique_together = ["assessment", "question_key"]


class AssessmentResults(ModelBase):
    """Generated roadmap for an assessment. Produced downstream of submission."""

    assessment = models.OneToOneField(Assessment, on_delete=models.CASCADE, related_name="results")
    company_name = models.CharField(max_length=255, blank=True, default="")
    executive_summary = models.TextField(blank=True, default="")
    maturity_assessment = models.JSONField(default=dict, blank=True)
    quick_wins = models.JSONField(default=list, blank=True)
    tier1_citizen_led = models.JSONField(default=list, blank=True)
    tier2_hybrid = models.JSONField(default=list, blank=True)
    tier3_technical = models.JSONField(default=list, blank=True)
    roadmap = models.JSONField(default=dict, blank=True)
    long_term_vision = models.JSONField(default=dict, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Results for {self.assessment}"

    class Meta:
        verbose_name_plural = "assessment results"


class AssessmentDraft(ModelBase):
    """Server copy of an in-progress wizard for a signed-in user."""

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="assessment_drafts")
    session_id = models.CharField(max_length=255)
    answers = models.JSONField(default=dict, blank=True)
    current_step = models.PositiveSmallIntegerField(default=1)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        unique_together = ["user", "session_id"]
        ordering = ["-updated_at"]


class Project(ModelBaseWithUuidId):
    class Status(models.TextChoices):
        NOT_STARTED = "not_started", "Not started"
        IN_PROGRESS = "in_progress", "In progress"
        COMPLETED = "completed", "Completed"
        ON_HOLD = "on_hold", "On hold"

    assessment = models.ForeignKey(Assessment, on_delete=models.CASCADE, related_name="projects")
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.NOT_STARTED)
    progress_percentage = models.PositiveSmallIntegerField(
        default=0, validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    priority = models.CharField(max_length=20, blank=True, default="medium")
    complexity = models.CharField(max_length=20, blank=True, default="")
    operational_area = models.CharField(max_length=100, blank=True, default="")
    estimated_annual_savings = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    actual_annual_savings = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)

    @property
    def realized_annual_savings(self) -> Decimal | None:
        if self.actual_annual_savings is not None:
            return self.actual_annual_savings
        return parse_legacy_savings(self.description)

    def __str__(self):
        return self.title

    class Meta:
        ordering = ["created_at"]


class Sprint(ModelBaseWithUuidId):
    class Status(models.TextChoices):
        PLANNED = "planned", "Planned"
        ACTIVE = "active", "Active"
        COMPLETED = "completed", "Completed"

    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name="sprints")
    name = models.CharField(max_length=255)
    goal = models.TextField(blank=True, default="")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PLANNED)
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    velocity = models.PositiveIntegerField(null=True, blank=True)

    def __str__(self):
        return self.name

    class Meta:
        ordering = ["start_date", "created_at"]


class BacklogItem(ModelBaseWithUuidId):
    class ItemType(models.TextChoices):
        PBI = "pbi", "Product backlog item"
        USER_STORY = "user_story", "User story"

    class Status(models.TextChoices):
        TODO = "todo", "To do"
        IN_PROGRESS = "in_progress", "In progress"
        DONE = "done", "Done"

    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name="backlog_items")
    sprint = models.ForeignKey(
        Sprint, on_delete=models.SET_NULL, null=True, blank=True, related_name="backlog_items"
    )
    item_type = models.CharField(max_length=20, choices=ItemType.choices, default=ItemType.PBI)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.TODO)
    priority = models.CharField(max_length=20, blank=True, default="medium")
    story_points = models.PositiveSmallIntegerField(null=True, blank=True)

    def __str__(self):
        return self.title

    class Meta:
        ordering = ["created_at"]


class Risk(ModelBaseWithUuidId):
    class Severity(models.TextChoices):
        LOW = "low", "Low"
        MEDIUM = "medium", "Medium"
        HIGH = "high", "High"
        CRITICAL = "critical", "Critical"

    class Status(models.TextChoices):
        OPEN = "open", "Open"
        MITIGATING = "mitigating", "Mitigating"
        CLOSED = "closed", "Closed"

    assessment = models.ForeignKey(Assessment, on_delete=models.CASCADE, related_name="risks")
    project = models.ForeignKey(Project, on_delete=models.SET_NULL, null=True, blank=True, related_name="risks")
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    severity = models.CharField(max_length=20, choices=Severity.choices, default=Severity.MEDIUM)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.OPEN)
    mitigation_plan = models.TextField(blank=True, default="")

    def __str__(self):
        return self.title

    class Meta:
        ordering = ["created_at"]
