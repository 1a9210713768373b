import factory
import pytest
from django.contrib.auth import get_user_model
from django.test import override_settings
from pytest_factoryboy import register

from assessment.models import (
    Assessment,
    AssessmentDraft,
    AssessmentResponse,
    AssessmentResults,
    BacklogItem,
    Project,
    Risk,
    Sprint,
)
from chat.models import ContextType, Conversation, Message


@pytest.fixture(autouse=True)
def enable_db_access(db):
    pass


@pytest.fixture(autouse=True)
def overwrite_secrets():
    # overwrite secrets to prevent hitting real services while unit testing, just in case
    with override_settings(
        LLM_PROVIDER="anthropic",
        LLM_API_KEY="fake-llm-api-key",
        LLM_MODEL="claude-test-model",
        PROGRESS_STORE_URL="redis://localhost:6379/15",
    ):
        yield


class UserFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = get_user_model()
        django_get_or_create = ("username",)

    username = factory.Sequence(lambda n: f"user{n}")
    email = factory.Faker("email")


class AssessmentFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Assessment

    session_id = factory.Faker("uuid4")
    user = None
    company_name = factory.Faker("company")
    company_size = "51-200"
    industry = "manufacturing"
    technical_capability = "some_technical"
    status = Assessment.Status.COMPLETED


class AssessmentResponseFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = AssessmentResponse

    assessment = factory.SubFactory(AssessmentFactory)
    step_number = 1
    question_key = "company_name"
    question_text = "What's your company name?"
    answer_value = factory.Faker("company")


class AssessmentResultsFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = AssessmentResults

    assessment = factory.SubFactory(AssessmentFactory)
    company_name = "Acme Manufacturing"
    executive_summary = factory.Faker("paragraph")
    maturity_assessment = factory.LazyFunction(
        lambda: {
            "data_strategy": {"score": 2},
            "automation_strategy": {"score": 3},
            "ai_strategy": {"score": 1},
            "people_strategy": {"score": 4},
        }
    )
    quick_wins = factory.LazyFunction(lambda: [{"title": "Automate invoice intake"}])
    tier1_citizen_led = factory.LazyFunction(lambda: [{"name": "Power Automate"}, {"name": "Zapier"}])
    tier2_hybrid = factory.LazyFunction(lambda: [{"name": "Make"}])
    tier3_technical = factory.LazyFunction(list)


class AssessmentDraftFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = AssessmentDraft

    user = factory.SubFactory(UserFactory)
    session_id = factory.Faker("uuid4")
    answers = factory.LazyFunction(lambda: {"company_name": "Acme"})
    current_step = 1


class ProjectFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Project

    assessment = factory.SubFactory(AssessmentFactory)
    title = factory.Faker("catch_phrase")
    description = factory.Faker("sentence")
    status = Project.Status.NOT_STARTED
    priority = "high"
    complexity = "medium"
    operational_area = "finance"


class SprintFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Sprint

    project = factory.SubFactory(ProjectFactory)
    name = factory.Sequence(lambda n: f"Sprint {n}")
    goal = factory.Faker("sentence")


class BacklogItemFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = BacklogItem

    project = factory.SubFactory(ProjectFactory)
    sprint = None
    title = factory.Faker("sentence", nb_words=4)
    story_points = 3


class RiskFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Risk

    assessment = factory.SubFactory(AssessmentFactory)
    project = None
    title = factory.Faker("sentence", nb_words=4)
    mitigation_plan = factory.Faker("sentence")


class ConversationFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Conversation

    assessment = factory.SubFactory(AssessmentFactory)
    user = None
    title = factory.Faker("sentence", nb_words=5)
    context_type = ContextType.GENERAL


class MessageFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Message

    conversation = factory.SubFactory(ConversationFactory)
    role = Message.Role.USER
    content = factory.Faker("sentence")


# register factories as fixtures
register(UserFactory)
register(AssessmentFactory)
register(AssessmentResponseFactory)
register(AssessmentResultsFactory)
register(AssessmentDraftFactory)
register(ProjectFactory)
register(SprintFactory)
register(BacklogItemFactory)
register(RiskFactory)
register(ConversationFactory)
register(MessageFactory)
