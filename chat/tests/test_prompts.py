from datetime import date

from django.test import override_settings

from assessment.models import BacklogItem, Project, Risk
from chat.services.prompts import (
    MAX_PROMPT_PBIS,
    JourneyData,
    build_chat_system_prompt,
    build_journey_system_prompt,
    journey_stats,
)


@override_settings(ASSISTANT_NAME="Test Assistant")
def test_chat_system_prompt(assessment_results):
    prompt = build_chat_system_prompt(assessment_results.assessment, assessment_results)

    assert prompt.startswith("You are Test Assistant")
    assert "- Company: Acme Manufacturing" in prompt
    assert "- Industry: manufacturing" in prompt
    assert "- Data Strategy Score: 2/5" in prompt
    assert "- People Strategy Score: 4/5" in prompt
    assert "- Citizen-Led Solutions: 2 recommendations" in prompt
    assert "- Technical Solutions: 0 recommendations" in prompt
    assert "QUICK WINS: 1 identified" in prompt


def test_chat_system_prompt_missing_scores(assessment_results_factory):
    results = assessment_results_factory(company_name="", maturity_assessment={})

    prompt = build_chat_system_prompt(results.assessment, results)

    assert f"- Company: {results.assessment.company_name}" in prompt
    assert "- AI Strategy Score: N/A/5" in prompt


def _journey(project_factory, backlog_item_factory, risk_factory, sprint_factory, assessment):
    done = project_factory(
        assessment=assessment,
        title="Invoice automation",
        status=Project.Status.COMPLETED,
        progress_percentage=100,
        description="Shipped. Actual Annual Savings: $250K",
    )
    active = project_factory(assessment=assessment, title="Data warehouse", status=Project.Status.IN_PROGRESS)
    items = [
        backlog_item_factory(project=done, status=BacklogItem.Status.DONE),
        backlog_item_factory(project=active, title="Model sales tables", story_points=None),
        backlog_item_factory(project=active),
    ]
    sprint = sprint_factory(project=active, name="Sprint 1", start_date=date(2026, 3, 2), velocity=None)
    risks = [
        risk_factory(assessment=assessment, title="Vendor lock-in", severity=Risk.Severity.CRITICAL),
        risk_factory(assessment=assessment, severity=Risk.Severity.LOW),
    ]
    return JourneyData(projects=[done, active], backlog_items=items, sprints=[sprint], risks=risks)


def test_journey_stats(project_factory, backlog_item_factory, risk_factory, sprint_factory, assessment):
    stats = journey_stats(_journey(project_factory, backlog_item_factory, risk_factory, sprint_factory, assessment))

    assert stats.total_projects == 2
    assert stats.completed_projects == 1
    assert stats.in_progress_projects == 1
    assert stats.not_started_projects == 0
    assert stats.overall_progress == 50
    assert stats.total_pbis == 3
    assert stats.completed_pbis == 1
    assert stats.pbi_completion_rate == 33
    assert stats.high_risks == 1
    assert stats.realized_savings == 250000


def test_journey_stats_empty():
    stats = journey_stats(JourneyData())
    assert stats.overall_progress == 0
    assert stats.pbi_completion_rate == 0
    assert stats.realized_savings == 0


def test_journey_system_prompt(
    assessment_results, project_factory, backlog_item_factory, risk_factory, sprint_factory
):
    assessment = assessment_results.assessment
    journey = _journey(project_factory, backlog_item_factory, risk_factory, sprint_factory, assessment)

    prompt = build_journey_system_prompt(assessment, assessment_results, journey)

    assert "**Transformation Journey** workspace" in prompt
    assert "- Overall Progress: 50%" in prompt
    assert "- Completion Rate: 33%" in prompt
    assert "- High/Critical Risks: 1" in prompt
    assert "- Realized Savings: $0.25M from completed projects" in prompt
    assert "Project 1: Invoice automation" in prompt
    assert "PBI 2: Model sales tables\n- Project: Data warehouse" in prompt
    assert "- Story Points: N/A" in prompt
    assert "Sprint 1: Sprint 1\n- Status: planned\n- Start: 3/2/2026\n- End: N/A\n- Velocity: N/A points" in prompt
    assert "Risk 1: Vendor lock-in\n- Severity: critical" in prompt


def test_journey_system_prompt_caps_backlog_items(assessment_results, project_factory, backlog_item_factory):
    project = project_factory(assessment=assessment_results.assessment)
    items = [backlog_item_factory(project=project) for _ in range(MAX_PROMPT_PBIS + 5)]

    prompt = build_journey_system_prompt(
        assessment_results.assessment, assessment_results, JourneyData(projects=[project], backlog_items=items)
    )

    assert f"- Total PBIs: {MAX_PROMPT_PBIS + 5}" in prompt
    assert f"PBI {MAX_PROMPT_PBIS}:" in prompt
    assert f"PBI {MAX_PROMPT_PBIS + 1}:" not in prompt
