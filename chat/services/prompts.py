"""System prompt rendering for the assessment and journey chats.

Everything here is a pure function of the rows passed in, so prompts can be
rebuilt on every request and tested without a database or network.
"""

import math
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from django.conf import settings

from assessment.models import Assessment, AssessmentResults, BacklogItem, Project, Risk, Sprint

MAX_PROMPT_PBIS = 20
MAX_PROMPT_RISKS = 10

GENERAL_INSTRUCTIONS = """YOUR ROLE:
1. Answer questions about the assessment results and recommendations
2. Explain WHY specific tools or approaches were recommended
3. Provide implementation guidance and step-by-step help
4. Compare different tool options when asked
5. Offer realistic timelines and resource estimates
6. Help prioritize initiatives based on their context
7. Address concerns and objections to recommendations

GUIDELINES:
- Be conversational and friendly, but professional
- Use relevant emojis throughout your responses for better readability (e.g., 🎯 for goals, ✅ for benefits, \
💡 for tips, ⚠️ for warnings, 📊 for metrics, 🚀 for implementation, 💰 for costs, ⏱️ for timelines)
- Format responses using markdown: **bold** for emphasis, bullet points for lists, numbered lists for steps
- Reference their specific data when relevant (company size, industry, scores)
- If asked about a specific recommendation, look for it in their results
- Provide actionable, practical advice
- Be honest about complexity and effort required
- Encourage starting with quick wins before larger initiatives
- Remind them that these are estimates - validate with their specific business context
- If you don't have information about something, acknowledge it rather than making it up

AVAILABLE DATA STRUCTURE:
You have access to: maturity_assessment (with sub_categories for each pillar), quick_wins, tier1_citizen_led, \
tier2_hybrid, tier3_technical, existing_tool_opportunities, roadmap (30/60/90 days), change_management_plan, \
success_metrics, long_term_vision.

Reference specific recommendations by name when answering questions. Be specific and cite details from their \
actual assessment."""

JOURNEY_INSTRUCTIONS = """YOUR ROLE IN THE JOURNEY WORKSPACE:
1. **Track Progress**: Answer questions about current implementation status, project completion, sprint velocity, etc.
2. **Provide Guidance**: Help with project execution, PBI prioritization, sprint planning, risk mitigation
3. **Analyze Metrics**: Explain savings achieved, completion rates, velocity trends, risk exposure
4. **Offer Recommendations**: Suggest which projects to prioritize, how to address blockers, optimization opportunities
5. **Connect to Assessment**: Relate current progress back to original assessment goals and recommendations
6. **Sprint Planning Support**: Help estimate story points, prioritize PBIs, plan sprint capacity
7. **Risk Management**: Identify risk patterns, suggest mitigation strategies, highlight critical issues
8. **Resource Planning**: Advise on team allocation, skill requirements, timeline adjustments
9. **Suggest Updates**: When appropriate, suggest specific updates to projects, PBIs, risks, or sprints that the \
user can apply

ACTIONABLE INSIGHTS:
When you identify opportunities for updates, be specific:
- **Project Updates**: Suggest status changes (e.g., "Project X should be marked as 'in_progress'"), progress \
updates, or priority adjustments
- **PBI Updates**: Suggest status changes, reprioritization, story point estimates, or sprint assignments
- **Risk Updates**: Suggest status changes, severity adjustments, or mitigation improvements
- **New Items**: Suggest creating new PBIs or tasks when gaps are identified
- Always explain WHY the update is recommended
- Reference the specific item by name/title
- Be confident and clear about your recommendations

GUIDELINES:
- Be conversational and friendly, but professional
- Use relevant emojis throughout your responses for better readability (🎯 goals, ✅ benefits, 💡 tips, \
⚠️ warnings, 📊 metrics, 🚀 implementation, 💰 costs, ⏱️ timelines, 🏆 achievements, 📈 progress)
- Format responses using markdown: **bold** for emphasis, bullet points for lists, numbered lists for steps
- Reference SPECIFIC projects, PBIs, or risks by name when relevant
- Provide data-driven insights using the metrics available
- Celebrate progress and completed milestones
- Be honest about challenges and blockers
- Suggest actionable next steps
- Connect journey progress back to original assessment goals
- If asked about implementation details, reference actual project/PBI data
- Help users understand the "why" behind metrics and status

CONTEXT-AWARE RESPONSES:
- When discussing projects, reference their actual status, progress %, and operational area
- When discussing savings, use actual realized savings from completed projects
- When discussing risks, reference specific high-priority risks that need attention
- When discussing sprints, reference actual sprint data (velocity, dates, PBI allocation)
- Compare current state to assessment recommendations to show transformation impact

You have complete visibility into their transformation journey. Use this context to provide specific, \
actionable, and data-driven advice."""


@dataclass
class JourneyData:
    projects: list[Project] = field(default_factory=list)
    backlog_items: list[BacklogItem] = field(default_factory=list)
    sprints: list[Sprint] = field(default_factory=list)
    risks: list[Risk] = field(default_factory=list)


@dataclass(frozen=True)
class JourneyStats:
    total_projects: int
    completed_projects: int
    in_progress_projects: int
    not_started_projects: int
    overall_progress: int
    total_pbis: int
    completed_pbis: int
    pbi_completion_rate: int
    total_risks: int
    high_risks: int
    realized_savings: Decimal


def _percent(part: int, whole: int) -> int:
    # half-up rounding, so 50.5% shows as 51%
    return math.floor(part / whole * 100 + 0.5) if whole else 0


def _or_na(value) -> str:
    return "N/A" if value in (None, "") else str(value)


def _format_date(value: date | None) -> str:
    return f"{value.month}/{value.day}/{value.year}" if value else "N/A"


def journey_stats(journey: JourneyData) -> JourneyStats:
    projects = journey.projects
    completed = [p for p in projects if p.status == Project.Status.COMPLETED]
    in_progress = sum(1 for p in projects if p.status == Project.Status.IN_PROGRESS)
    completed_pbis = sum(1 for item in journey.backlog_items if item.status == BacklogItem.Status.DONE)
    high_risks = sum(
        1 for r in journey.risks if r.severity in (Risk.Severity.HIGH, Risk.Severity.CRITICAL)
    )
    realized = sum((p.realized_annual_savings or Decimal(0) for p in completed), Decimal(0))
    return JourneyStats(
        total_projects=len(projects),
        completed_projects=len(completed),
        in_progress_projects=in_progress,
        not_started_projects=len(projects) - len(completed) - in_progress,
        overall_progress=_percent(len(completed), len(projects)),
        total_pbis=len(journey.backlog_items),
        completed_pbis=completed_pbis,
        pbi_completion_rate=_percent(completed_pbis, len(journey.backlog_items)),
        total_risks=len(journey.risks),
        high_risks=high_risks,
        realized_savings=realized,
    )


def _score(results: AssessmentResults, pillar: str) -> str:
    pillar_data = (results.maturity_assessment or {}).get(pillar) or {}
    return str(pillar_data.get("score") or "N/A")


def _company_context(assessment: Assessment, results: AssessmentResults) -> str:
    company = results.company_name or assessment.company_name or "the organization"
    return (
        "COMPANY CONTEXT:\n"
        f"- Company: {company}\n"
        f"- Industry: {assessment.industry}\n"
        f"- Company Size: {assessment.company_size}\n"
        f"- Technical Capability: {assessment.technical_capability}"
    )


def _scores(results: AssessmentResults) -> str:
    return (
        f"- Data Strategy Score: {_score(results, 'data_strategy')}/5\n"
        f"- Automation Strategy Score: {_score(results, 'automation_strategy')}/5\n"
        f"- AI Strategy Score: {_score(results, 'ai_strategy')}/5\n"
        f"- People Strategy Score: {_score(results, 'people_strategy')}/5"
    )


def build_chat_system_prompt(assessment: Assessment, results: AssessmentResults) -> str:
    return f"""You are {settings.ASSISTANT_NAME}, helping users understand and implement their digital \
transformation roadmap.

You have access to the complete assessment results for this user. Use this context to provide specific, \
personalized answers.

{_company_context(assessment, results)}

ASSESSMENT RESULTS SUMMARY:
{_scores(results)}

RECOMMENDED TOOLS:
- Citizen-Led Solutions: {len(results.tier1_citizen_led or [])} recommendations
- Hybrid Solutions: {len(results.tier2_hybrid or [])} recommendations
- Technical Solutions: {len(results.tier3_technical or [])} recommendations

QUICK WINS: {len(results.quick_wins or [])} identified

{GENERAL_INSTRUCTIONS}"""


def _project_lines(journey: JourneyData) -> str:
    blocks = []
    for i, p in enumerate(journey.projects, start=1):
        blocks.append(
            f"Project {i}: {p.title}\n"
            f"- Status: {p.status}\n"
            f"- Progress: {p.progress_percentage}%\n"
            f"- Priority: {p.priority}\n"
            f"- Complexity: {p.complexity}\n"
            f"- Operational Area: {_or_na(p.operational_area)}\n"
            f"- Description: {_or_na(p.description[:200])}"
        )
    return "\n\n".join(blocks)


def _pbi_lines(journey: JourneyData) -> str:
    titles = {p.id: p.title for p in journey.projects}
    blocks = []
    for i, item in enumerate(journey.backlog_items[:MAX_PROMPT_PBIS], start=1):
        blocks.append(
            f"PBI {i}: {item.title}\n"
            f"- Project: {titles.get(item.project_id, 'Unknown')}\n"
            f"- Status: {item.status}\n"
            f"- Priority: {item.priority}\n"
            f"- Story Points: {_or_na(item.story_points)}\n"
            f"- Sprint: {'Assigned' if item.sprint_id else 'Backlog'}"
        )
    return "\n\n".join(blocks)


def _sprint_lines(journey: JourneyData) -> str:
    blocks = []
    for i, s in enumerate(journey.sprints, start=1):
        blocks.append(
            f"Sprint {i}: {s.name}\n"
            f"- Status: {s.status}\n"
            f"- Start: {_format_date(s.start_date)}\n"
            f"- End: {_format_date(s.end_date)}\n"
            f"- Velocity: {_or_na(s.velocity)} points"
        )
    return "\n\n".join(blocks)


def _risk_lines(journey: JourneyData) -> str:
    blocks = []
    for i, r in enumerate(journey.risks[:MAX_PROMPT_RISKS], start=1):
        blocks.append(
            f"Risk {i}: {r.title}\n"
            f"- Severity: {r.severity}\n"
            f"- Status: {r.status}\n"
            f"- Mitigation: {_or_na(r.mitigation_plan[:100])}"
        )
    return "\n\n".join(blocks)


def build_journey_system_prompt(assessment: Assessment, results: AssessmentResults, journey: JourneyData) -> str:
    stats = journey_stats(journey)
    return f"""You are {settings.ASSISTANT_NAME}, now operating in the **Transformation Journey** workspace. You \
have complete context of both the original assessment results AND all current implementation progress.

{_company_context(assessment, results)}

ORIGINAL ASSESSMENT RESULTS:
{_scores(results)}

TRANSFORMATION JOURNEY PROGRESS:
- Total Projects: {stats.total_projects}
- Completed: {stats.completed_projects}
- In Progress: {stats.in_progress_projects}
- Not Started: {stats.not_started_projects}
- Overall Progress: {stats.overall_progress}%

PBI (PRODUCT BACKLOG ITEMS) STATUS:
- Total PBIs: {stats.total_pbis}
- Completed: {stats.completed_pbis}
- Completion Rate: {stats.pbi_completion_rate}%

RISK OVERVIEW:
- Total Risks: {stats.total_risks}
- High/Critical Risks: {stats.high_risks}

FINANCIAL IMPACT:
- Realized Savings: ${stats.realized_savings / 1_000_000:.2f}M from completed projects

DETAILED PROJECT DATA:
{_project_lines(journey)}

DETAILED PBI DATA:
{_pbi_lines(journey)}

SPRINT DATA:
{_sprint_lines(journey)}

RISK DATA:
{_risk_lines(journey)}

{JOURNEY_INSTRUCTIONS}"""
