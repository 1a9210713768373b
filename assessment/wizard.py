import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .answers import is_answered
from .catalog import STEPS, Option, Question, QuestionType, Step, change_readiness_score
from .progress import ProgressStore, WizardSession
from .services.exceptions import SubmissionError

logger = logging.getLogger(__name__)

INCOMPLETE_STEP_ERROR = "Please answer all required questions before continuing."
SUBMIT_FAILED_ERROR = "Failed to submit assessment. Please try again."

# Returns the new assessment id, raises SubmissionError on failure.
Submitter = Callable[[dict], str]


class NextOutcome(str, Enum):
    ADVANCED = "advanced"
    INCOMPLETE = "incomplete"
    SUBMITTED = "submitted"
    SUBMIT_FAILED = "submit_failed"


@dataclass
class NextResult:
    outcome: NextOutcome
    step: int
    error: str | None = None
    focus_key: str | None = None
    assessment_id: str | None = None


def build_assessment_fields(answers: dict) -> dict:
    """Derive the normalized assessment columns from the raw answer map."""
    industry = answers.get("industry")
    if industry == "other" and answers.get("industry_other"):
        industry = answers["industry_other"]
    return {
        "company_size": answers.get("company_size") or "",
        "industry": industry or "",
        "operational_areas": answers.get("operational_areas") or [],
        "user_role": answers.get("user_role") or "",
        "technical_capability": answers.get("technical_capability") or "",
        "team_comfort_level": answers.get("team_comfort_level") or [],
        "existing_tools": {
            "microsoft": answers.get("existing_microsoft") or [],
            "google": answers.get("existing_google") or [],
            "other": answers.get("existing_other_tools") or [],
        },
        "change_readiness_score": change_readiness_score(answers.get("change_readiness")),
        "transformation_approach": answers.get("transformation_approach") or "",
        "has_champion": bool(answers.get("champions_identified")),
        "contact_name": answers.get("contact_name") or "",
        "email": answers.get("email") or "",
        "company_name": answers.get("company_name") or "",
        "wants_consultation": answers.get("wants_consultation") == "yes",
    }


class WizardController:
    """Drives a single respondent through the catalog steps.

    State is held on the instance; the session identity and the persistence and
    submission collaborators are passed in.
    """

    def __init__(
        self,
        session: WizardSession,
        submitter: Submitter,
        progress_store: ProgressStore | None = None,
        steps: tuple[Step, ...] = STEPS,
    ):
        self.session = session
        self.submitter = submitter
        self.progress_store = progress_store
        self.steps = steps
        self.answers: dict = {}
        self.current_step = 1
        self.furthest_step = 1
        self.error: str | None = None
        self.assessment_id: str | None = None

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    @property
    def is_last_step(self) -> bool:
        return self.current_step == self.total_steps

    def get_step(self, step_id: int) -> Step:
        return self.steps[step_id - 1]

    def _find_question(self, key: str) -> Question | None:
        for step in self.steps:
            for question in step.questions:
                if question.key == key:
                    return question
        return None

    # ------------------------------------------------------------------
    # persistence

    def restore(self) -> bool:
        """Replace in-memory state with the stored snapshot, if any."""
        if self.progress_store is None:
            return False
        snapshot = self.progress_store.load()
        if snapshot is None:
            return False
        self.answers = dict(snapshot.answers)
        self.current_step = min(max(snapshot.step, 1), self.total_steps)
        self.furthest_step = self.current_step
        logger.info(f"Restored wizard session {self.session.session_id} at step {self.current_step}")
        return True

    def save_progress(self) -> None:
        if self.progress_store is not None:
            self.progress_store.save(self.answers, self.current_step)

    def start_fresh(self) -> None:
        self.answers = {}
        self.current_step = 1
        self.furthest_step = 1
        self.error = None
        if self.progress_store is not None:
            self.progress_store.clear()

    # ------------------------------------------------------------------
    # answers

    def set_answer(self, key: str, value) -> None:
        question = self._find_question(key)
        if question is not None and question.type == QuestionType.RANKING and isinstance(value, list):
            if question.max_selection is not None:
                value = value[: question.max_selection]
        self.answers[key] = value
        self.error = None

    def toggle_ranked_option(self, key: str, option_value: str) -> list[str]:
        """Select or deselect an option of a ranking question. Selection order is the rank."""
        question = self._find_question(key)
        selected = list(self.answers.get(key) or [])
        if option_value in selected:
            selected.remove(option_value)
        elif question is None or question.max_selection is None or len(selected) < question.max_selection:
            selected.append(option_value)
        self.answers[key] = selected
        return selected

    # ------------------------------------------------------------------
    # visibility and completeness

    def is_visible(self, question: Question) -> bool:
        return question.visible_when is None or question.visible_when.is_met(self.answers)

    def visible_questions(self, step_id: int) -> list[Question]:
        return [q for q in self.get_step(step_id).questions if self.is_visible(q)]

    def visible_options(self, question: Question) -> list[Option]:
        if not question.options_filtered_by:
            return list(question.options)
        discriminator = self.answers.get(question.options_filtered_by)
        return [o for o in question.options if o.industry is None or o.industry == discriminator]

    def first_unanswered_question(self, step_id: int) -> str | None:
        for question in self.visible_questions(step_id):
            if question.required and not is_answered(self.answers.get(question.key), question):
                return question.key
        return None

    def is_step_complete(self, step_id: int) -> bool:
        return self.first_unanswered_question(step_id) is None

    def step_completion_counts(self, step_id: int) -> tuple[int, int]:
        """Answered and total of the visible required (or counted) questions, for the progress display."""
        questions = [q for q in self.visible_questions(step_id) if q.required or q.counted]
        answered = sum(1 for q in questions if is_answered(self.answers.get(q.key), q))
        return answered, len(questions)

    # ------------------------------------------------------------------
    # navigation

    def handle_next(self) -> NextResult:
        focus_key = self.first_unanswered_question(self.current_step)
        if focus_key is not None:
            self.error = INCOMPLETE_STEP_ERROR
            return NextResult(NextOutcome.INCOMPLETE, self.current_step, error=self.error, focus_key=focus_key)

        self.error = None
        if self.is_last_step:
            return self.submit()

        self.current_step += 1
        self.furthest_step = max(self.furthest_step, self.current_step)
        self.save_progress()
        return NextResult(NextOutcome.ADVANCED, self.current_step)

    def handle_previous(self) -> int:
        if self.current_step > 1:
            self.current_step -= 1
            self.error = None
        return self.current_step

    def handle_step_click(self, step_id: int) -> bool:
        if 1 <= step_id <= self.furthest_step:
            self.current_step = step_id
            self.error = None
            return True
        return False

    # ------------------------------------------------------------------
    # submission

    def answered_visible_keys(self) -> list[str]:
        keys = []
        for step in self.steps:
            for question in step.questions:
                if self.is_visible(question) and is_answered(self.answers.get(question.key), question):
                    keys.append(question.key)
        return keys

    def build_submission(self) -> dict:
        assessment = build_assessment_fields(self._visible_answers())
        assessment["session_id"] = self.session.session_id
        responses = []
        for step in self.steps:
            for question in step.questions:
                value = self.answers.get(question.key)
                if not self.is_visible(question) or not is_answered(value, question):
                    continue
                responses.append(
                    {
                        "step_number": step.id,
                        "question_key": question.key,
                        "question_text": question.text,
                        "answer_value": value,
                    }
                )
        return {"assessment": assessment, "responses": responses}

    def _visible_answers(self) -> dict:
        keys = set(self.answered_visible_keys())
        return {k: v for k, v in self.answers.items() if k in keys}

    def submit(self) -> NextResult:
        payload = self.build_submission()
        try:
            assessment_id = self.submitter(payload)
        except SubmissionError as e:
            # keep the snapshot so the respondent can retry
            logger.error(f"Submission failed for wizard session {self.session.session_id}: {e}")
            self.error = SUBMIT_FAILED_ERROR
            return NextResult(NextOutcome.SUBMIT_FAILED, self.current_step, error=self.error)

        self.assessment_id = str(assessment_id)
        if self.progress_store is not None:
            self.progress_store.clear()
        logger.info(f"Wizard session {self.session.session_id} submitted assessment {self.assessment_id}")
        return NextResult(NextOutcome.SUBMITTED, self.current_step, assessment_id=self.assessment_id)
