from django.core.management.base import BaseCommand, CommandError

from assessment.catalog import Question, QuestionType
from assessment.progress import MemoryStorage, ProgressAutosaver, ProgressStore, RedisStorage, WizardSession
from assessment.services.submission import submit_assessment
from assessment.wizard import NextOutcome, WizardController


def _submit(payload: dict) -> str:
    assessment = submit_assessment(payload["assessment"], payload["responses"])
    return str(assessment.id)


class Command(BaseCommand):
    help = "Take the transformation assessment in the terminal. Progress is saved between runs."

    def add_arguments(self, parser):
        parser.add_argument("--session-id", help="Resume a specific wizard session")
        parser.add_argument(
            "--no-persist", action="store_true", help="Keep progress in memory only (nothing is saved between runs)"
        )

    def handle(self, *args, **options):
        storage = MemoryStorage() if options["no_persist"] else RedisStorage()
        if options["session_id"]:
            session = WizardSession(session_id=options["session_id"])
        else:
            session = WizardSession.start(storage)
        progress_store = ProgressStore(storage, session)
        controller = WizardController(session, submitter=_submit, progress_store=progress_store)
        autosaver = ProgressAutosaver(progress_store)

        if controller.restore():
            resume = input(f"Found saved progress at step {controller.current_step}. Resume? [Y/n]: ")
            if resume.strip().lower() == "n":
                controller.start_fresh()

        while True:
            step = controller.get_step(controller.current_step)
            self.stdout.write(self.style.MIGRATE_HEADING(f"\nStep {step.id} of {controller.total_steps}: {step.title}"))
            self.stdout.write(step.subtitle)
            try:
                self._ask_step(controller, step.id, autosaver)
            except (KeyboardInterrupt, EOFError):
                autosaver.flush()
                raise CommandError(f"Interrupted, progress saved. Resume with --session-id {session.session_id}")
            autosaver.flush()

            result = controller.handle_next()
            if result.outcome == NextOutcome.INCOMPLETE:
                self.stdout.write(self.style.WARNING(f"{result.error} (missing: {result.focus_key})"))
            elif result.outcome == NextOutcome.SUBMIT_FAILED:
                raise CommandError(result.error)
            elif result.outcome == NextOutcome.SUBMITTED:
                self.stdout.write(self.style.SUCCESS(f"Assessment submitted: {result.assessment_id}"))
                return

    def _ask_step(self, controller: WizardController, step_id: int, autosaver: ProgressAutosaver):
        # re-evaluate visibility after every answer so follow-up questions appear in place
        asked = set()
        while True:
            pending = [q for q in controller.visible_questions(step_id) if q.key not in asked]
            if not pending:
                return
            question = pending[0]
            asked.add(question.key)
            self._ask(controller, question)
            # time spent at the prompt counts towards the debounce of the previous answer
            autosaver.poll()
            autosaver.record_change(controller.answers, controller.current_step)

    def _ask(self, controller: WizardController, question: Question):
        marker = " *" if question.required else ""
        current = controller.answers.get(question.key)
        self.stdout.write(f"\n{question.text}{marker}")
        if question.description:
            self.stdout.write(question.description)
        if current not in (None, "", []):
            self.stdout.write(f"(current answer: {current}, press enter to keep)")

        options = controller.visible_options(question)
        for index, option in enumerate(options, start=1):
            self.stdout.write(f"  {index}. {option.label}")

        raw = input("> ").strip()
        if not raw:
            return

        if question.type == QuestionType.SINGLE_SELECT:
            choice = self._pick(options, raw)
            if choice is not None:
                controller.set_answer(question.key, choice)
        elif question.type == QuestionType.MULTI_SELECT:
            picks = [self._pick(options, part) for part in raw.split(",")]
            controller.set_answer(question.key, [p for p in picks if p is not None])
        elif question.type == QuestionType.RANKING:
            controller.set_answer(question.key, [])
            for part in raw.split(","):
                pick = self._pick(options, part)
                if pick is not None:
                    controller.toggle_ranked_option(question.key, pick)
        elif question.type == QuestionType.SLIDER:
            try:
                value = int(raw)
            except ValueError:
                self.stdout.write(self.style.WARNING("Please enter a number"))
                return
            if question.min <= value <= question.max:
                controller.set_answer(question.key, value)
            else:
                self.stdout.write(self.style.WARNING(f"Please enter a value from {question.min} to {question.max}"))
        else:
            controller.set_answer(question.key, raw)

    def _pick(self, options, raw: str) -> str | None:
        raw = raw.strip()
        if raw.isdigit() and 1 <= int(raw) <= len(options):
            return options[int(raw) - 1].value
        self.stdout.write(self.style.WARNING(f"Ignoring invalid choice '{raw}'"))
        return None
