class AssessmentNotFound(Exception):
    pass


class SubmissionError(Exception):
    """Raised when an assessment could not be persisted. Nothing was written."""
