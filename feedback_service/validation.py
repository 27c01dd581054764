"""
Submission checks run against the target form before anything is stored.

Every rule fails the whole submission: one bad answer rejects the set.
"""
from typing import Any, Optional, Sequence


class FeedbackValidationError(ValueError):
    kind = "ValidationError"

    def __init__(self, message: str, question_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.question_id = question_id


class FormNotFound(FeedbackValidationError):
    kind = "FormNotFound"


class MissingAnswers(FeedbackValidationError):
    kind = "MissingAnswers"


class UnknownQuestion(FeedbackValidationError):
    kind = "UnknownQuestion"


class TypeMismatch(FeedbackValidationError):
    kind = "TypeMismatch"


class RequiredFieldMissing(FeedbackValidationError):
    kind = "RequiredFieldMissing"


class InvalidRating(FeedbackValidationError):
    kind = "InvalidRating"


class PersistenceFailure(RuntimeError):
    kind = "PersistenceFailure"


def is_valid_rating(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if isinstance(value, float) and not value.is_integer():
        return False
    return 1 <= value <= 5


def check_text(question, text: Optional[str]) -> None:
    if question.required and (text is None or text.strip() == ""):
        raise RequiredFieldMissing(
            f"Text is required for question: {question.text}", question_id=question.id
        )


def check_vote(question, vote: Optional[bool]) -> None:
    # a submitted vote answer must carry a value, required or not
    if vote is None:
        raise RequiredFieldMissing(
            f"Vote is required for question: {question.text}", question_id=question.id
        )


def check_rating(question, rating: Any) -> None:
    if rating is None:
        if question.required:
            raise RequiredFieldMissing(
                f"Rating is required for question: {question.text}", question_id=question.id
            )
        return
    if not is_valid_rating(rating):
        raise InvalidRating(
            f"Rating must be an integer between 1 and 5 (got {rating!r})", question_id=question.id
        )


def validate_answers(form, raw_answers: Optional[Sequence[Any]]):
    """
    Validate raw answers against `form` (None when the lookup failed).

    Returns (form, raw_answers) untouched on success; raises a
    FeedbackValidationError subclass naming the offending question otherwise.
    """
    if form is None:
        raise FormNotFound("Form not found")

    if not raw_answers:
        raise MissingAnswers("At least one answer is required")

    questions = {str(q.id): q for q in form.questions}

    for a in raw_answers:
        qid = None if a.question_id is None else str(a.question_id)
        question = questions.get(qid)

        if question is None:
            raise UnknownQuestion(f"Question with ID {qid} not found in form", question_id=qid)

        if a.type != question.type:
            raise TypeMismatch(
                f"Answer type ({a.type}) does not match question type ({question.type})",
                question_id=qid,
            )

        if question.type == "text":
            check_text(question, a.text)
        elif question.type == "vote":
            check_vote(question, a.vote)
        elif question.type == "rating":
            check_rating(question, a.rating)

    return form, raw_answers
