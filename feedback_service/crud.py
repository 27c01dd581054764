import logging
from datetime import date, datetime, time
from typing import Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from .feedback_logic import assemble_feedback
from .models import Answer, Feedback, Form, Question
from .validation import PersistenceFailure, validate_answers

logger = logging.getLogger("feedback-service")

FORM_SORT_COLUMNS = {
    "createdAt": Form.created_at,
    "title": Form.title,
}


# Forms
def create_form(db: Session, user_id: str, payload: dict) -> Form:
    f = Form(title=payload["title"], created_by=str(user_id))
    f.questions = [
        Question(position=i, text=q["text"], type=q["type"], required=bool(q.get("required", False)))
        for i, q in enumerate(payload["questions"])
    ]
    db.add(f)
    db.commit()
    db.refresh(f)
    return f


def load_form(db: Session, form_id: Optional[str]) -> Form | None:
    if not form_id:
        return None
    return db.query(Form).filter(Form.id == str(form_id)).first()


def list_forms(
    db: Session,
    user_id: str,
    page: int = 1,
    limit: int = 10,
    sort_by: str = "createdAt",
    sort_order: str = "desc",
) -> tuple[list[Form], int]:
    q = db.query(Form).filter(Form.created_by == str(user_id))
    total = q.count()

    col = FORM_SORT_COLUMNS.get(sort_by, Form.created_at)
    q = q.order_by(col.asc() if sort_order == "asc" else col.desc())

    rows = q.offset((page - 1) * limit).limit(limit).all()
    return rows, total


# Feedback
def persist_feedback(db: Session, feedback: Feedback) -> Feedback:
    try:
        db.add(feedback)
        db.commit()
        db.refresh(feedback)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Failed to store feedback for form %s", feedback.form_id)
        raise PersistenceFailure("Error submitting feedback") from e
    return feedback


def submit_feedback(db: Session, form_id: Optional[str], answers: Optional[list]) -> Feedback:
    """
    Public submission path: load the form, validate every answer,
    then build and store the record. Nothing is written unless all
    answers pass.
    """
    form = load_form(db, form_id)
    form, answers = validate_answers(form, answers)
    fb = assemble_feedback(form, answers)
    return persist_feedback(db, fb)


def date_bounds(start_date: Optional[date], end_date: Optional[date]) -> tuple[Optional[datetime], Optional[datetime]]:
    # created_at is stored as naive UTC, so "local" day boundaries are UTC days here
    start = datetime.combine(start_date, time.min) if start_date else None
    # end date is inclusive up to the last instant of that day
    end = datetime.combine(end_date, time.max) if end_date else None
    return start, end


def feedback_query(
    db: Session,
    form_id: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    sentiment: Optional[str] = None,
) -> Query:
    q = db.query(Feedback)

    if form_id:
        q = q.filter(Feedback.form_id == form_id)

    start, end = date_bounds(start_date, end_date)
    if start is not None:
        q = q.filter(Feedback.created_at >= start)
    if end is not None:
        q = q.filter(Feedback.created_at <= end)

    if sentiment:
        # any answer carrying the label
        q = q.filter(Feedback.answers.any(Answer.sentiment == sentiment))

    return q


def list_feedback(
    db: Session,
    form_id: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    sentiment: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Feedback], int]:
    q = feedback_query(db, form_id, start_date, end_date, sentiment)
    total = q.count()
    rows = (
        q.order_by(Feedback.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, total


def iter_feedback(
    db: Session,
    form_id: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    batch_size: int = 500,
) -> Iterator[Feedback]:
    q = feedback_query(db, form_id, start_date, end_date)
    yield from q.order_by(Feedback.created_at.asc()).yield_per(batch_size)


def get_feedback(db: Session, feedback_id: str) -> Feedback | None:
    return db.query(Feedback).filter(Feedback.id == feedback_id).first()


def delete_feedback(db: Session, feedback_id: str) -> bool:
    fb = get_feedback(db, feedback_id)
    if not fb:
        return False
    db.delete(fb)
    db.commit()
    return True
