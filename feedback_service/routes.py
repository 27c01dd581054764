import logging
import math
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from shared.database import db_dependency

from .crud import (
    create_form, load_form, list_forms,
    submit_feedback, list_feedback, iter_feedback,
    get_feedback, delete_feedback,
)
from .feedback_logic import compute_stats
from .middleware import require_admin
from .models import Feedback, Form
from .schemas import (
    FormIn, FormOut, FormSummaryOut, FormPageOut, QuestionOut, PaginationOut,
    FeedbackIn, AnswerOut, FeedbackOut, SubmitFeedbackOut,
    FeedbackPageOut, FormFeedbackPageOut, StatsOut,
)
from .validation import FeedbackValidationError, FormNotFound, PersistenceFailure

logger = logging.getLogger("feedback-service")


def _questions_out(f: Form) -> list[QuestionOut]:
    return [QuestionOut(id=q.id, text=q.text, type=q.type, required=bool(q.required)) for q in f.questions]


def _form_out(f: Form) -> FormOut:
    return FormOut(
        id=f.id, title=f.title, questions=_questions_out(f), created_by=f.created_by, created_at=f.created_at
    )


def _feedback_out(fb: Feedback) -> FeedbackOut:
    return FeedbackOut(
        id=fb.id,
        form_id=fb.form_id,
        answers=[
            AnswerOut(
                question_id=a.question_id,
                question_text=a.question_text,
                type=a.type,
                text=a.text,
                vote=a.vote,
                rating=a.rating,
                sentiment=a.sentiment,
            )
            for a in fb.answers
        ],
        created_at=fb.created_at,
        overall_sentiment=fb.overall_sentiment,
    )


def _pagination(total: int, page: int, limit: int) -> PaginationOut:
    return PaginationOut(total=total, page=page, total_pages=math.ceil(total / limit), limit=limit)


def build_router(SessionLocal):
    router = APIRouter()
    get_db = db_dependency(SessionLocal)

    # -------------------------
    # Forms
    # -------------------------

    @router.post("/forms/", response_model=FormOut, status_code=201, tags=["Forms"])
    def create(payload: FormIn, db: Session = Depends(get_db), user: dict = Depends(require_admin)):
        f = create_form(db, user["sub"], payload.model_dump())
        logger.info("Form %s created by %s", f.id, user["sub"])
        return _form_out(f)

    @router.get("/forms/", response_model=FormPageOut, tags=["Forms"])
    def my_forms(
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1, le=100),
        sort_by: str = Query("createdAt", alias="sortBy", pattern="^(createdAt|title)$"),
        sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
        db: Session = Depends(get_db),
        user: dict = Depends(require_admin),
    ):
        rows, total = list_forms(db, user["sub"], page, limit, sort_by, sort_order)
        return FormPageOut(
            data=[
                FormSummaryOut(
                    id=f.id,
                    title=f.title,
                    questions=_questions_out(f),
                    question_count=len(f.questions),
                    created_at=f.created_at,
                )
                for f in rows
            ],
            pagination=_pagination(total, page, limit),
        )

    @router.get("/forms/{form_id}", response_model=FormOut, tags=["Forms"])
    def get_form(form_id: str, db: Session = Depends(get_db)):
        f = load_form(db, form_id)
        if not f:
            raise HTTPException(404, "Form not found")
        return _form_out(f)

    # -------------------------
    # Feedback
    # -------------------------

    @router.post("/feedback/", response_model=SubmitFeedbackOut, status_code=201, tags=["Feedback"])
    def submit(payload: FeedbackIn, db: Session = Depends(get_db)):
        try:
            fb = submit_feedback(db, payload.form_id, payload.answers)
        except FeedbackValidationError as e:
            logger.warning("Rejected feedback for form %r: %s (%r)", payload.form_id, e.kind, e.message)
            return JSONResponse(
                status_code=404 if isinstance(e, FormNotFound) else 400,
                content={"detail": e.message, "kind": e.kind, "questionId": e.question_id},
            )
        except PersistenceFailure as e:
            return JSONResponse(status_code=500, content={"detail": str(e), "kind": e.kind})

        return SubmitFeedbackOut(message="Feedback submitted successfully", feedback=_feedback_out(fb))

    @router.get("/feedback/feedbacks", response_model=FeedbackPageOut, tags=["Feedback"])
    def all_feedback(
        form_id: Optional[str] = Query(None, alias="formId"),
        start_date: Optional[date] = Query(None, alias="startDate"),
        end_date: Optional[date] = Query(None, alias="endDate"),
        sentiment: Optional[str] = Query(None, pattern="^(Positive|Negative|Neutral)$"),
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1, le=100),
        db: Session = Depends(get_db),
        _: dict = Depends(require_admin),
    ):
        rows, total = list_feedback(db, form_id, start_date, end_date, sentiment, page, limit)
        return FeedbackPageOut(
            feedbacks=[_feedback_out(fb) for fb in rows],
            total_pages=math.ceil(total / limit),
            current_page=page,
            total_feedback=total,
        )

    @router.get("/feedback/stats", response_model=StatsOut, tags=["Feedback"])
    def stats(
        form_id: Optional[str] = Query(None, alias="formId"),
        start_date: Optional[date] = Query(None, alias="startDate"),
        end_date: Optional[date] = Query(None, alias="endDate"),
        db: Session = Depends(get_db),
        _: dict = Depends(require_admin),
    ):
        result = compute_stats(iter_feedback(db, form_id, start_date, end_date))
        return StatsOut(**result.as_dict())

    @router.get("/feedback/form/{form_id}", response_model=FormFeedbackPageOut, tags=["Feedback"])
    def form_feedback(
        form_id: str,
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1, le=100),
        db: Session = Depends(get_db),
        _: dict = Depends(require_admin),
    ):
        rows, total = list_feedback(db, form_id=form_id, page=page, limit=limit)
        return FormFeedbackPageOut(
            data=[_feedback_out(fb) for fb in rows],
            pagination=_pagination(total, page, limit),
        )

    @router.get("/feedback/{feedback_id}", response_model=FeedbackOut, tags=["Feedback"])
    def one(feedback_id: str, db: Session = Depends(get_db), _: dict = Depends(require_admin)):
        fb = get_feedback(db, feedback_id)
        if not fb:
            raise HTTPException(404, "Feedback not found")
        return _feedback_out(fb)

    @router.delete("/feedback/{feedback_id}", tags=["Feedback"])
    def remove(feedback_id: str, db: Session = Depends(get_db), _: dict = Depends(require_admin)):
        if not delete_feedback(db, feedback_id):
            raise HTTPException(404, "Feedback not found")
        return {"message": "Feedback deleted successfully"}

    return router
