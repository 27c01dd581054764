import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from shared.database import Base

from .sentiment_logic import aggregate


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    # stored naive, always UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Form(Base):
    __tablename__ = "form"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    title: Mapped[str] = mapped_column(String(255))
    created_by: Mapped[str] = mapped_column(String(64), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, index=True)

    questions: Mapped[list["Question"]] = relationship(
        back_populates="form",
        order_by="Question.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class Question(Base):
    __tablename__ = "question"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    form_id: Mapped[str] = mapped_column(String(32), ForeignKey("form.id"), index=True)
    position: Mapped[int] = mapped_column(Integer, default=0)
    text: Mapped[str] = mapped_column(Text)
    type: Mapped[str] = mapped_column(String(10))         # "text" | "vote" | "rating"
    required: Mapped[bool] = mapped_column(Boolean, default=False)

    form: Mapped[Form] = relationship(back_populates="questions")


class Feedback(Base):
    __tablename__ = "feedback"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    form_id: Mapped[str] = mapped_column(String(32), ForeignKey("form.id"), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, index=True)

    answers: Mapped[list["Answer"]] = relationship(
        back_populates="feedback",
        order_by="Answer.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def overall_sentiment(self) -> str:
        # derived on read, never stored
        return aggregate(self.answers)


class Answer(Base):
    __tablename__ = "answer"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    feedback_id: Mapped[str] = mapped_column(String(32), ForeignKey("feedback.id"), index=True)
    position: Mapped[int] = mapped_column(Integer, default=0)

    question_id: Mapped[str] = mapped_column(String(32))   # question of the parent form
    question_text: Mapped[str] = mapped_column(Text)       # copy taken at submission time
    type: Mapped[str] = mapped_column(String(10))

    text: Mapped[str | None] = mapped_column(Text, nullable=True)
    vote: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    rating: Mapped[int | None] = mapped_column(Integer, nullable=True)

    sentiment: Mapped[str] = mapped_column(String(10), default="Neutral", index=True)

    feedback: Mapped[Feedback] = relationship(back_populates="answers")
