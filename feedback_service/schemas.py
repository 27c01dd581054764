from datetime import datetime
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    # camelCase on the wire, snake_case in python
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Forms
class QuestionIn(CamelModel):
    text: str
    type: str = Field(pattern="^(text|vote|rating)$")
    required: bool = False

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Question text is required")
        return v


class FormIn(CamelModel):
    title: str
    questions: list[QuestionIn] = Field(min_length=1)

    @field_validator("title")
    @classmethod
    def title_min_length(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 3:
            raise ValueError("Title must be at least 3 characters long")
        return v


class QuestionOut(CamelModel):
    id: str
    text: str
    type: str
    required: bool


class FormOut(CamelModel):
    id: str
    title: str
    questions: list[QuestionOut]
    created_by: str
    created_at: datetime


class FormSummaryOut(CamelModel):
    id: str
    title: str
    questions: list[QuestionOut]
    question_count: int
    created_at: datetime


class PaginationOut(CamelModel):
    total: int
    page: int
    total_pages: int
    limit: int


class FormPageOut(CamelModel):
    data: list[FormSummaryOut]
    pagination: PaginationOut


# Feedback
class AnswerIn(CamelModel):
    question_id: str
    # type is free-form so mismatches reach the validator; values are strict
    type: str
    text: Optional[str] = None
    vote: Optional[StrictBool] = None
    rating: Optional[Union[StrictInt, StrictFloat]] = None


class FeedbackIn(CamelModel):
    form_id: Optional[str] = None
    answers: Optional[list[AnswerIn]] = None


class AnswerOut(CamelModel):
    question_id: str
    question_text: str
    type: str
    text: Optional[str] = None
    vote: Optional[bool] = None
    rating: Optional[int] = None
    sentiment: Literal["Positive", "Negative", "Neutral"]


class FeedbackOut(CamelModel):
    id: str
    form_id: str
    answers: list[AnswerOut]
    created_at: datetime
    overall_sentiment: Literal["Positive", "Negative", "Neutral"]


class SubmitFeedbackOut(CamelModel):
    message: str
    feedback: FeedbackOut


class FeedbackPageOut(CamelModel):
    feedbacks: list[FeedbackOut]
    total_pages: int
    current_page: int
    total_feedback: int


class FormFeedbackPageOut(CamelModel):
    success: bool = True
    data: list[FeedbackOut]
    pagination: PaginationOut


class StatsOut(CamelModel):
    total_submissions: int
    sentiment: dict[str, int]
    by_question_type: dict[str, int]
    rating_distribution: dict[int, int]
    vote_distribution: dict[str, int]
    submissions_by_date: dict[str, int]
    average_rating: float
