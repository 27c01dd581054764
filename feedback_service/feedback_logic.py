from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from .models import Answer, Feedback
from .sentiment_logic import NEGATIVE, NEUTRAL, POSITIVE, classify


# ----------------------------
# Assembly
# ----------------------------

def build_answer(question, raw: Any, position: int = 0) -> Answer:
    answer = Answer(
        position=position,
        question_id=str(question.id),
        question_text=question.text,
        type=question.type,
    )

    # only the value field matching the type is copied
    if question.type == "text":
        answer.text = (raw.text or "").strip()
    elif question.type == "vote":
        answer.vote = raw.vote
    elif question.type == "rating":
        answer.rating = int(raw.rating) if raw.rating is not None else None

    answer.sentiment = classify(answer)
    return answer


def assemble_feedback(form, answers: Iterable[Any], created_at: Optional[datetime] = None) -> Feedback:
    """
    Turn validated raw answers into an unsaved Feedback.
    Answer order follows the input; question text is copied from the form
    as it is now.
    """
    questions = {str(q.id): q for q in form.questions}
    built: List[Answer] = [
        build_answer(questions[str(a.question_id)], a, position=i)
        for i, a in enumerate(answers)
    ]

    fb = Feedback(form_id=form.id, answers=built)
    fb.created_at = created_at or datetime.now(timezone.utc).replace(tzinfo=None)
    return fb


# ----------------------------
# Statistics
# ----------------------------

@dataclass
class FeedbackStats:
    total_submissions: int = 0
    sentiment: Dict[str, int] = field(default_factory=lambda: {POSITIVE: 0, NEUTRAL: 0, NEGATIVE: 0})
    by_question_type: Dict[str, int] = field(default_factory=lambda: {"text": 0, "vote": 0, "rating": 0})
    rating_distribution: Dict[int, int] = field(default_factory=lambda: {r: 0 for r in range(1, 6)})
    vote_distribution: Dict[str, int] = field(default_factory=lambda: {"true": 0, "false": 0})
    submissions_by_date: Dict[str, int] = field(default_factory=dict)

    @property
    def average_rating(self) -> float:
        n = sum(self.rating_distribution.values())
        if n == 0:
            return 0.0
        return sum(r * c for r, c in self.rating_distribution.items()) / n

    def as_dict(self) -> Dict[str, Any]:
        return {
            "total_submissions": self.total_submissions,
            "sentiment": dict(self.sentiment),
            "by_question_type": dict(self.by_question_type),
            "rating_distribution": dict(self.rating_distribution),
            "vote_distribution": dict(self.vote_distribution),
            "submissions_by_date": dict(self.submissions_by_date),
            "average_rating": self.average_rating,
        }


def _day(ts: datetime) -> str:
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc)
    return ts.date().isoformat()


def compute_stats(feedbacks: Iterable[Any]) -> FeedbackStats:
    """
    Single pass over an already-filtered feedback stream.
    Only the output buckets are held in memory.
    """
    stats = FeedbackStats()

    for fb in feedbacks:
        stats.total_submissions += 1

        overall = fb.overall_sentiment
        if overall in stats.sentiment:
            stats.sentiment[overall] += 1

        for a in fb.answers:
            if a.type in stats.by_question_type:
                stats.by_question_type[a.type] += 1

            if a.type == "rating" and a.rating in stats.rating_distribution:
                stats.rating_distribution[a.rating] += 1
            elif a.type == "vote" and a.vote is not None:
                stats.vote_distribution["true" if a.vote else "false"] += 1

        if fb.created_at:
            key = _day(fb.created_at)
            stats.submissions_by_date[key] = stats.submissions_by_date.get(key, 0) + 1

    return stats
