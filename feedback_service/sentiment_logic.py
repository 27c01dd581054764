import os
import re
from typing import Any, Iterable, List, Optional


POSITIVE = "Positive"
NEGATIVE = "Negative"
NEUTRAL = "Neutral"

SENTIMENTS = (POSITIVE, NEGATIVE, NEUTRAL)

# Tie-break order when several labels share the highest count
TIE_BREAK_ORDER = (POSITIVE, NEUTRAL, NEGATIVE)


# ----------------------------
# Keyword configuration
# ----------------------------

def _extra_keywords(env_name: str) -> set:
    raw = os.getenv(env_name, "") or ""
    return {w.strip().lower() for w in raw.split(",") if w.strip()}


POSITIVE_KEYWORDS = frozenset(
    {"good", "great", "awesome", "excellent", "satisfied", "happy", "love"}
    | _extra_keywords("SENTIMENT_POSITIVE_KEYWORDS")
)
NEGATIVE_KEYWORDS = frozenset(
    {"bad", "poor", "terrible", "awful", "dissatisfied", "unhappy", "hate"}
    | _extra_keywords("SENTIMENT_NEGATIVE_KEYWORDS")
)


# ----------------------------
# Per-answer classification
# ----------------------------

_TOKEN_RE = re.compile(r"\w+")

def tokenize(text: str) -> List[str]:
    if not text:
        return []
    return _TOKEN_RE.findall(text.lower())


def text_sentiment(text: Optional[str]) -> str:
    if not isinstance(text, str):
        return NEUTRAL

    score = 0
    for tok in tokenize(text):
        if tok in POSITIVE_KEYWORDS:
            score += 1
        elif tok in NEGATIVE_KEYWORDS:
            score -= 1

    if score > 0:
        return POSITIVE
    if score < 0:
        return NEGATIVE
    return NEUTRAL


def rating_sentiment(rating: Optional[int]) -> str:
    if rating is None or isinstance(rating, bool):
        return NEUTRAL
    if rating <= 2:
        return NEGATIVE
    if rating >= 4:
        return POSITIVE
    return NEUTRAL


def vote_sentiment(vote: Optional[bool]) -> str:
    # a vote is never Neutral once present
    if vote is None:
        return NEUTRAL
    return POSITIVE if vote else NEGATIVE


def classify(answer: Any) -> str:
    """
    Sentiment label for one answer, based on its declared type.
    Accepts anything exposing `type` plus the matching value attribute
    (ORM Answer, pydantic AnswerIn, ...). Never raises: missing values and
    unknown types fall back to Neutral.
    """
    answer_type = getattr(answer, "type", None)

    if answer_type == "text":
        return text_sentiment(getattr(answer, "text", None))
    if answer_type == "rating":
        return rating_sentiment(getattr(answer, "rating", None))
    if answer_type == "vote":
        return vote_sentiment(getattr(answer, "vote", None))
    return NEUTRAL


# ----------------------------
# Overall sentiment
# ----------------------------

def aggregate(answers: Iterable[Any]) -> str:
    """
    Majority vote over per-answer sentiments.
    Items may be answer objects (with `.sentiment`) or bare labels.
    Ties resolve Positive > Neutral > Negative.
    """
    counts = {POSITIVE: 0, NEGATIVE: 0, NEUTRAL: 0}

    for a in answers:
        label = a if isinstance(a, str) else getattr(a, "sentiment", None)
        if label in counts:
            counts[label] += 1

    best = max(counts.values())
    if best == 0:
        return NEUTRAL

    for label in TIE_BREAK_ORDER:
        if counts[label] == best:
            return label
    return NEUTRAL
