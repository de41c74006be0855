"""Activity content and result models.

Mirrors the backend's ``ActivityContentResponse`` envelope and the payloads
exchanged when a student submits an attempt:

- ActivityType: the four supported exercise kinds
- Question / DragDropItem / DragDropCategory / MatchingPair: per-type content
- ActivityContent: full activity envelope as returned by the content endpoint
- ActivityResult: what an activity reports on completion (never persisted here)
- SubmitActivityRequest / ActivitySubmissionResponse: submit endpoint contract
"""

from __future__ import annotations

from enum import Enum

from pydantic import AliasChoices, ConfigDict, Field

from models.base import CamelModel


class ActivityType(str, Enum):
    """Activity kinds, aligned with the backend enum."""

    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    STORY_COMPREHENSION = "STORY_COMPREHENSION"
    DRAG_DROP = "DRAG_DROP"
    MATCHING_PAIRS = "MATCHING_PAIRS"


# ── Content ───────────────────────────────────────────────────


class Question(CamelModel):
    """A single multiple-choice question."""

    id: str
    # Backend sends questionText / correctAnswerIndex; the widgets used
    # question / correctAnswer.
    question: str = Field(
        validation_alias=AliasChoices("question", "questionText"),
    )
    options: list[str] = Field(default_factory=list)
    correct_answer: int = Field(
        validation_alias=AliasChoices(
            "correctAnswer", "correctAnswerIndex", "correct_answer"
        ),
    )
    explanation: str | None = None
    order_index: int = 0


class DragDropItem(CamelModel):
    id: str
    text: str
    correct_category: str
    order_index: int = 0


class DragDropCategory(CamelModel):
    """A drop target. ``category_id`` is the key items are scored against."""

    id: str
    category_id: str
    name: str
    color_class: str = ""
    order_index: int = 0


class MatchingPair(CamelModel):
    """Left prompt and right answer sharing one ``id``."""

    id: str
    left: str = Field(
        default="", validation_alias=AliasChoices("left", "leftText")
    )
    right: str = Field(
        default="", validation_alias=AliasChoices("right", "rightText")
    )
    order_index: int = 0


class ActivityContent(CamelModel):
    """Activity envelope; only the lists relevant to ``activity_type`` are filled."""

    id: str
    activity_type: ActivityType
    title: str = ""
    instructions: str = ""
    story_text: str | None = None
    order_index: int = 0
    passing_percentage: int | None = None

    questions: list[Question] = Field(default_factory=list)
    drag_drop_items: list[DragDropItem] = Field(default_factory=list)
    drag_drop_categories: list[DragDropCategory] = Field(default_factory=list)
    matching_pairs: list[MatchingPair] = Field(default_factory=list)


# ── Results ───────────────────────────────────────────────────


class ActivityResult(CamelModel):
    """Outcome of one activity attempt.

    ``answers`` is positionally aligned with the input items: category ids
    for drag-drop, right-side ids for matching pairs (``""`` when unplaced),
    option indices for question-based activities.
    """

    model_config = ConfigDict(frozen=True)

    score: int
    percentage: int
    answers: list[str | int] = Field(default_factory=list)
    time_spent_seconds: int = 0


class SubmitActivityRequest(CamelModel):
    answers: list[str | int]
    time_spent_seconds: int | None = None

    @classmethod
    def from_result(cls, result: ActivityResult) -> SubmitActivityRequest:
        return cls(
            answers=list(result.answers),
            time_spent_seconds=result.time_spent_seconds,
        )


class NextActivity(CamelModel):
    id: str
    type: str


class ActivitySubmissionResponse(CamelModel):
    """Backend verdict for a submitted attempt."""

    score: int | None = None
    percentage: float | None = None
    is_completed: bool | None = None
    correct_answers: int | None = None
    total_questions: int | None = None
    next_activity: NextActivity | None = None
