"""Question-based activities: multiple choice and story comprehension.

Navigation is linear and forward-only.  Each submitted answer is revealed
(with its explanation) for ``reveal_delay`` seconds before the activity
advances; the last reveal ends the attempt.  Story comprehension adds a
reading step in front of the questions which is not scored.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable

from activities.base import (
    BaseActivity,
    CompletionCallback,
    RevealPhase,
    score_percentage,
)
from activities.scheduler import CallbackScheduler
from config.settings import get_settings
from models.activity import ActivityResult, ActivityType, Question


class MultipleChoiceActivity(BaseActivity):
    kind = ActivityType.MULTIPLE_CHOICE

    def __init__(
        self,
        questions: Iterable[Question],
        on_complete: CompletionCallback,
        *,
        title: str = "",
        instructions: str = "",
        scheduler: CallbackScheduler | None = None,
        reveal_delay: float | None = None,
    ) -> None:
        super().__init__(
            on_complete,
            reveal_delay=(
                reveal_delay if reveal_delay is not None
                else get_settings().question_reveal_seconds
            ),
            scheduler=scheduler,
            title=title,
            instructions=instructions,
        )
        self._questions: list[Question] = list(questions)
        if not self._questions:
            raise self._reject("at least one question is required")
        self._clear()

    def _clear(self) -> None:
        self._index = 0
        self._selected: int | None = None
        self._show_result = False
        self._score = 0
        self._answers: list[int] = []

    # -- state ---------------------------------------------------------------

    @property
    def questions(self) -> list[Question]:
        return list(self._questions)

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current_question(self) -> Question:
        return self._questions[self._index]

    @property
    def selected_option(self) -> int | None:
        return self._selected

    @property
    def show_result(self) -> bool:
        return self._show_result

    @property
    def score(self) -> int:
        return self._score

    @property
    def answers(self) -> list[int]:
        return list(self._answers)

    @property
    def is_last_question(self) -> bool:
        return self._index + 1 >= len(self._questions)

    @property
    def can_submit(self) -> bool:
        return (
            self._accepting_answers()
            and self._selected is not None
            and not self._show_result
        )

    @property
    def last_answer_correct(self) -> bool | None:
        """Correctness of the answer being revealed, else None."""
        if not self._show_result or self._selected is None:
            return None
        return self._selected == self.current_question.correct_answer

    @property
    def explanation(self) -> str | None:
        if not self._show_result:
            return None
        return self.current_question.explanation

    def _accepting_answers(self) -> bool:
        return self.phase is not RevealPhase.COMPLETED

    # -- interaction ---------------------------------------------------------

    def select_option(self, index: int) -> None:
        if not self._accepting_answers():
            raise self._reject("activity already completed")
        if self._show_result:
            return
        options = self.current_question.options
        if not 0 <= index < len(options):
            raise self._reject(
                f"option {index} out of range for question {self.current_question.id}"
            )
        self._selected = index

    def submit_answer(self) -> bool:
        """Score the current selection and start its reveal.

        Returns whether the answer was correct.
        """
        if not self.can_submit:
            raise self._reject("select an option before submitting")

        question = self.current_question
        is_correct = self._selected == question.correct_answer
        self._answers.append(self._selected)
        if is_correct:
            self._score += 1
        self._show_result = True
        self._start_reveal(self._after_reveal)
        return is_correct

    def _after_reveal(self) -> None:
        if self.is_last_question:
            result = ActivityResult(
                score=self._score,
                percentage=score_percentage(self._score, len(self._questions)),
                answers=list(self._answers),
                time_spent_seconds=self.elapsed_seconds(),
            )
            self._complete(result)
            return
        self._index += 1
        self._selected = None
        self._show_result = False
        self._cancel_reveal()

    def reset(self) -> None:
        self._cancel_reveal()
        self._clear()


class StoryStep(str, Enum):
    STORY = "story"
    QUESTIONS = "questions"


class StoryComprehensionActivity(MultipleChoiceActivity):
    """Read a story, then answer questions about it."""

    kind = ActivityType.STORY_COMPREHENSION

    def __init__(
        self,
        story: str,
        questions: Iterable[Question],
        on_complete: CompletionCallback,
        **kwargs,
    ) -> None:
        self.story = story
        self._step = StoryStep.STORY
        super().__init__(questions, on_complete, **kwargs)

    @property
    def step(self) -> StoryStep:
        return self._step

    def start_questions(self) -> None:
        self._step = StoryStep.QUESTIONS

    def return_to_story(self) -> None:
        """Go back to the text; the question index is not rewound."""
        if self._show_result:
            return
        self._step = StoryStep.STORY

    def _accepting_answers(self) -> bool:
        return self._step is StoryStep.QUESTIONS and super()._accepting_answers()

    def select_option(self, index: int) -> None:
        if self._step is StoryStep.STORY:
            raise self._reject("start the questions before answering")
        super().select_option(index)

    def reset(self) -> None:
        super().reset()
        self._step = StoryStep.STORY
