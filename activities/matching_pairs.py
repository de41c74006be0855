"""Matching-pairs activity.

Each pair carries one id shared by its left prompt and right answer, so a
match is correct exactly when the chosen right id equals the left id.  The
right column is shuffled once at construction for display only.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Iterable

from activities.base import BaseActivity, CompletionCallback, score_percentage
from activities.scheduler import CallbackScheduler
from config.settings import get_settings
from models.activity import ActivityResult, ActivityType, MatchingPair


@dataclass(frozen=True)
class Side:
    id: str
    text: str


class MatchingPairsActivity(BaseActivity):
    kind = ActivityType.MATCHING_PAIRS

    def __init__(
        self,
        pairs: Iterable[MatchingPair],
        on_complete: CompletionCallback,
        *,
        title: str = "",
        instructions: str = "",
        scheduler: CallbackScheduler | None = None,
        reveal_delay: float | None = None,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__(
            on_complete,
            reveal_delay=(
                reveal_delay if reveal_delay is not None
                else get_settings().check_reveal_seconds
            ),
            scheduler=scheduler,
            title=title,
            instructions=instructions,
        )
        self._pairs: list[MatchingPair] = list(pairs)
        self._left = [Side(p.id, p.left) for p in self._pairs]
        right = [Side(p.id, p.right) for p in self._pairs]
        (rng or random.Random()).shuffle(right)
        self._right = right
        self._ids = {p.id for p in self._pairs}

        self._matches: dict[str, str] = {}
        self._selected_left: str | None = None
        self._selected_right: str | None = None
        self._show_results = False

    # -- state ---------------------------------------------------------------

    @property
    def pairs(self) -> list[MatchingPair]:
        return list(self._pairs)

    @property
    def left_items(self) -> list[Side]:
        return list(self._left)

    @property
    def right_items(self) -> list[Side]:
        return list(self._right)

    @property
    def matches(self) -> dict[str, str]:
        return dict(self._matches)

    @property
    def selected_left(self) -> str | None:
        return self._selected_left

    @property
    def selected_right(self) -> str | None:
        return self._selected_right

    @property
    def show_results(self) -> bool:
        return self._show_results

    @property
    def can_check(self) -> bool:
        return len(self._matches) == len(self._pairs) and not self._show_results

    def is_right_matched(self, right_id: str) -> bool:
        return right_id in self._matches.values()

    def is_match_correct(self, left_id: str) -> bool:
        if not self._show_results:
            return False
        return self._matches.get(left_id) == left_id

    # -- interaction ---------------------------------------------------------

    def select_left(self, left_id: str) -> None:
        if self._show_results or left_id in self._matches or left_id not in self._ids:
            return
        self._selected_left = None if self._selected_left == left_id else left_id
        self._selected_right = None

    def select_right(self, right_id: str) -> None:
        if self._show_results or right_id not in self._ids:
            return
        if self.is_right_matched(right_id):
            return
        if self._selected_left is not None:
            self._matches[self._selected_left] = right_id
            self._selected_left = None
            self._selected_right = None
        else:
            self._selected_right = None if self._selected_right == right_id else right_id

    def unmatch(self, left_id: str) -> None:
        if self._show_results:
            return
        self._matches.pop(left_id, None)

    # -- scoring -------------------------------------------------------------

    def check_answers(self) -> ActivityResult:
        if not self.can_check:
            raise self._reject("every left item must be matched before checking")

        self._show_results = True
        correct = sum(1 for left_id, right_id in self._matches.items() if left_id == right_id)
        answers: list[str | int] = [self._matches.get(p.id, "") for p in self._pairs]

        result = ActivityResult(
            score=correct,
            percentage=score_percentage(correct, len(self._pairs)),
            answers=answers,
            time_spent_seconds=self.elapsed_seconds(),
        )
        self._start_reveal(lambda: self._complete(result), result)
        return result

    def reset(self) -> None:
        # Right column order is kept for the lifetime of the activity
        self._cancel_reveal()
        self._matches = {}
        self._selected_left = None
        self._selected_right = None
        self._show_results = False
