"""Shared machinery for the activity widgets.

Every activity goes through the same two-phase completion:

    IDLE → REVEALING(result, deadline) → COMPLETED(result)

While revealing, correctness is visible but no new interaction is accepted
for the current check/question; once the scheduler fires, the completion
callback receives the :class:`ActivityResult`.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from activities.scheduler import AsyncioScheduler, CallbackScheduler, ScheduledCall
from errors.exceptions import ActivityStateError
from models.activity import ActivityResult, ActivityType

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[ActivityResult], None]


def round_half_up(value: float) -> int:
    """Round like the product always has: .5 goes up (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def score_percentage(correct: int, total: int) -> int:
    if total <= 0:
        return 0
    return round_half_up(correct / total * 100)


class RevealPhase(str, Enum):
    IDLE = "idle"
    REVEALING = "revealing"
    COMPLETED = "completed"


@dataclass(frozen=True)
class RevealState:
    phase: RevealPhase = RevealPhase.IDLE
    result: ActivityResult | None = None
    deadline: float | None = None


class BaseActivity:
    """Base class: clock, reveal scheduling, completion reporting."""

    kind: ActivityType

    def __init__(
        self,
        on_complete: CompletionCallback,
        *,
        reveal_delay: float,
        scheduler: CallbackScheduler | None = None,
        title: str = "",
        instructions: str = "",
    ) -> None:
        self.title = title
        self.instructions = instructions
        self._on_complete = on_complete
        self._reveal_delay = reveal_delay
        self._scheduler = scheduler or AsyncioScheduler()
        self._started_at = self._scheduler.now()
        self._reveal = RevealState()
        self._pending: ScheduledCall | None = None

    # -- state ---------------------------------------------------------------

    @property
    def phase(self) -> RevealPhase:
        return self._reveal.phase

    @property
    def reveal_state(self) -> RevealState:
        return self._reveal

    @property
    def result(self) -> ActivityResult | None:
        return self._reveal.result

    @property
    def reveal_delay(self) -> float:
        return self._reveal_delay

    def elapsed_seconds(self) -> int:
        return round_half_up(self._scheduler.now() - self._started_at)

    # -- reveal / completion -------------------------------------------------

    def _start_reveal(
        self,
        on_elapsed: Callable[[], None],
        result: ActivityResult | None = None,
    ) -> None:
        deadline = self._scheduler.now() + self._reveal_delay
        self._reveal = RevealState(RevealPhase.REVEALING, result, deadline)

        def fire() -> None:
            self._pending = None
            on_elapsed()

        self._pending = self._scheduler.call_later(self._reveal_delay, fire)

    def _complete(self, result: ActivityResult) -> None:
        self._reveal = RevealState(RevealPhase.COMPLETED, result, None)
        logger.info(
            "%s completed: score=%d percentage=%d time=%ds",
            self.kind.value, result.score, result.percentage, result.time_spent_seconds,
        )
        self._on_complete(result)

    def _cancel_reveal(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        self._reveal = RevealState()

    def _reject(self, message: str) -> ActivityStateError:
        return ActivityStateError(type(self).__name__, message)

    def reset(self) -> None:
        raise NotImplementedError
