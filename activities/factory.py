"""Build the right activity object for a backend ``ActivityContent``."""

from __future__ import annotations

import logging
import random

from activities.base import BaseActivity, CompletionCallback
from activities.drag_drop import DragDropActivity, DropZoneRegistry
from activities.matching_pairs import MatchingPairsActivity
from activities.multiple_choice import MultipleChoiceActivity, StoryComprehensionActivity
from activities.scheduler import CallbackScheduler
from errors.exceptions import ActivityStateError
from models.activity import ActivityContent, ActivityType

logger = logging.getLogger(__name__)


def create_activity(
    content: ActivityContent,
    on_complete: CompletionCallback,
    *,
    scheduler: CallbackScheduler | None = None,
    rng: random.Random | None = None,
    drop_zones: DropZoneRegistry | None = None,
) -> BaseActivity:
    """Instantiate the widget for ``content.activity_type``.

    Content lists are ordered by ``order_index`` first, matching how the
    backend serves them.
    """
    common = {
        "title": content.title,
        "instructions": content.instructions,
        "scheduler": scheduler,
    }
    kind = content.activity_type

    if kind in (ActivityType.MULTIPLE_CHOICE, ActivityType.STORY_COMPREHENSION):
        questions = sorted(content.questions, key=lambda q: q.order_index)
        if not questions:
            raise ActivityStateError(kind.value, f"activity {content.id} has no questions")
        if kind is ActivityType.STORY_COMPREHENSION:
            return StoryComprehensionActivity(
                content.story_text or "", questions, on_complete, **common
            )
        return MultipleChoiceActivity(questions, on_complete, **common)

    if kind is ActivityType.DRAG_DROP:
        items = sorted(content.drag_drop_items, key=lambda i: i.order_index)
        categories = sorted(content.drag_drop_categories, key=lambda c: c.order_index)
        if not items or not categories:
            raise ActivityStateError(
                kind.value, f"activity {content.id} has no drag-drop items or categories"
            )
        return DragDropActivity(
            items, categories, on_complete, drop_zones=drop_zones, **common
        )

    if kind is ActivityType.MATCHING_PAIRS:
        pairs = sorted(content.matching_pairs, key=lambda p: p.order_index)
        if not pairs:
            raise ActivityStateError(kind.value, f"activity {content.id} has no pairs")
        return MatchingPairsActivity(pairs, on_complete, rng=rng, **common)

    raise ActivityStateError(str(kind), "unsupported activity type")
