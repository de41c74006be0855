"""Activity engine: interactive exercise state machines."""

from activities.base import BaseActivity, RevealPhase, round_half_up, score_percentage
from activities.drag_drop import DragDropActivity, DropZoneRegistry, Point, Rect
from activities.factory import create_activity
from activities.matching_pairs import MatchingPairsActivity
from activities.multiple_choice import (
    MultipleChoiceActivity,
    StoryComprehensionActivity,
    StoryStep,
)
from activities.scheduler import AsyncioScheduler, ManualScheduler

__all__ = [
    "AsyncioScheduler",
    "BaseActivity",
    "DragDropActivity",
    "DropZoneRegistry",
    "ManualScheduler",
    "MatchingPairsActivity",
    "MultipleChoiceActivity",
    "Point",
    "Rect",
    "RevealPhase",
    "StoryComprehensionActivity",
    "StoryStep",
    "create_activity",
    "round_half_up",
    "score_percentage",
]
