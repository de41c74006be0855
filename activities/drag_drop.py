"""Drag-and-drop categorisation activity.

Items start in an "available" tray and are dragged into category drop
zones.  Mouse drags call ``begin_drag`` / ``drop``; touch drags go through
``touch_start`` / ``touch_move`` / ``touch_end``, with the release point
resolved against a :class:`DropZoneRegistry` of zone rectangles.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from activities.base import BaseActivity, CompletionCallback, score_percentage
from activities.scheduler import CallbackScheduler
from config.settings import get_settings
from models.activity import ActivityResult, ActivityType, DragDropCategory, DragDropItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    def contains(self, point: Point) -> bool:
        return (
            self.x <= point.x <= self.x + self.width
            and self.y <= point.y <= self.y + self.height
        )


class DropZoneRegistry:
    """Bounding boxes of the drop zones, keyed by category id.

    Zones (re)register when a drag starts or on layout change; a lookup
    returns the first registered zone containing the point.
    """

    def __init__(self) -> None:
        self._zones: dict[str, Rect] = {}

    def register(self, category_id: str, rect: Rect) -> None:
        self._zones[category_id] = rect

    def unregister(self, category_id: str) -> None:
        self._zones.pop(category_id, None)

    def clear(self) -> None:
        self._zones.clear()

    @property
    def zones(self) -> dict[str, Rect]:
        return dict(self._zones)

    def resolve(self, point: Point) -> str | None:
        for category_id, rect in self._zones.items():
            if rect.contains(point):
                return category_id
        return None


class DragDropActivity(BaseActivity):
    kind = ActivityType.DRAG_DROP

    def __init__(
        self,
        items: Iterable[DragDropItem],
        categories: Iterable[DragDropCategory],
        on_complete: CompletionCallback,
        *,
        title: str = "",
        instructions: str = "",
        scheduler: CallbackScheduler | None = None,
        reveal_delay: float | None = None,
        drop_zones: DropZoneRegistry | None = None,
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
        self._items: list[DragDropItem] = list(items)
        self._categories: list[DragDropCategory] = list(categories)
        self._category_ids = {c.category_id for c in self._categories}
        self.drop_zones = drop_zones or DropZoneRegistry()

        self._available: list[DragDropItem] = list(self._items)
        self._placed: dict[str, list[DragDropItem]] = {}
        self._dragged: DragDropItem | None = None
        self._touch_point: Point | None = None
        self._show_results = False

    # -- state ---------------------------------------------------------------

    @property
    def items(self) -> list[DragDropItem]:
        return list(self._items)

    @property
    def categories(self) -> list[DragDropCategory]:
        return list(self._categories)

    @property
    def available_items(self) -> list[DragDropItem]:
        return list(self._available)

    @property
    def placements(self) -> dict[str, list[DragDropItem]]:
        return {cid: list(items) for cid, items in self._placed.items() if items}

    @property
    def dragged_item(self) -> DragDropItem | None:
        return self._dragged

    @property
    def show_results(self) -> bool:
        return self._show_results

    @property
    def can_check(self) -> bool:
        return not self._available and not self._show_results

    def category_of(self, item_id: str) -> str | None:
        for category_id, placed in self._placed.items():
            if any(item.id == item_id for item in placed):
                return category_id
        return None

    def is_item_correct(self, item_id: str) -> bool | None:
        """Correctness highlight for a placed item; None before results."""
        if not self._show_results:
            return None
        category_id = self.category_of(item_id)
        item = self._find(self._items, item_id)
        if item is None or category_id is None:
            return False
        return item.correct_category == category_id

    # -- mouse drag ----------------------------------------------------------

    def begin_drag(self, item_id: str) -> bool:
        if self._show_results:
            return False
        item = self._find(self._available, item_id)
        if item is None:
            return False
        self._dragged = item
        return True

    def drop(self, category_id: str) -> bool:
        """Place the in-flight item into ``category_id``; no-op without one."""
        if self._dragged is None or self._show_results:
            return False
        if self._category_ids and category_id not in self._category_ids:
            logger.debug("Drop on unknown category %s ignored", category_id)
            return False
        item = self._dragged
        self._placed.setdefault(category_id, []).append(item)
        self._available = [i for i in self._available if i.id != item.id]
        self._dragged = None
        return True

    def cancel_drag(self) -> None:
        self._dragged = None
        self._touch_point = None

    def remove(self, category_id: str, item_id: str) -> bool:
        """Send a placed item back to the tray (only before results)."""
        if self._show_results:
            return False
        placed = self._placed.get(category_id, [])
        item = self._find(placed, item_id)
        if item is None:
            return False
        self._placed[category_id] = [i for i in placed if i.id != item_id]
        self._available.append(item)
        return True

    # -- touch drag ----------------------------------------------------------

    def touch_start(self, item_id: str, point: Point) -> bool:
        if not self.begin_drag(item_id):
            return False
        self._touch_point = point
        return True

    def touch_move(self, point: Point) -> None:
        if self._dragged is not None:
            self._touch_point = point

    def touch_end(self, point: Point | None = None) -> str | None:
        """Finish a touch drag; returns the category dropped into, if any."""
        release = point or self._touch_point
        self._touch_point = None
        if self._dragged is None:
            return None
        target = self.drop_zones.resolve(release) if release is not None else None
        if target is None or not self.drop(target):
            self.cancel_drag()
            return None
        return target

    # -- scoring -------------------------------------------------------------

    def check_answers(self) -> ActivityResult:
        if not self.can_check:
            raise self._reject("every item must be placed before checking")

        self._show_results = True
        self._dragged = None

        correct = sum(
            1
            for category_id, placed in self._placed.items()
            for item in placed
            if item.correct_category == category_id
        )
        item_to_category = {
            item.id: category_id
            for category_id, placed in self._placed.items()
            for item in placed
        }
        answers: list[str | int] = [item_to_category.get(item.id, "") for item in self._items]

        result = ActivityResult(
            score=correct,
            percentage=score_percentage(correct, len(self._items)),
            answers=answers,
            time_spent_seconds=self.elapsed_seconds(),
        )
        self._start_reveal(lambda: self._complete(result), result)
        return result

    def reset(self) -> None:
        self._cancel_reveal()
        self._placed = {}
        self._available = list(self._items)
        self._dragged = None
        self._touch_point = None
        self._show_results = False

    @staticmethod
    def _find(items: list[DragDropItem], item_id: str) -> DragDropItem | None:
        for item in items:
            if item.id == item_id:
                return item
        return None
