"""Tests for activities/drag_drop.py."""

from __future__ import annotations

import random

import pytest

from activities.base import RevealPhase
from activities.drag_drop import DragDropActivity, DropZoneRegistry, Point, Rect
from errors.exceptions import ActivityStateError
from models.activity import ActivityResult, DragDropCategory, DragDropItem


ITEMS = [
    DragDropItem(id="i1", text="aso", correct_category="pangngalan", order_index=0),
    DragDropItem(id="i2", text="tumakbo", correct_category="pandiwa", order_index=1),
    DragDropItem(id="i3", text="bahay", correct_category="pangngalan", order_index=2),
    DragDropItem(id="i4", text="kumain", correct_category="pandiwa", order_index=3),
]
CATEGORIES = [
    DragDropCategory(id="c1", category_id="pangngalan", name="Pangngalan", color_class="blue"),
    DragDropCategory(id="c2", category_id="pandiwa", name="Pandiwa", color_class="green"),
]


@pytest.fixture
def results() -> list[ActivityResult]:
    return []


@pytest.fixture
def activity(scheduler, results) -> DragDropActivity:
    return DragDropActivity(ITEMS, CATEGORIES, results.append, scheduler=scheduler)


def place(activity: DragDropActivity, item_id: str, category_id: str) -> None:
    assert activity.begin_drag(item_id)
    assert activity.drop(category_id)


# ── Drag / drop / remove ─────────────────────────────────────


class TestPlacement:
    def test_initial_state(self, activity):
        assert [i.id for i in activity.available_items] == ["i1", "i2", "i3", "i4"]
        assert activity.placements == {}
        assert activity.dragged_item is None
        assert not activity.can_check
        assert activity.phase is RevealPhase.IDLE

    def test_drop_moves_item(self, activity):
        place(activity, "i2", "pandiwa")
        assert [i.id for i in activity.available_items] == ["i1", "i3", "i4"]
        assert [i.id for i in activity.placements["pandiwa"]] == ["i2"]
        assert activity.dragged_item is None

    def test_drop_without_drag_is_noop(self, activity):
        assert activity.drop("pandiwa") is False
        assert activity.placements == {}

    def test_drop_on_unknown_category_ignored(self, activity):
        activity.begin_drag("i1")
        assert activity.drop("pang-uri") is False
        assert activity.dragged_item is not None

    def test_cannot_drag_placed_item(self, activity):
        place(activity, "i1", "pangngalan")
        assert activity.begin_drag("i1") is False

    def test_remove_returns_item_to_tray(self, activity):
        place(activity, "i1", "pandiwa")
        assert activity.remove("pandiwa", "i1") is True
        assert [i.id for i in activity.available_items] == ["i2", "i3", "i4", "i1"]
        assert activity.placements == {}

    def test_remove_unknown_is_noop(self, activity):
        assert activity.remove("pandiwa", "i1") is False

    def test_category_of(self, activity):
        place(activity, "i3", "pangngalan")
        assert activity.category_of("i3") == "pangngalan"
        assert activity.category_of("i1") is None


# ── Touch drag ───────────────────────────────────────────────


class TestTouchDrag:
    @pytest.fixture
    def zones(self, activity) -> DropZoneRegistry:
        activity.drop_zones.register("pangngalan", Rect(0, 0, 100, 100))
        activity.drop_zones.register("pandiwa", Rect(200, 0, 100, 100))
        return activity.drop_zones

    def test_touch_drop_on_zone(self, activity, zones):
        assert activity.touch_start("i2", Point(50, 300))
        activity.touch_move(Point(220, 40))
        assert activity.touch_end() == "pandiwa"
        assert activity.category_of("i2") == "pandiwa"

    def test_touch_end_explicit_point(self, activity, zones):
        activity.touch_start("i1", Point(50, 300))
        assert activity.touch_end(Point(100, 100)) == "pangngalan"

    def test_touch_released_outside_cancels(self, activity, zones):
        activity.touch_start("i1", Point(50, 300))
        assert activity.touch_end(Point(150, 50)) is None
        assert activity.dragged_item is None
        assert "i1" in [i.id for i in activity.available_items]

    def test_touch_end_without_drag(self, activity, zones):
        assert activity.touch_end(Point(10, 10)) is None


class TestDropZoneRegistry:
    def test_resolve_first_match(self):
        reg = DropZoneRegistry()
        reg.register("a", Rect(0, 0, 50, 50))
        reg.register("b", Rect(25, 25, 50, 50))
        assert reg.resolve(Point(30, 30)) == "a"
        assert reg.resolve(Point(70, 70)) == "b"
        assert reg.resolve(Point(90, 90)) is None

    def test_unregister_and_clear(self):
        reg = DropZoneRegistry()
        reg.register("a", Rect(0, 0, 10, 10))
        reg.unregister("a")
        assert reg.resolve(Point(5, 5)) is None
        reg.register("b", Rect(0, 0, 10, 10))
        reg.clear()
        assert reg.zones == {}


# ── Checking answers ─────────────────────────────────────────


class TestCheckAnswers:
    def test_check_requires_all_placed(self, activity):
        place(activity, "i1", "pangngalan")
        with pytest.raises(ActivityStateError):
            activity.check_answers()

    def test_scores_and_reports_after_delay(self, activity, scheduler, results):
        place(activity, "i4", "pandiwa")
        place(activity, "i1", "pangngalan")
        place(activity, "i3", "pandiwa")  # wrong
        place(activity, "i2", "pandiwa")
        scheduler.advance(42)

        result = activity.check_answers()
        assert result.score == 3
        assert result.percentage == 75
        assert result.answers == ["pangngalan", "pandiwa", "pandiwa", "pandiwa"]
        assert result.time_spent_seconds == 42

        assert activity.phase is RevealPhase.REVEALING
        assert activity.reveal_state.deadline == 45
        scheduler.advance(2.5)
        assert results == []
        scheduler.advance(0.5)
        assert results == [result]
        assert activity.phase is RevealPhase.COMPLETED

    def test_frozen_while_revealing(self, activity):
        for item in ITEMS:
            place(activity, item.id, item.correct_category)
        activity.check_answers()
        assert activity.remove("pangngalan", "i1") is False
        assert activity.begin_drag("i1") is False
        assert not activity.can_check
        with pytest.raises(ActivityStateError):
            activity.check_answers()

    def test_correctness_highlight(self, activity):
        place(activity, "i1", "pandiwa")
        for item in ITEMS[1:]:
            place(activity, item.id, item.correct_category)
        assert activity.is_item_correct("i2") is None
        activity.check_answers()
        assert activity.is_item_correct("i1") is False
        assert activity.is_item_correct("i2") is True

    def test_percentage_rounds_half_up(self, scheduler):
        items = [
            DragDropItem(id=f"i{n}", text=str(n), correct_category="a") for n in range(8)
        ]
        cats = [
            DragDropCategory(id="ca", category_id="a", name="A"),
            DragDropCategory(id="cb", category_id="b", name="B"),
        ]
        act = DragDropActivity(items, cats, lambda r: None, scheduler=scheduler)
        place(act, "i0", "a")
        for item in items[1:]:
            place(act, item.id, "b")
        # 1/8 = 12.5% rounds up, not to even
        assert act.check_answers().percentage == 13

    @pytest.mark.parametrize("seed", range(5))
    def test_answers_aligned_to_input_order(self, scheduler, seed):
        rng = random.Random(seed)
        act = DragDropActivity(ITEMS, CATEGORIES, lambda r: None, scheduler=scheduler)
        # Random placements with some removals in between
        for _ in range(20):
            available = act.available_items
            if available:
                item = rng.choice(available)
                place(act, item.id, rng.choice(["pangngalan", "pandiwa"]))
            placements = act.placements
            if placements and rng.random() < 0.3:
                cid = rng.choice(list(placements))
                act.remove(cid, rng.choice(placements[cid]).id)
        while act.available_items:
            place(act, act.available_items[0].id, "pandiwa")

        result = act.check_answers()
        assert len(result.answers) == len(ITEMS)
        for item, answer in zip(ITEMS, result.answers):
            assert answer == act.category_of(item.id)

    def test_empty_activity_scores_zero(self, scheduler, results):
        act = DragDropActivity([], CATEGORIES, results.append, scheduler=scheduler)
        assert act.can_check
        result = act.check_answers()
        assert result.percentage == 0
        assert result.answers == []


# ── Reset ────────────────────────────────────────────────────


class TestReset:
    def test_reset_after_partial(self, activity):
        place(activity, "i1", "pangngalan")
        activity.begin_drag("i2")
        activity.reset()
        assert [i.id for i in activity.available_items] == ["i1", "i2", "i3", "i4"]
        assert activity.placements == {}
        assert activity.dragged_item is None

    def test_reset_cancels_pending_report(self, activity, scheduler, results):
        for item in ITEMS:
            place(activity, item.id, item.correct_category)
        activity.check_answers()
        activity.reset()
        scheduler.run_all()
        assert results == []
        assert activity.phase is RevealPhase.IDLE
        assert not activity.show_results

    def test_rerunnable_after_completion(self, activity, scheduler, results):
        for item in ITEMS:
            place(activity, item.id, item.correct_category)
        activity.check_answers()
        scheduler.run_all()
        activity.reset()
        for item in ITEMS:
            place(activity, item.id, "pandiwa")
        activity.check_answers()
        scheduler.run_all()
        assert [r.score for r in results] == [4, 2]
