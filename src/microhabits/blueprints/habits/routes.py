"""Habit routes."""

from __future__ import annotations

from dataclasses import asdict

from flask import jsonify, request

from ...errors import StoreError
from ...extensions import current_user, login_required, tracker_for
from ...models.habit import Habit
from ...services.gamification import calculate_xp, get_achievements
from ...services.insights import activity_heatmap, filter_habits, frequency_distribution, overview
from ...services.tracker import HabitTracker
from . import bp


def _load_tracker() -> HabitTracker:
    tracker = tracker_for(current_user())
    tracker.refresh()
    if tracker.error:
        raise StoreError(tracker.error)
    return tracker


def _habit_payload(tracker: HabitTracker, habit: Habit) -> dict:
    item = tracker.find(habit.id)
    return item.as_dict() if item is not None else habit.as_dict()


@bp.get("/")
@login_required
def list_habits():
    """Habits with stats plus the dashboard aggregates."""

    tracker = _load_tracker()
    visible = filter_habits(
        tracker.habits,
        search=request.args.get("search", ""),
        filter_by=request.args.get("filter", "all"),
    )
    return jsonify(
        {
            "habits": [item.as_dict() for item in visible],
            "overview": asdict(overview(tracker.habits)),
            "xp": asdict(calculate_xp(tracker.habits)),
            "achievements": [asdict(a) for a in get_achievements(tracker.habits)],
            "distribution": frequency_distribution(tracker.habits),
        }
    )


@bp.post("/")
@login_required
def create_habit():
    tracker = tracker_for(current_user())
    habit = tracker.create_habit(request.get_json(silent=True) or {}).unwrap()
    return jsonify({"habit": _habit_payload(tracker, habit)}), 201


@bp.patch("/<int:habit_id>")
@login_required
def update_habit(habit_id: int):
    tracker = tracker_for(current_user())
    habit = tracker.update_habit(habit_id, request.get_json(silent=True) or {}).unwrap()
    return jsonify({"habit": _habit_payload(tracker, habit)})


@bp.delete("/<int:habit_id>")
@login_required
def delete_habit(habit_id: int):
    tracker = tracker_for(current_user())
    tracker.delete_habit(habit_id).unwrap()
    return "", 204


@bp.post("/<int:habit_id>/toggle")
@login_required
def toggle_habit(habit_id: int):
    """Toggle habit completion state for today."""

    tracker = tracker_for(current_user())
    completed = tracker.toggle_completion(habit_id).unwrap()
    item = tracker.find(habit_id)
    return jsonify(
        {
            "completed": completed,
            "habit": item.as_dict() if item is not None else None,
        }
    )


@bp.put("/<int:habit_id>/reminder")
@login_required
def update_reminder(habit_id: int):
    payload = request.get_json(silent=True) or {}
    tracker = tracker_for(current_user())
    habit = tracker.update_reminder(
        habit_id, payload.get("enabled"), payload.get("time")
    ).unwrap()
    return jsonify({"habit": _habit_payload(tracker, habit)})


@bp.get("/heatmap")
@login_required
def heatmap():
    """Daily completion counts across all habits for the last twelve months."""

    tracker = _load_tracker()
    cells = activity_heatmap(
        [completion.completed_at for completion in tracker.completions],
        tracker.now(),
        boundary=tracker.boundary,
    )
    return jsonify({"days": [cell.as_dict() for cell in cells]})
