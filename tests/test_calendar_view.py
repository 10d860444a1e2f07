"""Week grid layout, colors and navigation"""

from datetime import date, timedelta

import pytest

from src.calendar.calendar_view import (
    FALLBACK_PALETTE,
    OBJECTIVE_COLORS,
    CalendarView,
    color_for,
    format_day_long,
    is_flexible_description,
    parse_event_time,
    title_hash,
    upcoming_monday,
)
from src.planner.models import CalendarEvent, SchedulingConstraints

MONDAY = date(2026, 10, 19)


def _event(title="Atelier", description="", start="2026-10-20T10:00:00", end="2026-10-20T11:00:00"):
    return CalendarEvent(title=title, description=description, start_time=start, end_time=end)


# ===== Colors =====


def test_title_hash_matches_known_values():
    assert title_hash("") == 0
    assert title_hash("a") == 97
    assert title_hash("ab") == 3105


def test_title_hash_only_wraps_the_shift():
    # The eleventh step leaves the int32 range; the browser keeps the sum as is
    assert title_hash("z" * 11) == 2529254458


def test_title_hash_reads_utf16_units():
    assert title_hash("\U0001F600") == 0xDE00 + 31 * 0xD83D


@pytest.mark.parametrize("number", [1, 2, 3])
def test_objective_marker_selects_objective_color(number):
    assert color_for(f"Lié à l'Objectif {number}: texte", "Titre") == OBJECTIVE_COLORS[number]


def test_lowest_objective_marker_wins():
    assert color_for("Objectif 3 puis Objectif 1", "Titre") == OBJECTIVE_COLORS[1]


def test_fallback_color_is_pure_function_of_title():
    first = color_for("Pause personnelle", "Pause déjeuner")
    second = color_for("Autre description", "Pause déjeuner")

    assert first == second
    assert first == FALLBACK_PALETTE[abs(title_hash("Pause déjeuner")) % len(FALLBACK_PALETTE)]


@pytest.mark.parametrize("description, expected", [
    ("Bloc flexible", True),
    ("Peut être déplacé si besoin", True),
    ("Lecture optionnel", True),
    ("Si disponible", True),
    ("Audience au tribunal", False),
])
def test_flexibility_from_description(description, expected):
    assert is_flexible_description(description) is expected


# ===== Dates =====


def test_upcoming_monday_is_strictly_after_today():
    assert upcoming_monday(date(2026, 10, 18)) == MONDAY
    assert upcoming_monday(MONDAY) == MONDAY + timedelta(days=7)
    assert upcoming_monday(date(2026, 10, 23)) == date(2026, 10, 26)


def test_parse_event_time_drops_offset_and_rejects_garbage():
    parsed = parse_event_time("2026-10-20T10:00:00+02:00")

    assert parsed.tzinfo is None
    assert parsed.hour == 10
    assert parse_event_time("demain matin") is None


def test_format_day_long_is_french():
    assert format_day_long(date(2026, 10, 20)) == "mardi 20 octobre 2026"


# ===== Navigation =====


def test_navigation_is_reversible():
    view = CalendarView([], anchor=MONDAY)

    assert view.next_week().previous_week().week_start == view.week_start
    assert view.next_week(3).week_start == MONDAY + timedelta(weeks=3)
    assert view.previous_week().week_start == MONDAY - timedelta(weeks=1)


def test_week_days_start_on_monday():
    view = CalendarView([], anchor=date(2026, 10, 22))

    assert view.week_days[0] == MONDAY
    assert len(view.week_days) == 7
    assert view.title == "octobre 2026"


# ===== Grid =====


def test_grid_hours_follow_working_hours():
    constraints = SchedulingConstraints(working_hours_start="08:00", working_hours_end="17:00")
    view = CalendarView([], constraints=constraints, anchor=MONDAY)

    assert view.hours[0] == "08:00"
    assert view.hours[-1] == "17:00"
    assert view.grid_height == 10 * 60


def test_default_grid_without_constraints():
    view = CalendarView([], anchor=MONDAY)

    assert view.hours == [f"{hour:02d}:00" for hour in range(9, 19)]


def test_event_placement():
    view = CalendarView([], constraints=SchedulingConstraints(), anchor=MONDAY)

    placement = view.event_style(_event(start="2026-10-20T10:30:00", end="2026-10-20T11:15:00"))

    assert placement.top == 90
    assert placement.height == 45


def test_short_event_gets_minimum_height():
    view = CalendarView([], constraints=SchedulingConstraints(), anchor=MONDAY)

    assert view.event_style(_event(start="2026-10-20T10:00:00", end="2026-10-20T10:10:00")).height == 30


def test_event_before_grid_is_clamped_to_top():
    view = CalendarView([], constraints=SchedulingConstraints(), anchor=MONDAY)

    placement = view.event_style(_event(start="2026-10-20T07:30:00", end="2026-10-20T08:30:00"))

    assert placement.top == 0
    assert placement.height == 60


def test_week_columns_place_events_on_their_day():
    events = [
        _event("Lundi", start="2026-10-19T09:00:00", end="2026-10-19T10:00:00"),
        _event("Mardi", start="2026-10-20T14:00:00", end="2026-10-20T15:00:00"),
        _event("Semaine suivante", start="2026-10-27T09:00:00", end="2026-10-27T10:00:00"),
        _event("Illisible", start="bientôt", end="plus tard"),
    ]
    view = CalendarView(events, anchor=MONDAY)

    columns = view.week_columns()

    assert [c.name for c in columns][:2] == ["lundi", "mardi"]
    assert [p.event.title for p in columns[0].events] == ["Lundi"]
    assert [p.index for p in columns[1].events] == [1]
    assert sum(len(c.events) for c in columns) == 2
    assert [p.event.title for p in view.next_week().week_columns()[1].events] == ["Semaine suivante"]


# ===== Details and legend =====


def test_event_details_resolve_objectives():
    objectives = ["Livrer la commande", "Former l'apprenti", "Réduire les chutes"]
    event = _event(description="Lié à l'Objectif 2: Former l'apprenti. Bloc flexible")
    view = CalendarView([event], objectives=objectives, anchor=MONDAY)

    details = view.event_details(view.get_event(0))

    assert details.date_label == "mardi 20 octobre 2026"
    assert details.time_range == "10:00 - 11:00"
    assert details.is_flexible is True
    assert details.objectives == [(2, "Former l'apprenti")]


def test_get_event_out_of_range():
    view = CalendarView([_event()], anchor=MONDAY)

    assert view.get_event(1) is None
    assert view.get_event(-1) is None


def test_legend_lists_objectives_and_flexibility():
    view = CalendarView([], objectives=["A", "B", "C"], anchor=MONDAY)

    labels = [entry.label for entry in view.legend()]

    assert labels == ["Objectif 1", "Objectif 2", "Objectif 3", "Non flexible", "Flexible"]
