"""
Calendar View - week grid layout for a generated batch

Everything here is a pure computation over the event list: which events fall
on which day, where they sit in the hourly grid, which color they get and
what the detail panel shows. Rendering is left to the templates.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import List, NamedTuple, Optional, Sequence, Tuple

from config.settings import Config
from src.planner.models import CalendarEvent, EventParticipant, SchedulingConstraints

logger = logging.getLogger(__name__)


class EventColor(NamedTuple):
    name: str
    background: str
    border: str
    text: str


OBJECTIVE_COLORS = {
    1: EventColor("blue", "#dbeafe", "#93c5fd", "#1e40af"),
    2: EventColor("green", "#dcfce7", "#86efac", "#166534"),
    3: EventColor("purple", "#f3e8ff", "#d8b4fe", "#6b21a8"),
}

FALLBACK_PALETTE = [
    EventColor("amber", "#fef3c7", "#fcd34d", "#92400e"),
    EventColor("rose", "#ffe4e6", "#fda4af", "#9f1239"),
    EventColor("cyan", "#cffafe", "#67e8f9", "#155e75"),
    EventColor("indigo", "#e0e7ff", "#a5b4fc", "#3730a3"),
    EventColor("emerald", "#d1fae5", "#6ee7b7", "#065f46"),
]

FLEXIBLE_KEYWORDS = ["flexible", "peut être déplacé", "optionnel", "si disponible"]

OBJECTIVE_HINTS = [
    "Optimisé pour les matinées et début de semaine",
    "Distribué à travers la semaine",
    "Planifié en fonction des plages horaires disponibles",
]

FRENCH_DAYS = ["lundi", "mardi", "mercredi", "jeudi", "vendredi", "samedi", "dimanche"]
FRENCH_MONTHS = ["janvier", "février", "mars", "avril", "mai", "juin", "juillet",
                 "août", "septembre", "octobre", "novembre", "décembre"]
FRENCH_MONTHS_SHORT = ["janv.", "févr.", "mars", "avr.", "mai", "juin", "juil.",
                       "août", "sept.", "oct.", "nov.", "déc."]


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value >= 0x80000000 else value


def _utf16_units(text: str):
    data = text.encode("utf-16-le")
    return (int.from_bytes(data[i:i + 2], "little") for i in range(0, len(data), 2))


def title_hash(title: str) -> int:
    """Browser-compatible string hash: h = c + ((h << 5) - h) over UTF-16 units.

    Only the shift is 32-bit; the sum is not wrapped, so long titles can
    leave the int32 range.
    """
    h = 0
    for unit in _utf16_units(title):
        h = unit + (_to_int32(_to_int32(h) << 5) - h)
    return h


def referenced_objectives(description: str) -> List[int]:
    """Objective numbers mentioned as 'Objectif N' in a description"""
    return [n for n in OBJECTIVE_COLORS if f"Objectif {n}" in description]


def color_for(description: str, title: str) -> EventColor:
    for number, color in OBJECTIVE_COLORS.items():
        if f"Objectif {number}" in description:
            return color
    return FALLBACK_PALETTE[abs(title_hash(title)) % len(FALLBACK_PALETTE)]


def is_flexible_description(description: str) -> bool:
    lowered = description.lower()
    return any(keyword in lowered for keyword in FLEXIBLE_KEYWORDS)


def parse_event_time(value: str) -> Optional[datetime]:
    try:
        return datetime.fromisoformat(value).replace(tzinfo=None)
    except (TypeError, ValueError):
        return None


def upcoming_monday(today: date) -> date:
    """The next Monday strictly after `today`"""
    return today + timedelta(days=7 - today.weekday())


def format_day_long(day: date) -> str:
    return f"{FRENCH_DAYS[day.weekday()]} {day.day} {FRENCH_MONTHS[day.month - 1]} {day.year}"


def format_day_short(day: date) -> str:
    return f"{day.day} {FRENCH_MONTHS_SHORT[day.month - 1]}"


@dataclass
class EventPlacement:
    top: float
    height: float


@dataclass
class PositionedEvent:
    index: int
    event: CalendarEvent
    placement: EventPlacement
    color: EventColor
    is_flexible: bool
    time_label: str


@dataclass
class DayColumn:
    day: date
    name: str
    label: str
    events: List[PositionedEvent] = field(default_factory=list)


@dataclass
class EventDetails:
    title: str
    date_label: str
    time_range: str
    description: str
    location: str
    participants: List[EventParticipant]
    is_flexible: bool
    objectives: List[Tuple[int, str]]


@dataclass
class LegendEntry:
    label: str
    color: Optional[EventColor] = None
    flexible: Optional[bool] = None


class CalendarView:
    """One displayed week of a batch; navigation returns new views"""

    def __init__(self, events: Sequence[CalendarEvent], objectives: Sequence[str] = None,
                 constraints: SchedulingConstraints = None, anchor: date = None,
                 week_offset: int = 0, config: Config = None):
        self.config = config or Config()
        self.events = list(events)
        self.objectives = list(objectives or [])
        self.constraints = constraints
        self.anchor = anchor or upcoming_monday(date.today())
        self.week_offset = week_offset
        self.start_hour, self.end_hour = self._grid_hours()

    def _grid_hours(self) -> Tuple[int, int]:
        start = self.config.DEFAULT_GRID_START_HOUR
        end = self.config.DEFAULT_GRID_END_HOUR
        if self.constraints is not None:
            try:
                start = int(self.constraints.working_hours_start.split(":")[0])
                end = int(self.constraints.working_hours_end.split(":")[0]) + 1  # include the end hour
            except ValueError:
                logger.warning("Unreadable working hours, using the default grid")
                start = self.config.DEFAULT_GRID_START_HOUR
                end = self.config.DEFAULT_GRID_END_HOUR
        return start, max(end, start + 1)

    def _with_offset(self, week_offset: int) -> "CalendarView":
        return CalendarView(self.events, self.objectives, self.constraints,
                            anchor=self.anchor, week_offset=week_offset, config=self.config)

    def next_week(self, weeks: int = 1) -> "CalendarView":
        return self._with_offset(self.week_offset + weeks)

    def previous_week(self, weeks: int = 1) -> "CalendarView":
        return self._with_offset(self.week_offset - weeks)

    @property
    def week_start(self) -> date:
        monday = self.anchor - timedelta(days=self.anchor.weekday())
        return monday + timedelta(weeks=self.week_offset)

    @property
    def week_days(self) -> List[date]:
        return [self.week_start + timedelta(days=i) for i in range(7)]

    @property
    def hours(self) -> List[str]:
        return [f"{hour:02d}:00" for hour in range(self.start_hour, self.end_hour)]

    @property
    def grid_height(self) -> int:
        return len(self.hours) * self.config.PIXELS_PER_HOUR

    @property
    def title(self) -> str:
        return f"{FRENCH_MONTHS[self.week_start.month - 1]} {self.week_start.year}"

    def events_for_day(self, day: date) -> List[CalendarEvent]:
        selected = []
        for event in self.events:
            start = parse_event_time(event.start_time)
            if start is None:
                logger.warning(f"Skipping event with unreadable start time: {event.title!r}")
                continue
            if start.date() == day:
                selected.append(event)
        return selected

    def event_style(self, event: CalendarEvent) -> EventPlacement:
        start = parse_event_time(event.start_time)
        end = parse_event_time(event.end_time) or start
        if start is None:
            return EventPlacement(top=0, height=self.config.MIN_EVENT_HEIGHT)

        start_value = start.hour + start.minute / 60
        end_value = end.hour + end.minute / 60
        pixels = self.config.PIXELS_PER_HOUR
        return EventPlacement(
            top=max(0, (start_value - self.start_hour) * pixels),
            height=max(self.config.MIN_EVENT_HEIGHT, (end_value - start_value) * pixels),
        )

    @staticmethod
    def event_color(event: CalendarEvent) -> EventColor:
        return color_for(event.description, event.title)

    @staticmethod
    def is_event_flexible(event: CalendarEvent) -> bool:
        return is_flexible_description(event.description)

    def time_label(self, event: CalendarEvent) -> str:
        start = parse_event_time(event.start_time)
        end = parse_event_time(event.end_time)
        if start is None or end is None:
            return ""
        return f"{start:%H:%M} - {end:%H:%M}"

    def week_columns(self) -> List[DayColumn]:
        positions = {id(event): index for index, event in enumerate(self.events)}
        columns = []
        for day in self.week_days:
            column = DayColumn(day=day, name=FRENCH_DAYS[day.weekday()], label=format_day_short(day))
            for event in self.events_for_day(day):
                column.events.append(PositionedEvent(
                    index=positions[id(event)],
                    event=event,
                    placement=self.event_style(event),
                    color=self.event_color(event),
                    is_flexible=self.is_event_flexible(event),
                    time_label=self.time_label(event),
                ))
            columns.append(column)
        return columns

    def get_event(self, index: int) -> Optional[CalendarEvent]:
        if 0 <= index < len(self.events):
            return self.events[index]
        return None

    def event_details(self, event: CalendarEvent) -> EventDetails:
        start = parse_event_time(event.start_time)
        objectives = [
            (number, self.objectives[number - 1])
            for number in referenced_objectives(event.description)
            if number <= len(self.objectives)
        ]
        return EventDetails(
            title=event.title,
            date_label=format_day_long(start.date()) if start else "",
            time_range=self.time_label(event),
            description=event.description,
            location=event.location,
            participants=list(event.participants),
            is_flexible=self.is_event_flexible(event),
            objectives=objectives,
        )

    def objective_summaries(self) -> List[Tuple[int, str, str, EventColor]]:
        return [
            (number, text, OBJECTIVE_HINTS[(number - 1) % len(OBJECTIVE_HINTS)],
             OBJECTIVE_COLORS.get(number, FALLBACK_PALETTE[0]))
            for number, text in enumerate(self.objectives, 1)
        ]

    def legend(self) -> List[LegendEntry]:
        entries = [
            LegendEntry(label=f"Objectif {number}", color=OBJECTIVE_COLORS[number])
            for number in range(1, min(len(self.objectives), len(OBJECTIVE_COLORS)) + 1)
        ]
        entries.append(LegendEntry(label="Non flexible", flexible=False))
        entries.append(LegendEntry(label="Flexible", flexible=True))
        return entries
