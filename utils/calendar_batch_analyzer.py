"""
Calendar Batch Analyzer - diagnostics for a generated event batch
Reports overlaps, moved or missing fixed commitments, events outside working
hours and objective coverage. Nothing here rejects or repairs a batch.
"""
import logging
from collections import Counter
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from src.calendar.calendar_view import parse_event_time, referenced_objectives
from src.planner.models import CalendarEvent, Meeting, SchedulingConstraints

logger = logging.getLogger(__name__)

TimeRange = Tuple[datetime, datetime]


def _event_range(event: CalendarEvent) -> Optional[TimeRange]:
    start = parse_event_time(event.start_time)
    end = parse_event_time(event.end_time)
    if start is None or end is None:
        return None
    return start, end


def _overlaps(first: TimeRange, second: TimeRange) -> bool:
    return first[0] < second[1] and first[1] > second[0]


def _hour_value(hhmm: str) -> float:
    hour, minute = hhmm.split(":")
    return int(hour) + int(minute) / 60


class CalendarBatchAnalyzer:
    """Analyze one batch; every event is taken as part of the user's own calendar"""

    @staticmethod
    def find_overlaps(events: Sequence[CalendarEvent]) -> List[Tuple[CalendarEvent, CalendarEvent]]:
        timed = [(event, _event_range(event)) for event in events]
        timed = [(event, span) for event, span in timed if span is not None]
        timed.sort(key=lambda item: item[1][0])

        overlaps = []
        for i, (event, span) in enumerate(timed):
            for other, other_span in timed[i + 1:]:
                if other_span[0] >= span[1]:
                    break
                if _overlaps(span, other_span):
                    overlaps.append((event, other))
        return overlaps

    @staticmethod
    def find_matching_event(events: Sequence[CalendarEvent], commitment: Meeting) -> Optional[CalendarEvent]:
        """The event that reproduces a fixed commitment unchanged in time"""
        start = parse_event_time(commitment.start_time)
        end = parse_event_time(commitment.end_time)
        for event in events:
            if (event.title == commitment.title and
                    parse_event_time(event.start_time) == start and
                    parse_event_time(event.end_time) == end):
                return event
        return None

    @staticmethod
    def missing_commitments(events: Sequence[CalendarEvent],
                            commitments: Sequence[Meeting]) -> List[Meeting]:
        return [c for c in commitments
                if CalendarBatchAnalyzer.find_matching_event(events, c) is None]

    @staticmethod
    def events_over_commitments(events: Sequence[CalendarEvent],
                                commitments: Sequence[Meeting]) -> List[Tuple[Meeting, CalendarEvent]]:
        """Events other than the commitment itself that overlap a fixed commitment"""
        conflicts = []
        for commitment in commitments:
            start = parse_event_time(commitment.start_time)
            end = parse_event_time(commitment.end_time)
            if start is None or end is None:
                continue
            own_event = CalendarBatchAnalyzer.find_matching_event(events, commitment)
            for event in events:
                if event is own_event:
                    continue
                span = _event_range(event)
                if span is not None and _overlaps((start, end), span):
                    conflicts.append((commitment, event))
        return conflicts

    @staticmethod
    def outside_working_hours(events: Sequence[CalendarEvent],
                              constraints: SchedulingConstraints) -> List[CalendarEvent]:
        try:
            work_start = _hour_value(constraints.working_hours_start)
            work_end = _hour_value(constraints.working_hours_end)
        except ValueError:
            logger.warning("Unreadable working hours, skipping the working-hours check")
            return []

        outside = []
        for event in events:
            span = _event_range(event)
            if span is None:
                continue
            start, end = span
            if start.hour + start.minute / 60 < work_start or end.hour + end.minute / 60 > work_end:
                outside.append(event)
        return outside

    @staticmethod
    def objective_coverage(events: Sequence[CalendarEvent]) -> Dict[int, int]:
        coverage = Counter({1: 0, 2: 0, 3: 0})
        for event in events:
            for number in referenced_objectives(event.description):
                coverage[number] += 1
        return dict(coverage)

    @classmethod
    def analyze(cls, events: Sequence[CalendarEvent], commitments: Sequence[Meeting] = (),
                constraints: SchedulingConstraints = None) -> Dict[str, Any]:
        report = {
            "total_events": len(events),
            "unreadable_events": [e.title for e in events if _event_range(e) is None],
            "overlaps": [(a.title, b.title) for a, b in cls.find_overlaps(events)],
            "missing_commitments": [c.title for c in cls.missing_commitments(events, commitments)],
            "events_over_commitments": [(c.title, e.title)
                                        for c, e in cls.events_over_commitments(events, commitments)],
            "objective_coverage": cls.objective_coverage(events),
            "outside_working_hours": [],
        }
        if constraints is not None:
            report["outside_working_hours"] = [e.title for e in cls.outside_working_hours(events, constraints)]
        return report

    @staticmethod
    def display_analysis(report: Dict[str, Any]):
        """Display the batch analysis in a readable format"""
        print(f"\n📊 BATCH SUMMARY")
        print(f"   📝 Total events: {report['total_events']}")
        print(f"   ⚔️  Overlapping pairs: {len(report['overlaps'])}")
        print(f"   🔒 Missing fixed commitments: {len(report['missing_commitments'])}")
        print(f"   🚧 Events over fixed commitments: {len(report['events_over_commitments'])}")
        print(f"   🌙 Outside working hours: {len(report['outside_working_hours'])}")

        for first, second in report["overlaps"]:
            print(f"      ⚔️  {first} ↔ {second}")
        for title in report["missing_commitments"]:
            print(f"      🔒 {title}")
        for commitment, event in report["events_over_commitments"]:
            print(f"      🚧 {event} over {commitment}")

        print(f"\n🎯 OBJECTIVE COVERAGE:")
        for number, count in sorted(report["objective_coverage"].items()):
            print(f"   Objectif {number}: {count} events")

        if report["unreadable_events"]:
            print(f"\n❓ Unreadable times: {', '.join(report['unreadable_events'])}")
