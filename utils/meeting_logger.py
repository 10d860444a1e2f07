"""
Specialized logging utilities for generated scenarios and calendar batches
"""
import logging
from collections import Counter
from datetime import datetime
from typing import List

from src.planner.models import CalendarEvent, ProfessionalContext

logger = logging.getLogger(__name__)


def _hour_value(hhmm: str, default: float) -> float:
    try:
        hour, minute = hhmm.split(":")
        return int(hour) + int(minute) / 60
    except ValueError:
        return default


class MeetingLogger:
    """Specialized logger for planning events"""

    @staticmethod
    def log_context_summary(context: ProfessionalContext):
        """Log the generated scenario before the user reviews it"""
        user = context.current_user
        fixed = context.fixed_meetings()

        logger.info(f"🏢 CONTEXT - {context.company_name} ({context.company_type})")
        logger.info(f"   👤 Current user: {user.name}, {user.job}")
        logger.info(f"   👥 Colleagues: {len(context.colleagues)}")
        for i, objective in enumerate(user.objectives, 1):
            logger.info(f"   🎯 Objective {i}: {objective}")
        logger.info(f"   📋 Meetings: {len(context.meetings)} "
                    f"({len(fixed)} fixed, {len(context.meetings) - len(fixed)} flexible)")

        for meeting in fixed:
            logger.debug(f"      🔒 {meeting.title}: {meeting.start_time} to {meeting.end_time}")

    @staticmethod
    def log_batch_summary(events: List[CalendarEvent], working_hours_start: str = "09:00",
                          working_hours_end: str = "18:00"):
        """Log a generated batch: events per day and events outside working hours"""
        work_start = _hour_value(working_hours_start, 9)
        work_end = _hour_value(working_hours_end, 18)

        per_day = Counter()
        outside_hours = []
        unreadable = 0

        for event in events:
            try:
                start = datetime.fromisoformat(event.start_time)
                end = datetime.fromisoformat(event.end_time)
            except ValueError:
                unreadable += 1
                continue

            per_day[start.strftime('%Y-%m-%d %A')] += 1
            if (start.hour + start.minute / 60 < work_start or
                    end.hour + end.minute / 60 > work_end):
                outside_hours.append(event)

        logger.info(f"📅 BATCH - {len(events)} events")
        for day in sorted(per_day):
            logger.info(f"   🗓️  {day}: {per_day[day]} events")

        if outside_hours:
            logger.info(f"   🌙 OUTSIDE WORKING HOURS ({len(outside_hours)}):")
            for i, event in enumerate(outside_hours, 1):
                logger.info(f"      {i}. {event.title}: {event.start_time} to {event.end_time}")

        if unreadable:
            logger.warning(f"   ❓ {unreadable} events with unreadable times")
