"""
Calendar Generator - asks the LLM for an optimized event batch
"""
import json
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List

from config.settings import Config
from src.planner.errors import GenerationError
from src.planner.models import (
    CalendarEvent,
    CalendarRequest,
    ProfessionalContext,
    SchedulingConstraints,
)
from utils.meeting_logger import MeetingLogger

logger = logging.getLogger(__name__)


class CalendarGenerator:
    """
    Builds the calendar request from context and constraints, sends it and
    parses the returned batch. The answer is trusted as-is: overlaps and
    objective coverage are requested from the model, not checked here.
    """

    def __init__(self, llm_client, config: Config = None,
                 clock: Callable[[], datetime] = None):
        self.llm_client = llm_client
        self.config = config or Config()
        self.clock = clock or datetime.now

    def build_request(self, context: ProfessionalContext, constraints: SchedulingConstraints,
                      today: datetime = None) -> CalendarRequest:
        today = today or self.clock()
        end = today + timedelta(days=self.config.PLANNING_WINDOW_DAYS)

        return CalendarRequest(
            user_role=context.current_user.job,
            start_date=today.strftime(self.config.DATE_FORMAT),
            end_date=end.strftime(self.config.DATE_FORMAT),
            working_hours_start=constraints.working_hours_start,
            working_hours_end=constraints.working_hours_end,
            meeting_preferences=constraints.preference_texts(),
            existing_commitments=context.fixed_meetings(),
            meeting_density=constraints.meeting_density,
            objectives=list(context.current_user.objectives),
        )

    def build_prompt(self, request: CalendarRequest) -> str:
        commitments = json.dumps([m.to_dict() for m in request.existing_commitments],
                                 ensure_ascii=False)
        objectives = "\n".join(f"{i}. {objective}" for i, objective in enumerate(request.objectives, 1))

        return self.config.CALENDAR_GENERATION_PROMPT.format(
            user_role=request.user_role,
            start_date=request.start_date,
            end_date=request.end_date,
            working_hours_start=request.working_hours_start,
            working_hours_end=request.working_hours_end,
            meeting_preferences=", ".join(request.meeting_preferences),
            existing_commitments=commitments,
            meeting_density=request.meeting_density.value,
            objectives=objectives,
        )

    def generate(self, context: ProfessionalContext,
                 constraints: SchedulingConstraints) -> List[CalendarEvent]:
        return self.generate_from_request(self.build_request(context, constraints))

    def generate_from_request(self, request: CalendarRequest) -> List[CalendarEvent]:
        """Generate one batch for the request, or raise GenerationError"""
        logger.info(f"📅 Generating calendar for '{request.user_role}' "
                    f"from {request.start_date} to {request.end_date}")
        logger.info(f"   🔒 Fixed commitments: {len(request.existing_commitments)}")
        logger.info(f"   📝 Preferences: {len(request.meeting_preferences)}, "
                    f"density: {request.meeting_density.value}")

        data = self.llm_client.complete_json(
            self.config.CALENDAR_SYSTEM_PROMPT,
            self.build_prompt(request),
            request_name="calendar",
        )
        events = self.parse_events(data)

        MeetingLogger.log_batch_summary(events, request.working_hours_start, request.working_hours_end)
        return events

    @staticmethod
    def parse_events(data: Dict[str, Any]) -> List[CalendarEvent]:
        raw_events = data.get("events")
        if not isinstance(raw_events, list):
            raise GenerationError("Calendar response has no 'events' list", step="calendar")

        events = []
        for index, raw in enumerate(raw_events):
            if not isinstance(raw, dict):
                logger.warning(f"Ignoring calendar entry {index}: not an object")
                continue
            events.append(CalendarEvent.from_dict(raw))
        return events
