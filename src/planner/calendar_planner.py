"""
Calendar Planner - orchestrates the planning flow for each session
"""
import json
import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Dict, List, Optional, Set, Tuple

from config.settings import Config
from src.ai_agent.llm_client import create_llm_client
from src.planner.calendar_generator import CalendarGenerator
from src.planner.constraint_collector import ConstraintCollector
from src.planner.context_generator import ContextGenerator
from src.planner.errors import GenerationInProgressError
from src.planner.models import (
    CalendarEvent,
    MeetingDensity,
    ProfessionalContext,
    SchedulingConstraints,
)
from src.planner.session_state import (
    CALENDAR_KEY,
    CONSTRAINTS_KEY,
    CONTEXT_KEY,
    DRAFT_KEY,
    SessionState,
    SessionStore,
)

logger = logging.getLogger(__name__)


class CalendarPlanner:
    """
    Main coordinator: context -> constraints -> calendar, per session.

    Each generation step allows a single in-flight request per session. A
    successful batch replaces the stored one in a single write; a failed one
    leaves the previous batch untouched. Answers that arrive after the session
    was restarted, or after the context or constraints they were built from
    were replaced, are dropped.
    """

    def __init__(self, llm_client=None, store: SessionStore = None, config: Config = None,
                 clock: Callable[[], datetime] = None):
        self.config = config or Config()
        self.llm_client = llm_client or create_llm_client(self.config)
        self.store = store or SessionStore(
            self.config.STORE_MAX_BLOB_BYTES,
            max_sessions=self.config.SESSION_MAX_COUNT,
            idle_ttl=self.config.SESSION_IDLE_TTL,
        )
        self.store.on_evict = self._forget_sessions
        self.context_generator = ContextGenerator(self.llm_client, self.config, clock)
        self.calendar_generator = CalendarGenerator(self.llm_client, self.config, clock)

        # Reentrant: store writes made under it may fire the eviction callback
        self._guard_lock = threading.RLock()
        self._in_flight: Set[Tuple[str, str]] = set()
        self._epochs: Dict[str, int] = {}
        self._data_versions: Dict[str, int] = {}
        self._evicted_while_busy: Set[str] = set()

        logger.info("CalendarPlanner initialized")

    @contextmanager
    def _in_flight_guard(self, session_id: str, step: str):
        key = (session_id, step)
        with self._guard_lock:
            if key in self._in_flight:
                logger.warning(f"⏳ {step} generation already running for session {session_id}")
                raise GenerationInProgressError(f"{step} generation already in progress", step=step)
            self._in_flight.add(key)
        try:
            yield
        finally:
            with self._guard_lock:
                self._in_flight.discard(key)
                if session_id in self._evicted_while_busy:
                    self._forget_locked(session_id)

    def is_generating(self, session_id: str, step: str) -> bool:
        with self._guard_lock:
            return (session_id, step) in self._in_flight

    def _epoch(self, session_id: str) -> int:
        with self._guard_lock:
            return self._epochs.get(session_id, 0)

    def _inputs_version(self, session_id: str) -> Tuple[int, int]:
        """(restart epoch, context/constraints version) a calendar answer is built from"""
        with self._guard_lock:
            return self._epochs.get(session_id, 0), self._data_versions.get(session_id, 0)

    def _bump_data_version(self, session_id: str):
        self._data_versions[session_id] = self._data_versions.get(session_id, 0) + 1

    def _forget_sessions(self, session_ids: List[str]):
        """Eviction callback: drop bookkeeping for sessions the store let go"""
        with self._guard_lock:
            for session_id in session_ids:
                self._evicted_while_busy.add(session_id)
                self._forget_locked(session_id)

    def _forget_locked(self, session_id: str):
        if any(sid == session_id for sid, _ in self._in_flight):
            return
        self._evicted_while_busy.discard(session_id)
        self._epochs.pop(session_id, None)
        self._data_versions.pop(session_id, None)

    def tracked_sessions(self) -> int:
        with self._guard_lock:
            return len(set(self._epochs) | set(self._data_versions))

    def load_state(self, session_id: str) -> SessionState:
        return self.store.load_state(session_id)

    def start_session(self, session_id: str):
        """Restart the flow: forget everything and invalidate pending answers"""
        with self._guard_lock:
            self._epochs[session_id] = self._epochs.get(session_id, 0) + 1
            self._evicted_while_busy.discard(session_id)
            self.store.clear(session_id)
        logger.info(f"🔄 Session {session_id} restarted")

    def generate_context(self, session_id: str) -> Optional[ProfessionalContext]:
        """Generate and store a new scenario; stale downstream data is dropped.

        Returns None when the session was restarted while waiting.
        """
        epoch = self._epoch(session_id)
        with self._in_flight_guard(session_id, "context"):
            context = self.context_generator.generate()

        with self._guard_lock:
            if self._epochs.get(session_id, 0) != epoch:
                logger.info(f"🗑️  Discarding late context for restarted session {session_id}")
                return None

            self.store.set_items(session_id, {
                CONTEXT_KEY: json.dumps(context.to_dict(), ensure_ascii=False),
            })
            self.store.remove_items(session_id, [CONSTRAINTS_KEY, CALENDAR_KEY, DRAFT_KEY])
            self._bump_data_version(session_id)
        logger.info(f"✅ Context stored for session {session_id}: {context.company_name}")
        return context

    def get_collector(self, session_id: str) -> ConstraintCollector:
        state = self.load_state(session_id)
        state.require_context()
        snapshot = state.constraints_draft or state.constraints
        if snapshot is not None:
            return ConstraintCollector.from_constraints(snapshot)
        return ConstraintCollector(
            self.config.DEFAULT_WORKING_HOURS_START,
            self.config.DEFAULT_WORKING_HOURS_END,
            MeetingDensity(self.config.DEFAULT_MEETING_DENSITY),
        )

    def save_draft(self, session_id: str, collector: ConstraintCollector):
        self.store.set_item(session_id, DRAFT_KEY,
                            json.dumps(collector.snapshot().to_dict(), ensure_ascii=False))

    def save_constraints(self, session_id: str, constraints: SchedulingConstraints):
        """Store submitted constraints; the next visit to the calendar regenerates"""
        with self._guard_lock:
            self.load_state(session_id).require_context()
            self.store.set_items(session_id, {
                CONSTRAINTS_KEY: json.dumps(constraints.to_dict(), ensure_ascii=False),
                DRAFT_KEY: json.dumps(constraints.to_dict(), ensure_ascii=False),
            })
            self.store.remove_items(session_id, [CALENDAR_KEY])
            self._bump_data_version(session_id)
        logger.info(f"📝 Constraints stored for session {session_id}: "
                    f"{constraints.working_hours_start}-{constraints.working_hours_end}, "
                    f"{constraints.meeting_density.value}, {len(constraints.constraints)} preferences")

    def generate_calendar(self, session_id: str) -> Optional[List[CalendarEvent]]:
        """Generate a new batch and replace the stored one.

        Raises MissingStateError when context or constraints are absent,
        GenerationError when the LLM step fails (the previous batch is kept)
        and StorageError when the new batch cannot be stored. Returns None
        when the session was restarted, or its context or constraints were
        replaced, while waiting.
        """
        with self._guard_lock:
            state = self.load_state(session_id)
            context = state.require_context()
            constraints = state.require_constraints()
            inputs = self._inputs_version(session_id)

        with self._in_flight_guard(session_id, "calendar"):
            events = self.calendar_generator.generate(context, constraints)

        with self._guard_lock:
            if self._inputs_version(session_id) != inputs:
                logger.info(f"🗑️  Discarding late calendar for session {session_id}: "
                            f"inputs changed while generating")
                return None

            self.store.set_item(session_id, CALENDAR_KEY,
                                json.dumps([e.to_dict() for e in events], ensure_ascii=False))
        logger.info(f"✅ Calendar batch stored for session {session_id}: {len(events)} events")
        return events
