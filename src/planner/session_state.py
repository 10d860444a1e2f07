"""
Session state for one planning flow, and the keyed store that holds it
"""
import json
import logging
import threading
import time
from collections import OrderedDict
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from src.planner.errors import MissingStateError, StorageError
from src.planner.models import CalendarEvent, ProfessionalContext, SchedulingConstraints

logger = logging.getLogger(__name__)

CONTEXT_KEY = "mockContext"
CONSTRAINTS_KEY = "calendarConstraints"
CALENDAR_KEY = "generatedCalendar"
DRAFT_KEY = "constraintsDraft"


@dataclass
class SessionState:
    """Everything the flow knows about one user; each part is replaced wholesale"""
    context: Optional[ProfessionalContext] = None
    constraints: Optional[SchedulingConstraints] = None
    events: Optional[List[CalendarEvent]] = None
    constraints_draft: Optional[SchedulingConstraints] = None

    def require_context(self) -> ProfessionalContext:
        if self.context is None:
            raise MissingStateError("context", redirect_to="/")
        return self.context

    def require_constraints(self) -> SchedulingConstraints:
        self.require_context()
        if self.constraints is None:
            raise MissingStateError("constraints", redirect_to="/constraints")
        return self.constraints

    def to_storage(self) -> Dict[str, str]:
        blobs = {}
        if self.context is not None:
            blobs[CONTEXT_KEY] = json.dumps(self.context.to_dict(), ensure_ascii=False)
        if self.constraints is not None:
            blobs[CONSTRAINTS_KEY] = json.dumps(self.constraints.to_dict(), ensure_ascii=False)
        if self.events is not None:
            blobs[CALENDAR_KEY] = json.dumps([e.to_dict() for e in self.events], ensure_ascii=False)
        if self.constraints_draft is not None:
            blobs[DRAFT_KEY] = json.dumps(self.constraints_draft.to_dict(), ensure_ascii=False)
        return blobs

    @classmethod
    def from_storage(cls, blobs: Dict[str, str]) -> "SessionState":
        state = cls()
        readers = {
            CONTEXT_KEY: ("context", ProfessionalContext.from_dict),
            CONSTRAINTS_KEY: ("constraints", SchedulingConstraints.from_dict),
            CALENDAR_KEY: ("events", lambda data: [CalendarEvent.from_dict(e) for e in data]),
            DRAFT_KEY: ("constraints_draft", SchedulingConstraints.from_dict),
        }
        for key, (attribute, reader) in readers.items():
            if key not in blobs:
                continue
            try:
                setattr(state, attribute, reader(json.loads(blobs[key])))
            except (ValueError, KeyError, TypeError, AttributeError) as e:
                logger.warning(f"Dropping unreadable '{key}' blob: {e}")
        return state


class SessionStore:
    """
    Thread-safe in-memory map of session id -> {key: JSON blob}.

    Sessions idle for longer than `idle_ttl` seconds are dropped, and once
    more than `max_sessions` are held the least recently used ones go. The
    `on_evict` callback receives the dropped ids after the store lock is
    released.
    """

    def __init__(self, max_blob_bytes: int = None, max_sessions: int = None, idle_ttl: float = None,
                 clock: Callable[[], float] = time.monotonic):
        self.max_blob_bytes = max_blob_bytes
        self.max_sessions = max_sessions
        self.idle_ttl = idle_ttl
        self.on_evict: Optional[Callable[[List[str]], None]] = None
        self._clock = clock
        self._sessions: "OrderedDict[str, Dict[str, str]]" = OrderedDict()
        self._last_seen: Dict[str, float] = {}
        self._lock = threading.Lock()

    @contextmanager
    def _locked(self):
        with self._lock:
            evicted = self._expire_locked()
            yield
            evicted += self._trim_locked()
        if evicted:
            logger.info(f"Evicted {len(evicted)} idle session(s)")
            if self.on_evict is not None:
                self.on_evict(evicted)

    def _expire_locked(self) -> List[str]:
        if self.idle_ttl is None:
            return []
        deadline = self._clock() - self.idle_ttl
        expired = [sid for sid, seen in self._last_seen.items() if seen < deadline]
        for sid in expired:
            self._drop_locked(sid)
        return expired

    def _trim_locked(self) -> List[str]:
        trimmed = []
        while self.max_sessions is not None and len(self._sessions) > self.max_sessions:
            sid = next(iter(self._sessions))
            self._drop_locked(sid)
            trimmed.append(sid)
        return trimmed

    def _drop_locked(self, session_id: str):
        self._sessions.pop(session_id, None)
        self._last_seen.pop(session_id, None)

    def _touch_locked(self, session_id: str) -> Dict[str, str]:
        blobs = self._sessions.setdefault(session_id, {})
        self._sessions.move_to_end(session_id)
        self._last_seen[session_id] = self._clock()
        return blobs

    def get_blobs(self, session_id: str) -> Dict[str, str]:
        with self._locked():
            if session_id not in self._sessions:
                return {}
            return dict(self._touch_locked(session_id))

    def get_item(self, session_id: str, key: str) -> Optional[str]:
        with self._locked():
            if session_id not in self._sessions:
                return None
            return self._touch_locked(session_id).get(key)

    def set_item(self, session_id: str, key: str, value: str):
        self.set_items(session_id, {key: value})

    def set_items(self, session_id: str, items: Dict[str, str]):
        """Write several keys at once; nothing is written if any blob is refused"""
        for key, value in items.items():
            size = len(value.encode("utf-8"))
            if self.max_blob_bytes is not None and size > self.max_blob_bytes:
                raise StorageError(f"Blob '{key}' is {size} bytes, quota is {self.max_blob_bytes}")
        with self._locked():
            self._touch_locked(session_id).update(items)

    def remove_items(self, session_id: str, keys: List[str]):
        with self._locked():
            if session_id not in self._sessions:
                return
            blobs = self._touch_locked(session_id)
            for key in keys:
                blobs.pop(key, None)

    def clear(self, session_id: str):
        """Empty the session; it stays tracked so it can still age out"""
        with self._locked():
            self._touch_locked(session_id).clear()

    def load_state(self, session_id: str) -> SessionState:
        return SessionState.from_storage(self.get_blobs(session_id))

    def session_count(self) -> int:
        with self._locked():
            return len(self._sessions)
