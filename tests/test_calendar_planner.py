"""Per-session flow: atomic batch replacement, failures, in-flight guard, restarts, eviction"""

import threading
import time

import pytest

from src.planner.calendar_planner import CalendarPlanner
from src.planner.errors import (
    GenerationError,
    GenerationInProgressError,
    MissingStateError,
    StorageError,
)
from src.planner.models import MeetingDensity, SchedulingConstraints
from src.planner.session_state import CALENDAR_KEY, CONSTRAINTS_KEY, CONTEXT_KEY, SessionStore

SESSION = "session-1"


def _prepare(planner, scripted_llm, context_data, constraints):
    scripted_llm.responses["context"].append(context_data)
    planner.generate_context(SESSION)
    planner.save_constraints(SESSION, constraints)


def _titles(events):
    return [event.title for event in events]


def test_full_flow_with_mock(planner, sample_constraints):
    context = planner.generate_context(SESSION)
    planner.save_constraints(SESSION, sample_constraints)

    events = planner.generate_calendar(SESSION)

    state = planner.load_state(SESSION)
    assert state.context.company_name == context.company_name
    assert _titles(state.events) == _titles(events)
    assert len(events) > 0


def test_calendar_requires_context_then_constraints(planner, sample_constraints):
    with pytest.raises(MissingStateError) as missing_context:
        planner.generate_calendar(SESSION)
    assert missing_context.value.redirect_to == "/"

    planner.generate_context(SESSION)
    with pytest.raises(MissingStateError) as missing_constraints:
        planner.generate_calendar(SESSION)
    assert missing_constraints.value.redirect_to == "/constraints"


def test_new_batch_replaces_previous_one(scripted_planner, scripted_llm, context_data,
                                         sample_constraints, calendar_answer):
    _prepare(scripted_planner, scripted_llm, context_data, sample_constraints)
    scripted_llm.responses["calendar"].append(calendar_answer)
    scripted_llm.responses["calendar"].append({"events": [calendar_answer["events"][1]]})

    scripted_planner.generate_calendar(SESSION)
    scripted_planner.generate_calendar(SESSION)

    assert _titles(scripted_planner.load_state(SESSION).events) == ["Atelier vernissage"]


def test_failed_generation_keeps_previous_batch(scripted_planner, scripted_llm, context_data,
                                                sample_constraints, calendar_answer):
    _prepare(scripted_planner, scripted_llm, context_data, sample_constraints)
    scripted_llm.responses["calendar"].append(calendar_answer)
    scripted_llm.responses["calendar"].append(GenerationError("LLM returned empty content"))
    scripted_planner.generate_calendar(SESSION)

    with pytest.raises(GenerationError):
        scripted_planner.generate_calendar(SESSION)

    assert _titles(scripted_planner.load_state(SESSION).events) == [
        "Réception client Bellevue", "Atelier vernissage"]


def test_storage_failure_keeps_previous_batch(scripted_planner, scripted_llm, context_data,
                                              sample_constraints, calendar_answer):
    _prepare(scripted_planner, scripted_llm, context_data, sample_constraints)
    scripted_llm.responses["calendar"].append({"events": [calendar_answer["events"][0]]})
    scripted_planner.generate_calendar(SESSION)

    oversized = dict(calendar_answer["events"][1], description="x" * 4096)
    scripted_llm.responses["calendar"].append({"events": [oversized]})
    scripted_planner.store.max_blob_bytes = 2048

    with pytest.raises(StorageError):
        scripted_planner.generate_calendar(SESSION)

    assert _titles(scripted_planner.load_state(SESSION).events) == ["Réception client Bellevue"]


def test_new_context_drops_downstream_state(scripted_planner, scripted_llm, context_data,
                                            sample_constraints, calendar_answer):
    _prepare(scripted_planner, scripted_llm, context_data, sample_constraints)
    scripted_llm.responses["calendar"].append(calendar_answer)
    scripted_planner.generate_calendar(SESSION)

    scripted_llm.responses["context"].append(dict(context_data, companyName="Scierie Lambert"))
    scripted_planner.generate_context(SESSION)

    blobs = scripted_planner.store.get_blobs(SESSION)
    assert set(blobs) == {CONTEXT_KEY}
    assert scripted_planner.load_state(SESSION).context.company_name == "Scierie Lambert"


def test_failed_context_keeps_previous_context(scripted_planner, scripted_llm, context_data):
    scripted_llm.responses["context"].append(context_data)
    scripted_llm.responses["context"].append(GenerationError("LLM request failed"))
    scripted_planner.generate_context(SESSION)

    with pytest.raises(GenerationError):
        scripted_planner.generate_context(SESSION)

    assert scripted_planner.load_state(SESSION).context.company_name == "Menuiserie Dubois"


def test_second_request_while_generating_is_refused(scripted_planner, scripted_llm, context_data,
                                                    sample_constraints, calendar_answer):
    _prepare(scripted_planner, scripted_llm, context_data, sample_constraints)
    release = threading.Event()

    def slow_answer():
        release.wait(timeout=5)
        return calendar_answer

    scripted_llm.responses["calendar"].append(slow_answer)
    worker = threading.Thread(target=scripted_planner.generate_calendar, args=(SESSION,))
    worker.start()
    try:
        deadline = time.time() + 5
        while not scripted_planner.is_generating(SESSION, "calendar") and time.time() < deadline:
            time.sleep(0.01)

        with pytest.raises(GenerationInProgressError):
            scripted_planner.generate_calendar(SESSION)
    finally:
        release.set()
        worker.join(timeout=5)

    assert not scripted_planner.is_generating(SESSION, "calendar")
    assert len(scripted_planner.load_state(SESSION).events) == 2
    assert [name for name, _ in scripted_llm.calls].count("calendar") == 1


def test_other_sessions_are_not_blocked(scripted_planner, scripted_llm, context_data,
                                        sample_constraints, calendar_answer):
    _prepare(scripted_planner, scripted_llm, context_data, sample_constraints)
    scripted_llm.responses["context"].append(context_data)
    scripted_planner.generate_context("session-2")

    with scripted_planner._in_flight_guard(SESSION, "calendar"):
        scripted_planner.save_constraints("session-2", sample_constraints)
        scripted_llm.responses["calendar"].append(calendar_answer)
        assert len(scripted_planner.generate_calendar("session-2")) == 2


def test_late_calendar_after_restart_is_discarded(scripted_planner, scripted_llm, context_data,
                                                  sample_constraints, calendar_answer):
    _prepare(scripted_planner, scripted_llm, context_data, sample_constraints)

    def answer_after_restart():
        scripted_planner.start_session(SESSION)
        return calendar_answer

    scripted_llm.responses["calendar"].append(answer_after_restart)

    assert scripted_planner.generate_calendar(SESSION) is None
    assert scripted_planner.store.get_blobs(SESSION) == {}


def test_late_context_after_restart_is_discarded(scripted_planner, scripted_llm, context_data):
    def answer_after_restart():
        scripted_planner.start_session(SESSION)
        return context_data

    scripted_llm.responses["context"].append(answer_after_restart)

    assert scripted_planner.generate_context(SESSION) is None
    assert scripted_planner.load_state(SESSION).context is None


def test_saving_constraints_clears_calendar(scripted_planner, scripted_llm, context_data,
                                            sample_constraints, calendar_answer):
    _prepare(scripted_planner, scripted_llm, context_data, sample_constraints)
    scripted_llm.responses["calendar"].append(calendar_answer)
    scripted_planner.generate_calendar(SESSION)

    scripted_planner.save_constraints(SESSION, sample_constraints)

    blobs = scripted_planner.store.get_blobs(SESSION)
    assert CALENDAR_KEY not in blobs
    assert CONSTRAINTS_KEY in blobs


def test_collector_starts_from_configured_defaults(planner):
    planner.generate_context(SESSION)

    collector = planner.get_collector(SESSION)

    assert collector.working_hours_start == "09:00"
    assert collector.working_hours_end == "18:00"
    assert collector.constraints == []


def test_collector_resumes_from_draft(planner):
    planner.generate_context(SESSION)
    collector = planner.get_collector(SESSION)
    collector.add_constraint("Pas de réunion le lundi")
    planner.save_draft(SESSION, collector)

    assert planner.get_collector(SESSION).snapshot().preference_texts() == ["Pas de réunion le lundi"]


def test_calendar_built_from_replaced_context_is_discarded(scripted_planner, scripted_llm, context_data,
                                                           sample_constraints, calendar_answer):
    _prepare(scripted_planner, scripted_llm, context_data, sample_constraints)
    scripted_llm.responses["context"].append(dict(context_data, companyName="Scierie Lambert"))

    def answer_after_new_context():
        scripted_planner.generate_context(SESSION)
        return calendar_answer

    scripted_llm.responses["calendar"].append(answer_after_new_context)

    assert scripted_planner.generate_calendar(SESSION) is None
    state = scripted_planner.load_state(SESSION)
    assert state.events is None
    assert state.constraints is None
    assert state.context.company_name == "Scierie Lambert"


def test_calendar_built_from_replaced_constraints_is_discarded(scripted_planner, scripted_llm, context_data,
                                                               sample_constraints, calendar_answer):
    _prepare(scripted_planner, scripted_llm, context_data, sample_constraints)
    heavier = SchedulingConstraints(meeting_density=MeetingDensity.HEAVY)

    def answer_after_new_constraints():
        scripted_planner.save_constraints(SESSION, heavier)
        return calendar_answer

    scripted_llm.responses["calendar"].append(answer_after_new_constraints)

    assert scripted_planner.generate_calendar(SESSION) is None
    state = scripted_planner.load_state(SESSION)
    assert state.events is None
    assert state.constraints.meeting_density == MeetingDensity.HEAVY

    scripted_llm.responses["calendar"].append(calendar_answer)
    assert len(scripted_planner.generate_calendar(SESSION)) == 2


# ===== Session bookkeeping =====


def test_default_store_is_bounded_by_config(mock_llm, config, clock):
    planner = CalendarPlanner(llm_client=mock_llm, config=config, clock=clock)

    assert planner.store.max_sessions == config.SESSION_MAX_COUNT
    assert planner.store.idle_ttl == config.SESSION_IDLE_TTL


def test_evicted_sessions_are_forgotten(mock_llm, config, clock):
    planner = CalendarPlanner(llm_client=mock_llm, store=SessionStore(max_sessions=2), config=config, clock=clock)

    for number in range(5):
        planner.start_session(f"visitor-{number}")

    assert planner.store.session_count() == 2
    assert planner.tracked_sessions() == 2
    assert planner.store.get_blobs("visitor-0") == {}


def test_eviction_spares_sessions_still_generating(mock_llm, config, clock):
    planner = CalendarPlanner(llm_client=mock_llm, store=SessionStore(max_sessions=1), config=config, clock=clock)
    planner.start_session("busy")

    with planner._in_flight_guard("busy", "calendar"):
        planner.start_session("other")
        assert planner._epoch("busy") == 1

    assert planner.store.session_count() == 1
    assert planner._epoch("busy") == 0
    assert planner.tracked_sessions() == 1
