"""pytest fixtures shared by the planner tests

- Config pinned to the mock LLM provider
- Fixed clock (Monday 2026-10-19, 08:00)
- Scripted LLM double for failure and ordering scenarios
- Flask test client
"""

from datetime import datetime
from typing import Any, Dict

import pytest

from config.settings import Config
from src.ai_agent.mock_llm_client import MockLLMClient
from src.api.flask_server import create_app
from src.planner.calendar_planner import CalendarPlanner
from src.planner.models import Constraint, MeetingDensity, ProfessionalContext, SchedulingConstraints
from src.planner.session_state import SessionStore

FIXED_NOW = datetime(2026, 10, 19, 8, 0)


class MockProviderConfig(Config):
    LLM_PROVIDER = "mock"
    OPENAI_API_KEY = ""
    MOCK_SEED = 7
    SECRET_KEY = "test-secret"
    LOG_FILE = None


class ScriptedLLM:
    """LLM double answering from per-request queues.

    A queued item may be a dict (returned), an exception (raised) or a
    callable (called, then its result handled the same way).
    """

    def __init__(self):
        self.model_name = "scripted"
        self.responses = {"context": [], "calendar": []}
        self.calls = []

    def complete_json(self, system_prompt: str, user_prompt: str,
                      request_name: str = "completion") -> Dict[str, Any]:
        self.calls.append((request_name, user_prompt))
        answer = self.responses[request_name].pop(0)
        if callable(answer):
            answer = answer()
        if isinstance(answer, Exception):
            raise answer
        return answer

    def get_stats(self) -> Dict[str, Any]:
        return {"model": self.model_name, "total_requests": len(self.calls), "failed_requests": 0}


# ===== Configuration =====


@pytest.fixture
def config() -> Config:
    return MockProviderConfig()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


# ===== LLM doubles =====


@pytest.fixture
def mock_llm(config, clock) -> MockLLMClient:
    return MockLLMClient(config=config, clock=clock)


@pytest.fixture
def scripted_llm() -> ScriptedLLM:
    return ScriptedLLM()


# ===== Sample data =====


@pytest.fixture
def context_data() -> Dict[str, Any]:
    """A small scenario: two fixed meetings and one flexible one"""
    return {
        "companyType": "Atelier de menuiserie",
        "companyName": "Menuiserie Dubois",
        "colleagues": [
            {"id": "colleague-1", "name": "Paul Dubois", "job": "Maître artisan", "meetings": ["meeting-1"]},
            {"id": "colleague-2", "name": "Lina Morel", "job": "Ébéniste", "meetings": ["meeting-2"]},
            {"id": "colleague-3", "name": "Yanis Caron", "job": "Apprenti", "meetings": []},
            {"id": "colleague-4", "name": "Eva Simon", "job": "Comptable", "meetings": ["meeting-3"]},
            {"id": "colleague-5", "name": "Marc Roy", "job": "Livreur", "meetings": []},
        ],
        "currentUser": {
            "id": "user-1",
            "name": "Léa Martin",
            "job": "Responsable d'atelier",
            "meetings": ["meeting-1", "meeting-2", "meeting-3"],
            "objectives": [
                "Livrer la commande de l'hôtel Bellevue",
                "Former l'apprenti au vernissage",
                "Réduire les chutes de bois",
            ],
        },
        "meetings": [
            {
                "id": "meeting-1",
                "title": "Réception client Bellevue",
                "description": "Validation des plans",
                "startTime": "2026-10-20T10:00:00",
                "endTime": "2026-10-20T11:00:00",
                "isFlexible": False,
                "participants": ["user-1", "colleague-1"],
                "objective": "Livrer la commande de l'hôtel Bellevue",
                "location": "Showroom",
            },
            {
                "id": "meeting-2",
                "title": "Point atelier",
                "description": "Organisation de la semaine",
                "startTime": "2026-10-21T14:00:00",
                "endTime": "2026-10-21T15:00:00",
                "isFlexible": True,
                "participants": ["user-1", "colleague-2"],
                "objective": "",
                "location": "Atelier",
            },
            {
                "id": "meeting-3",
                "title": "Revue des comptes",
                "description": "Budget matières premières",
                "startTime": "2026-10-22T09:00:00",
                "endTime": "2026-10-22T09:30:00",
                "isFlexible": False,
                "participants": ["user-1", "colleague-4"],
                "objective": "Réduire les chutes de bois",
                "location": "Bureau",
            },
        ],
    }


@pytest.fixture
def sample_context(context_data) -> ProfessionalContext:
    return ProfessionalContext.from_dict(context_data)


@pytest.fixture
def sample_constraints() -> SchedulingConstraints:
    return SchedulingConstraints(
        working_hours_start="09:00",
        working_hours_end="18:00",
        meeting_density=MeetingDensity.MEDIUM,
        constraints=[Constraint(id="c-1", description="Pas de réunion le vendredi après-midi")],
    )


@pytest.fixture
def calendar_answer() -> Dict[str, Any]:
    return {
        "events": [
            {
                "title": "Réception client Bellevue",
                "description": "Validation des plans",
                "startTime": "2026-10-20T10:00:00",
                "endTime": "2026-10-20T11:00:00",
                "participants": [{"name": "Paul Dubois", "role": "Maître artisan"}],
                "location": "Showroom",
            },
            {
                "title": "Atelier vernissage",
                "description": "Lié à l'Objectif 2: Former l'apprenti au vernissage",
                "startTime": "2026-10-20T14:00:00",
                "endTime": "2026-10-20T15:30:00",
                "participants": [{"name": "Yanis Caron", "role": "Apprenti"}],
                "location": "Atelier",
            },
        ]
    }


# ===== Planner and web app =====


@pytest.fixture
def planner(mock_llm, config, clock) -> CalendarPlanner:
    return CalendarPlanner(llm_client=mock_llm, store=SessionStore(), config=config, clock=clock)


@pytest.fixture
def scripted_planner(scripted_llm, config, clock) -> CalendarPlanner:
    return CalendarPlanner(llm_client=scripted_llm, store=SessionStore(), config=config, clock=clock)


@pytest.fixture
def app(planner, config):
    app = create_app(planner, config)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
