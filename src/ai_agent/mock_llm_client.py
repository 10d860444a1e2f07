"""
Mock LLM Client for running the planner without an external LLM
"""
import json
import logging
import random
import re
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Tuple

from config.settings import Config
from src.planner.errors import GenerationError

logger = logging.getLogger(__name__)

# (title, description, day offset, start HH:MM, minutes, flexible, colleague indexes, objective index)
_SCENARIOS = [
    {
        "companyType": "Cabinet d'avocats",
        "companyName": "Moreau & Associés",
        "colleagues": [
            ("Claire Moreau", "Associée fondatrice"),
            ("Julien Lefèvre", "Avocat collaborateur"),
            ("Sophie Garnier", "Juriste en droit social"),
            ("Antoine Roux", "Clerc principal"),
            ("Manon Petit", "Assistante juridique"),
            ("Hugo Bernard", "Responsable administratif"),
        ],
        "user": ("Camille Durand", "Avocate en droit des affaires"),
        "objectives": [
            "Finaliser le dossier de fusion Delmas avant l'audience",
            "Former Manon à la gestion des pièces de procédure",
            "Préparer la conférence sur la réforme du droit des contrats",
        ],
        "meetings": [
            ("Audience tribunal de commerce", "Plaidoirie dans l'affaire Delmas contre Vitral", 1, "10:00", 60, False, [1], 0),
            ("Point dossier fusion Delmas", "Revue des clauses de garantie avec Julien", 1, "14:00", 60, True, [1], 0),
            ("Comité des associés", "Réunion hebdomadaire des associés", 2, "09:00", 90, False, [0, 5], None),
            ("Formation procédure", "Session de formation sur les bordereaux de pièces", 2, "15:00", 60, True, [4], 1),
            ("Rendez-vous client Vitral", "Présentation de la stratégie contentieuse", 3, "11:00", 60, False, [0], 0),
            ("Relecture conférence", "Relecture des slides sur la réforme", 3, "16:00", 45, True, [2], 2),
            ("Point social", "Suivi des contentieux prud'homaux", 4, "10:30", 45, True, [2], None),
            ("Réunion administrative", "Budget et facturation du trimestre", 4, "14:00", 60, False, [5], None),
            ("Accompagnement Manon", "Cas pratique sur un dossier réel", 5, "09:30", 60, True, [4], 1),
            ("Déjeuner barreau", "Déjeuner de l'ordre des avocats", 5, "12:30", 90, False, [0], 2),
            ("Point clerc", "Calendrier des échéances procédurales", 6, "10:00", 30, True, [3], None),
            ("Répétition conférence", "Répétition générale devant l'équipe", 7, "16:00", 60, True, [0, 2], 2),
        ],
    },
    {
        "companyType": "Exploitation agricole",
        "companyName": "GAEC des Tilleuls",
        "colleagues": [
            ("Bernard Lemoine", "Chef d'exploitation"),
            ("Élodie Faure", "Responsable élevage"),
            ("Thomas Girard", "Mécanicien agricole"),
            ("Inès Marchand", "Chargée de vente directe"),
            ("Lucas Perrin", "Apprenti agricole"),
        ],
        "user": ("Nicolas Blanc", "Responsable des cultures"),
        "objectives": [
            "Planifier les semis de printemps sur les parcelles nord",
            "Obtenir la certification agriculture biologique",
            "Lancer la vente de légumes au marché de la ville",
        ],
        "meetings": [
            ("Tour de plaine", "Observation de l'état des parcelles nord", 1, "08:00", 90, True, [0], 0),
            ("Visite de l'organisme certificateur", "Audit de conversion en agriculture biologique", 1, "14:00", 120, False, [0, 1], 1),
            ("Réunion du GAEC", "Décisions hebdomadaires de l'exploitation", 2, "09:00", 60, False, [0, 1, 2, 3], None),
            ("Entretien du semoir", "Révision avant la campagne de semis", 2, "13:30", 90, True, [2], 0),
            ("Point vente directe", "Organisation du stand et des prix", 3, "10:00", 60, True, [3], 2),
            ("Rendez-vous banque", "Financement du nouveau tunnel de maraîchage", 3, "15:00", 60, False, [0], None),
            ("Formation apprenti", "Reconnaissance des adventices", 4, "09:30", 60, True, [4], None),
            ("Dossier certification", "Compilation des registres de traitement", 4, "14:00", 90, True, [1], 1),
            ("Marché de la ville", "Rencontre avec le placier du marché", 5, "07:30", 60, False, [3], 2),
            ("Point élevage", "Coordination pâturage et rotations", 5, "11:00", 45, True, [1], None),
            ("Livraison semences", "Réception des semences certifiées", 6, "10:00", 30, False, [4], 0),
            ("Bilan de semaine", "Revue des objectifs et des priorités", 7, "17:00", 45, True, [0], None),
        ],
    },
]

_COMMITMENTS_PATTERN = re.compile(r"^- Engagements existants: (.*)$", re.MULTILINE)
_WINDOW_PATTERN = re.compile(r"du (\d{4}-\d{2}-\d{2}) au (\d{4}-\d{2}-\d{2})")
_HOURS_PATTERN = re.compile(r"Heures de travail: (\d{1,2}:\d{2}) à (\d{1,2}:\d{2})")
_DENSITY_PATTERN = re.compile(r"Densité des réunions: (\w+)")
_OBJECTIVES_PATTERN = re.compile(r"Objectifs à atteindre:\n(.*?)\n\n", re.DOTALL)

# Fabricated people remembered so echoed commitments can name their participants
_PEOPLE_REGISTRY_SIZE = 500


class MockLLMClient:
    """Mock LLM client answering both planner requests deterministically"""

    def __init__(self, model_name: str = None, config: Config = None,
                 clock: Callable[[], datetime] = None):
        self.config = config or Config()
        self.model_name = model_name or "mock-llm"
        self.clock = clock or datetime.now
        self._random = random.Random(self.config.MOCK_SEED)
        self._total_requests = 0
        self._contexts_made = 0
        self._people: "OrderedDict[str, Tuple[str, str]]" = OrderedDict()
        logger.info(f"Initialized Mock LLM client: {self.model_name}")

    def complete_json(self, system_prompt: str, user_prompt: str,
                      request_name: str = "completion") -> Dict[str, Any]:
        self._total_requests += 1
        logger.info(f"🤖 MOCK: answering {request_name} request")

        if request_name == "context":
            return self._fabricate_context()
        if request_name == "calendar":
            return self._fabricate_calendar(user_prompt)
        raise GenerationError(f"Mock client cannot answer '{request_name}'", step=request_name)

    def get_stats(self) -> Dict[str, Any]:
        return {"model": self.model_name, "total_requests": self._total_requests, "failed_requests": 0}

    def _fabricate_context(self) -> Dict[str, Any]:
        scenario = self._random.choice(_SCENARIOS)
        today = self.clock().replace(hour=0, minute=0, second=0, microsecond=0)

        self._contexts_made += 1
        tag = self._contexts_made
        user_id = f"user-{tag}"
        colleagues = [
            {"id": f"colleague-{tag}-{i}", "name": name, "job": job, "meetings": []}
            for i, (name, job) in enumerate(scenario["colleagues"], 1)
        ]
        user_name, user_job = scenario["user"]
        current_user = {
            "id": user_id,
            "name": user_name,
            "job": user_job,
            "meetings": [],
            "objectives": list(scenario["objectives"]),
        }

        meetings = []
        for number, template in enumerate(scenario["meetings"], 1):
            title, description, day, start, minutes, flexible, attendees, objective = template
            hour, minute = (int(part) for part in start.split(":"))
            start_dt = today + timedelta(days=day, hours=hour, minutes=minute)
            meeting_id = f"meeting-{tag}-{number}"
            participants = [user_id] + [colleagues[i]["id"] for i in attendees]

            meetings.append({
                "id": meeting_id,
                "title": title,
                "description": description,
                "startTime": start_dt.strftime(self.config.DATETIME_FORMAT),
                "endTime": (start_dt + timedelta(minutes=minutes)).strftime(self.config.DATETIME_FORMAT),
                "isFlexible": flexible,
                "participants": participants,
                "objective": scenario["objectives"][objective] if objective is not None else "",
                "location": "Visioconférence" if flexible and number % 3 == 0 else "Salle principale",
            })
            current_user["meetings"].append(meeting_id)
            for i in attendees:
                colleagues[i]["meetings"].append(meeting_id)

        self._remember(current_user)
        for colleague in colleagues:
            self._remember(colleague)

        return {
            "companyType": scenario["companyType"],
            "companyName": scenario["companyName"],
            "colleagues": colleagues,
            "currentUser": current_user,
            "meetings": meetings,
        }

    def _fabricate_calendar(self, prompt: str) -> Dict[str, Any]:
        """Echo fixed commitments and fill free working time with work blocks"""
        commitments = self._parse_commitments(prompt)
        start_date, end_date = self._parse_window(prompt)
        work_start, work_end = self._parse_working_hours(prompt)
        density_match = _DENSITY_PATTERN.search(prompt)
        density = density_match.group(1) if density_match else "medium"
        objectives = self._parse_objectives(prompt)

        events = []
        busy: List[Tuple[datetime, datetime]] = []
        for commitment in commitments:
            try:
                busy.append((datetime.fromisoformat(commitment["startTime"]),
                             datetime.fromisoformat(commitment["endTime"])))
            except (KeyError, TypeError, ValueError):
                continue
            events.append({
                "title": commitment.get("title", ""),
                "description": commitment.get("description", ""),
                "startTime": commitment["startTime"],
                "endTime": commitment["endTime"],
                "participants": self._resolve_participants(commitment.get("participants", [])),
                "location": commitment.get("location", ""),
            })

        day = start_date
        day_index = 0
        while day < end_date:
            if day.weekday() < 5:
                for block in self._day_blocks(day, work_start, work_end, density, objectives, day_index):
                    block_start = datetime.fromisoformat(block["startTime"])
                    block_end = datetime.fromisoformat(block["endTime"])
                    if any(block_start < b_end and block_end > b_start for b_start, b_end in busy):
                        continue
                    busy.append((block_start, block_end))
                    events.append(block)
                day_index += 1
            day += timedelta(days=1)

        events.sort(key=lambda event: event["startTime"])
        logger.info(f"🤖 MOCK: produced {len(events)} events ({len(commitments)} commitments kept)")
        return {"events": events}

    def _remember(self, person: Dict[str, Any]):
        self._people[person["id"]] = (person["name"], person["job"])
        self._people.move_to_end(person["id"])
        while len(self._people) > _PEOPLE_REGISTRY_SIZE:
            self._people.popitem(last=False)

    def _resolve_participants(self, person_ids: List[Any]) -> List[Dict[str, str]]:
        participants = []
        for person_id in person_ids:
            known = self._people.get(person_id) if isinstance(person_id, str) else None
            if known is None:
                logger.debug(f"🤖 MOCK: unknown participant {person_id!r} left out")
                continue
            name, job = known
            participants.append({"name": name, "role": job})
        return participants

    def _day_blocks(self, day: datetime, work_start: Tuple[int, int], work_end: Tuple[int, int],
                    density: str, objectives: List[str], day_index: int) -> List[Dict[str, Any]]:
        day_start = day.replace(hour=work_start[0], minute=work_start[1])
        day_end = day.replace(hour=work_end[0], minute=work_end[1])

        def block(title, description, start, minutes):
            end = start + timedelta(minutes=minutes)
            if start < day_start or end > day_end:
                return None
            return {
                "title": title,
                "description": description,
                "startTime": start.strftime(self.config.DATETIME_FORMAT),
                "endTime": end.strftime(self.config.DATETIME_FORMAT),
                "participants": [{"name": "Moi", "role": "Organisateur"}],
                "location": "Bureau",
            }

        def focus(index, start, minutes):
            if not objectives:
                return block("Travail de fond", "Temps de concentration, flexible", start, minutes)
            number = index % len(objectives) + 1
            return block(
                f"Travail sur l'objectif {number}",
                f"Lié à l'Objectif {number}: {objectives[number - 1]}. Bloc flexible, peut être déplacé.",
                start, minutes,
            )

        blocks = [
            focus(day_index, day_start, 90),
            block("Pause déjeuner", "Pause personnelle", day.replace(hour=12, minute=0), 60),
            focus(day_index + 1, day.replace(hour=14, minute=0), 90),
        ]
        if density != "light":
            blocks.append(block("Revue et suivi", "Temps de réflexion et de préparation, optionnel",
                                day_end - timedelta(minutes=45), 45))
        if density == "heavy":
            blocks.append(block("Point de synchronisation", "Échange rapide avec l'équipe, si disponible",
                                day.replace(hour=11, minute=0), 30))
        return [b for b in blocks if b is not None]

    def _parse_commitments(self, prompt: str) -> List[Dict[str, Any]]:
        match = _COMMITMENTS_PATTERN.search(prompt)
        if not match:
            return []
        try:
            commitments = json.loads(match.group(1))
        except json.JSONDecodeError:
            logger.warning("🤖 MOCK: could not read commitments from prompt")
            return []
        return [c for c in commitments if isinstance(c, dict)]

    def _parse_window(self, prompt: str) -> Tuple[datetime, datetime]:
        match = _WINDOW_PATTERN.search(prompt)
        if match:
            return (datetime.strptime(match.group(1), self.config.DATE_FORMAT),
                    datetime.strptime(match.group(2), self.config.DATE_FORMAT))
        today = self.clock().replace(hour=0, minute=0, second=0, microsecond=0)
        return today, today + timedelta(days=self.config.PLANNING_WINDOW_DAYS)

    def _parse_working_hours(self, prompt: str) -> Tuple[Tuple[int, int], Tuple[int, int]]:
        match = _HOURS_PATTERN.search(prompt)
        if match:
            start = tuple(int(part) for part in match.group(1).split(":"))
            end = tuple(int(part) for part in match.group(2).split(":"))
            if start < end:
                return start, end
        return (9, 0), (18, 0)

    def _parse_objectives(self, prompt: str) -> List[str]:
        match = _OBJECTIVES_PATTERN.search(prompt)
        if not match:
            return []
        objectives = []
        for line in match.group(1).splitlines():
            numbered = re.match(r"\s*\d+\.\s*(.+)", line)
            if numbered:
                objectives.append(numbered.group(1).strip())
        return objectives
