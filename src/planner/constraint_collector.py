"""
Constraint Collector - accumulates the user's scheduling preferences
"""
import logging
import uuid
from typing import List, Optional

from src.planner.models import Constraint, MeetingDensity, SchedulingConstraints
from utils.validators import DataSanitizer

logger = logging.getLogger(__name__)

EXAMPLE_CONSTRAINTS = [
    "Je n'aime pas avoir des réunions le matin",
    "Je préfère travailler sur les sujets importants en début de semaine",
    "Je ne suis pas disponible le jeudi de 14h à 16h",
    "J'ai besoin d'au moins 2 heures de temps concentré chaque jour",
    "Je préfère avoir mes réunions regroupées",
    "Je prends une pause déjeuner d'une heure entre 12h et 14h",
    "Je préfère commencer ma journée par du travail de réflexion",
    "J'aime garder mes vendredis après-midi pour les tâches administratives",
    "Je suis plus productif en fin de journée",
]


class ConstraintCollector:
    """In-memory preferences for one planning session.

    Working hours are taken as given (start is assumed before end). Constraint
    texts are trimmed, empty texts are ignored and an exact duplicate of an
    existing description is not added twice.
    """

    def __init__(self, working_hours_start: str = "09:00", working_hours_end: str = "18:00",
                 meeting_density: MeetingDensity = MeetingDensity.MEDIUM):
        self.working_hours_start = working_hours_start
        self.working_hours_end = working_hours_end
        self.meeting_density = MeetingDensity(meeting_density)
        self.constraints: List[Constraint] = []

    @classmethod
    def from_constraints(cls, snapshot: SchedulingConstraints) -> "ConstraintCollector":
        collector = cls(snapshot.working_hours_start, snapshot.working_hours_end,
                        snapshot.meeting_density)
        collector.constraints = [Constraint(c.id, c.description) for c in snapshot.constraints]
        return collector

    def add_constraint(self, text: str) -> Optional[Constraint]:
        description = DataSanitizer.sanitize_constraint(text)
        if not description:
            return None
        if any(c.description == description for c in self.constraints):
            logger.debug(f"Constraint already present: {description}")
            return None

        constraint = Constraint(id=str(uuid.uuid4()), description=description)
        self.constraints.append(constraint)
        logger.info(f"➕ Constraint added: {description}")
        return constraint

    def add_example_constraint(self, text: str) -> Optional[Constraint]:
        if text not in EXAMPLE_CONSTRAINTS:
            logger.warning(f"Unknown example constraint: {text}")
        return self.add_constraint(text)

    def remove_constraint(self, constraint_id: str) -> bool:
        remaining = [c for c in self.constraints if c.id != constraint_id]
        removed = len(remaining) != len(self.constraints)
        self.constraints = remaining
        if removed:
            logger.info(f"➖ Constraint removed: {constraint_id}")
        return removed

    def set_working_hours(self, start: str, end: str):
        self.working_hours_start = start
        self.working_hours_end = end

    def set_meeting_density(self, density: str):
        self.meeting_density = MeetingDensity(density)

    def available_examples(self) -> List[str]:
        taken = {c.description for c in self.constraints}
        return [example for example in EXAMPLE_CONSTRAINTS if example not in taken]

    def snapshot(self) -> SchedulingConstraints:
        return SchedulingConstraints(
            working_hours_start=self.working_hours_start,
            working_hours_end=self.working_hours_end,
            meeting_density=self.meeting_density,
            constraints=[Constraint(c.id, c.description) for c in self.constraints],
        )
