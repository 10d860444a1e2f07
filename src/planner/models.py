"""Domain models shared by the planning steps.

Every shape round-trips through the camelCase JSON used on the wire and in
the session store.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class MeetingDensity(str, Enum):
    LIGHT = "light"
    MEDIUM = "medium"
    HEAVY = "heavy"


DENSITY_LABELS = {
    MeetingDensity.LIGHT: "Légère",
    MeetingDensity.MEDIUM: "Moyenne",
    MeetingDensity.HEAVY: "Élevée",
}


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [_text(item) for item in value]


@dataclass
class Meeting:
    """A pre-existing meeting of the fabricated scenario."""
    id: str
    title: str
    description: str
    start_time: str
    end_time: str
    is_flexible: bool
    participants: List[str] = field(default_factory=list)  # person ids
    objective: str = ""
    location: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Meeting":
        return cls(
            id=_text(data.get("id")),
            title=_text(data.get("title")),
            description=_text(data.get("description")),
            start_time=_text(data.get("startTime")),
            end_time=_text(data.get("endTime")),
            is_flexible=bool(data.get("isFlexible", False)),
            participants=_string_list(data.get("participants")),
            objective=_text(data.get("objective")),
            location=_text(data.get("location")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "isFlexible": self.is_flexible,
            "participants": list(self.participants),
            "objective": self.objective,
            "location": self.location,
        }


@dataclass
class Person:
    """A colleague; `meetings` are back-references to Meeting ids."""
    id: str
    name: str
    job: str
    meetings: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Person":
        return cls(
            id=_text(data.get("id")),
            name=_text(data.get("name")),
            job=_text(data.get("job")),
            meetings=_string_list(data.get("meetings")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "job": self.job,
            "meetings": list(self.meetings),
        }


@dataclass
class CurrentUser(Person):
    objectives: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CurrentUser":
        return cls(
            id=_text(data.get("id")),
            name=_text(data.get("name")),
            job=_text(data.get("job")),
            meetings=_string_list(data.get("meetings")),
            objectives=_string_list(data.get("objectives")),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["objectives"] = list(self.objectives)
        return data


@dataclass
class ProfessionalContext:
    """Aggregate root of a fabricated scenario; replaced wholesale."""
    company_type: str
    company_name: str
    colleagues: List[Person]
    current_user: CurrentUser
    meetings: List[Meeting]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProfessionalContext":
        return cls(
            company_type=_text(data.get("companyType")),
            company_name=_text(data.get("companyName")),
            colleagues=[Person.from_dict(c) for c in data.get("colleagues") or []],
            current_user=CurrentUser.from_dict(data["currentUser"]),
            meetings=[Meeting.from_dict(m) for m in data.get("meetings") or []],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "companyType": self.company_type,
            "companyName": self.company_name,
            "colleagues": [c.to_dict() for c in self.colleagues],
            "currentUser": self.current_user.to_dict(),
            "meetings": [m.to_dict() for m in self.meetings],
        }

    @property
    def people(self) -> List[Person]:
        return [self.current_user] + list(self.colleagues)

    def person_ids(self) -> List[str]:
        return [person.id for person in self.people]

    def find_person(self, person_id: str) -> Optional[Person]:
        for person in self.people:
            if person.id == person_id:
                return person
        return None

    def fixed_meetings(self) -> List[Meeting]:
        return [m for m in self.meetings if not m.is_flexible]

    def meetings_for(self, person_id: str) -> List[Meeting]:
        return [m for m in self.meetings if person_id in m.participants]


@dataclass
class Constraint:
    id: str
    description: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Constraint":
        return cls(id=_text(data.get("id")), description=_text(data.get("description")))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "description": self.description}


@dataclass
class SchedulingConstraints:
    working_hours_start: str = "09:00"
    working_hours_end: str = "18:00"
    meeting_density: MeetingDensity = MeetingDensity.MEDIUM
    constraints: List[Constraint] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SchedulingConstraints":
        return cls(
            working_hours_start=_text(data.get("workingHoursStart") or "09:00"),
            working_hours_end=_text(data.get("workingHoursEnd") or "18:00"),
            meeting_density=MeetingDensity(data.get("meetingDensity") or "medium"),
            constraints=[Constraint.from_dict(c) for c in data.get("constraints") or []],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "constraints": [c.to_dict() for c in self.constraints],
            "workingHoursStart": self.working_hours_start,
            "workingHoursEnd": self.working_hours_end,
            "meetingDensity": self.meeting_density.value,
        }

    @property
    def density_label(self) -> str:
        return DENSITY_LABELS[self.meeting_density]

    def preference_texts(self) -> List[str]:
        return [c.description for c in self.constraints]


@dataclass
class CalendarRequest:
    """Body of a calendar generation request."""
    user_role: str
    start_date: str
    end_date: str
    working_hours_start: str
    working_hours_end: str
    meeting_preferences: List[str]
    existing_commitments: List[Meeting]
    meeting_density: MeetingDensity
    objectives: List[str]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CalendarRequest":
        return cls(
            user_role=_text(data.get("userRole")),
            start_date=_text(data.get("startDate")),
            end_date=_text(data.get("endDate")),
            working_hours_start=_text(data.get("workingHoursStart")),
            working_hours_end=_text(data.get("workingHoursEnd")),
            meeting_preferences=_string_list(data.get("meetingPreferences")),
            existing_commitments=[Meeting.from_dict(m) for m in data.get("existingCommitments") or []],
            meeting_density=MeetingDensity(data.get("meetingDensity") or "medium"),
            objectives=_string_list(data.get("objectives")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "userRole": self.user_role,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "workingHoursStart": self.working_hours_start,
            "workingHoursEnd": self.working_hours_end,
            "meetingPreferences": list(self.meeting_preferences),
            "existingCommitments": [m.to_dict() for m in self.existing_commitments],
            "meetingDensity": self.meeting_density.value,
            "objectives": list(self.objectives),
        }


@dataclass
class EventParticipant:
    name: str
    role: str = ""

    @classmethod
    def from_value(cls, value: Any) -> "EventParticipant":
        # Models occasionally answer with bare names instead of {name, role}
        if isinstance(value, dict):
            return cls(name=_text(value.get("name")), role=_text(value.get("role")))
        return cls(name=_text(value))

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "role": self.role}


@dataclass
class CalendarEvent:
    """One entry of a generated batch. Not the same entity as Meeting."""
    title: str
    description: str
    start_time: str
    end_time: str
    participants: List[EventParticipant] = field(default_factory=list)
    location: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CalendarEvent":
        participants = data.get("participants")
        return cls(
            title=_text(data.get("title")),
            description=_text(data.get("description")),
            start_time=_text(data.get("startTime")),
            end_time=_text(data.get("endTime")),
            participants=[EventParticipant.from_value(p) for p in participants]
            if isinstance(participants, list) else [],
            location=_text(data.get("location")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "participants": [p.to_dict() for p in self.participants],
            "location": self.location,
        }
