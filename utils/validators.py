"""
Validation utilities for the Objective Calendar Planner
"""
import re
from datetime import datetime
from typing import Dict, Any, List

from src.planner.models import MeetingDensity, ProfessionalContext

HOUR_PATTERN = re.compile(r'^([01]?\d|2[0-3]):[0-5]\d$')


class RequestValidator:
    """Validator for incoming calendar requests"""

    @staticmethod
    def validate_hour(value: Any) -> bool:
        """Validate HH:MM format"""
        return isinstance(value, str) and bool(HOUR_PATTERN.match(value))

    @staticmethod
    def validate_date_format(date_str: Any, format_str: str = "%Y-%m-%d") -> bool:
        """Validate date format"""
        if not isinstance(date_str, str):
            return False
        try:
            datetime.strptime(date_str, format_str)
            return True
        except ValueError:
            return False

    @staticmethod
    def validate_calendar_request(request_data: Any) -> List[str]:
        """Validate calendar request structure and return list of errors"""
        if not isinstance(request_data, dict):
            return ["Request body must be a JSON object"]

        errors = []

        # Required fields
        required_fields = [
            "userRole", "startDate", "endDate", "workingHoursStart", "workingHoursEnd",
            "meetingPreferences", "existingCommitments", "meetingDensity", "objectives",
        ]
        for field in required_fields:
            if field not in request_data:
                errors.append(f"Missing required field: {field}")

        for field in ("startDate", "endDate"):
            if field in request_data and not RequestValidator.validate_date_format(request_data[field]):
                errors.append(f"Invalid {field} format: {request_data[field]}. Expected: YYYY-MM-DD")

        for field in ("workingHoursStart", "workingHoursEnd"):
            if field in request_data and not RequestValidator.validate_hour(request_data[field]):
                errors.append(f"Invalid {field} format: {request_data[field]}. Expected: HH:MM")

        if "meetingDensity" in request_data:
            allowed = [density.value for density in MeetingDensity]
            if request_data["meetingDensity"] not in allowed:
                errors.append(f"'meetingDensity' must be one of {allowed}")

        for field in ("meetingPreferences", "objectives"):
            if field in request_data:
                value = request_data[field]
                if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
                    errors.append(f"'{field}' must be a list of strings")

        if "existingCommitments" in request_data:
            commitments = request_data["existingCommitments"]
            if not isinstance(commitments, list):
                errors.append("'existingCommitments' must be a list")
            else:
                for i, commitment in enumerate(commitments):
                    if not isinstance(commitment, dict):
                        errors.append(f"Commitment {i} must be an object")
                    elif "startTime" not in commitment or "endTime" not in commitment:
                        errors.append(f"Commitment {i} must have 'startTime' and 'endTime'")

        return errors


class ContextValidator:
    """Checks the scenario contract the context prompt asks for.

    Results are warnings only: generated content is used as it comes.
    """

    @staticmethod
    def check_context(context: ProfessionalContext) -> List[str]:
        warnings = []

        objectives = context.current_user.objectives
        if len(objectives) != 3:
            warnings.append(f"current user has {len(objectives)} objectives, expected 3")

        if not 5 <= len(context.colleagues) <= 7:
            warnings.append(f"{len(context.colleagues)} colleagues, expected 5-7")

        if not 10 <= len(context.meetings) <= 15:
            warnings.append(f"{len(context.meetings)} meetings, expected 10-15")

        known_ids = set(context.person_ids())
        for meeting in context.meetings:
            unknown = [pid for pid in meeting.participants if pid not in known_ids]
            if unknown:
                warnings.append(f"meeting {meeting.id} references unknown participants {unknown}")

        return warnings


class DataSanitizer:
    """Sanitize and clean input data"""

    @staticmethod
    def sanitize_constraint(text: Any) -> str:
        """Trim a free-text constraint"""
        if not isinstance(text, str):
            return ""
        return text.strip()

    @staticmethod
    def sanitize_hour(value: Any, default: str) -> str:
        """Keep a valid HH:MM value, otherwise fall back to the default"""
        if isinstance(value, str) and RequestValidator.validate_hour(value.strip()):
            return value.strip()
        return default
