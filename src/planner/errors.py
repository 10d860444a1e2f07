"""
Error taxonomy for the planning flow
"""
from typing import List


class PlannerError(Exception):
    """Base class for planner failures"""


class GenerationError(PlannerError):
    """The LLM call failed or returned empty/unparsable content"""

    def __init__(self, message: str, step: str = None):
        super().__init__(message)
        self.step = step


class GenerationInProgressError(GenerationError):
    """A generation for the same session and step is still running"""


class MissingStateError(PlannerError):
    """Data from an earlier step is absent from the session state"""

    def __init__(self, step: str, redirect_to: str = "/"):
        super().__init__(f"Missing session state: {step}")
        self.step = step
        self.redirect_to = redirect_to


class ValidationError(PlannerError):
    """Inbound request body does not have the expected shape"""

    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


class StorageError(PlannerError):
    """The session store refused a write"""
