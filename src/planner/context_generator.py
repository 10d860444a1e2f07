"""
Context Generator - fabricates a professional scenario through the LLM
"""
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List

from config.settings import Config
from src.planner.errors import GenerationError
from src.planner.models import ProfessionalContext
from utils.meeting_logger import MeetingLogger
from utils.validators import ContextValidator

logger = logging.getLogger(__name__)

REQUIRED_CONTEXT_FIELDS = ["companyType", "companyName", "colleagues", "currentUser", "meetings"]


class ContextGenerator:
    """Issues the scenario request and turns the answer into a ProfessionalContext"""

    def __init__(self, llm_client, config: Config = None,
                 clock: Callable[[], datetime] = None):
        self.llm_client = llm_client
        self.config = config or Config()
        self.clock = clock or datetime.now

    def build_prompt(self) -> str:
        return self.config.CONTEXT_GENERATION_PROMPT.format(
            today=self.clock().strftime(self.config.DATE_FORMAT)
        )

    def generate(self) -> ProfessionalContext:
        """Generate one complete context, or raise GenerationError"""
        logger.info("🏢 Generating professional context")

        data = self.llm_client.complete_json(
            self.config.CONTEXT_SYSTEM_PROMPT,
            self.build_prompt(),
            request_name="context",
        )
        context = self.parse_context(data)

        for warning in ContextValidator.check_context(context):
            logger.warning(f"⚠️  Context contract: {warning}")
        MeetingLogger.log_context_summary(context)
        return context

    @staticmethod
    def parse_context(data: Dict[str, Any]) -> ProfessionalContext:
        missing = [name for name in REQUIRED_CONTEXT_FIELDS if name not in data]
        if missing:
            raise GenerationError(f"Context is missing fields: {', '.join(missing)}", step="context")

        structural_errors = _structural_errors(data)
        if structural_errors:
            raise GenerationError("; ".join(structural_errors), step="context")

        return ProfessionalContext.from_dict(data)


def _structural_errors(data: Dict[str, Any]) -> List[str]:
    errors = []
    if not isinstance(data["currentUser"], dict):
        errors.append("'currentUser' must be an object")
    for name in ("colleagues", "meetings"):
        value = data[name]
        if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
            errors.append(f"'{name}' must be a list of objects")
    return errors
