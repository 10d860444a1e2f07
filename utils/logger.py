"""
Logging utilities for the Objective Calendar Planner
"""
import logging
import sys
from datetime import datetime
import json


class PlannerLogger:
    """Custom logger setup for the planner"""

    @staticmethod
    def setup_logging(log_level: str = "INFO", log_file: str = None):
        """Setup logging configuration"""

        # Create formatter
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        # Setup root logger
        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, log_level.upper()))

        # Clear existing handlers
        root_logger.handlers.clear()

        # Console handler
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        # File handler (if specified)
        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        # Suppress some noisy loggers
        for noisy in ('urllib3', 'httpx', 'httpcore', 'openai', 'werkzeug'):
            logging.getLogger(noisy).setLevel(logging.WARNING)

        return root_logger

    @staticmethod
    def log_generation(step: str, session_id: str, succeeded: bool,
                       processing_time: float, detail: dict = None):
        """Log one generation step as a JSON line for debugging"""
        logger = logging.getLogger(__name__)

        log_entry = {
            "timestamp": datetime.now().isoformat(),
            "step": step,
            "session_id": session_id,
            "succeeded": succeeded,
            "processing_time_seconds": round(processing_time, 3),
            "detail": detail or {},
        }

        logger.info(f"Generation finished: {json.dumps(log_entry, ensure_ascii=False)}")
