"""
Utility modules for the Objective Calendar Planner
"""

from .logger import PlannerLogger
from .validators import RequestValidator, ContextValidator, DataSanitizer
from .meeting_logger import MeetingLogger
from .calendar_batch_analyzer import CalendarBatchAnalyzer

__all__ = ['PlannerLogger', 'RequestValidator', 'ContextValidator', 'DataSanitizer',
           'MeetingLogger', 'CalendarBatchAnalyzer']
