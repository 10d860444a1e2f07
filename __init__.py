"""
Objective Calendar Planner - LLM-assisted weekly planning

This package provides a small planning flow that:
- Fabricates a professional scenario with colleagues, objectives and meetings
- Collects working hours, meeting density and free-text preferences
- Asks an LLM for a week of events aligned with the user's objectives
- Lays the batch out as a week grid
"""

__version__ = "1.0.0"
__author__ = "Calendar Planner Team"
