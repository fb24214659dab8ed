"""
Contender Utilities
Progress tracking and plan output.
"""

from .progress import ProgressTracker
from .plan_summary import InstrumentationPlan

__all__ = ['ProgressTracker', 'InstrumentationPlan']
