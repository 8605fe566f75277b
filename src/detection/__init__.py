"""
GuardianEye - Detection Module

Periodic capture -> classify -> decide -> log loops, one per feature.
"""

from .controller import DetectionLoopController, LoopStats
from .policies import Decision, DetectionPolicy, TickOutcome
from .timer import RepeatingTimer

__all__ = [
    'DetectionLoopController',
    'LoopStats',
    'Decision',
    'DetectionPolicy',
    'TickOutcome',
    'RepeatingTimer',
]
