"""
Scheduling Services - deadline math, frequency matching and window generation.
"""

from .deadline_calculator import DeadlineCache, compute_deadlines
from .frequency_matcher import FrequencyMatcher
from .window_generator import WindowGenerator, calculate_generation_window

__all__ = [
    "compute_deadlines",
    "DeadlineCache",
    "FrequencyMatcher",
    "WindowGenerator",
    "calculate_generation_window",
]
