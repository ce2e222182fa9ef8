"""
Routine schedule generation and compliance tracking.

Materializes dated occurrences of a subscriber's routine steps over a rolling
window, attaches timezone-correct deadlines and tracks whether each occurrence
was completed on time, late or missed.
"""

__version__ = "1.0.0"
