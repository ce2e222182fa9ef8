"""
Workers for background compliance maintenance.
"""

from .base_worker import BaseWorker
from .compliance_worker import ComplianceWorker

__all__ = ["BaseWorker", "ComplianceWorker"]
