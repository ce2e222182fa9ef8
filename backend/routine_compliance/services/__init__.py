"""
Services for the routine compliance engine.

Available Services:
- ComplianceService / ComplianceClassifier: completion state machine
  (compliance_service.py)
- RegenerationCoordinator: delete-then-regenerate protocol
  (regeneration_service.py)
- scheduling: deadline calculation, frequency matching, window generation
- logger: loguru-backed service loggers
"""
