"""
Workflows package for session state and control-surface operations.

Contains the session state container, the LangGraph disruption response
orchestrator, the reassignment coordinator and job management.
"""

__all__ = [
    'ProductionSession',
    'DisruptionResponseOrchestrator',
    'ReassignmentCoordinator',
    'JobManager',
]
