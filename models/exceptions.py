"""
Exception hierarchy for the production control core.

Model field validation keeps raising ``ValueError``; the classes below cover
the operational failures that callers are expected to handle:

    - InvalidTransition: a job status change the lifecycle policy rejects
    - StorageError: the entity store failed a list/create/update call
    - RecommendationFailure: the rescheduling engine call failed
        - TransportError: the engine could not be reached or errored
        - SchemaViolation: the engine answered with a non-conforming payload
"""


class ProductionControlError(Exception):
    """Base class for all production control errors."""


class InvalidTransition(ProductionControlError):
    """Raised when a job status change is not allowed."""

    def __init__(self, job_id: str, current: str, requested: str, reason: str = ""):
        self.job_id = job_id
        self.current = current
        self.requested = requested
        self.reason = reason
        message = f"Job {job_id}: cannot move from '{current}' to '{requested}'"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class StorageError(ProductionControlError):
    """Raised when the entity store fails an operation."""


class RecommendationFailure(ProductionControlError):
    """Raised when the rescheduling engine does not produce a usable plan."""


class TransportError(RecommendationFailure):
    """The engine call itself failed (network, auth, rate limit...)."""


class SchemaViolation(RecommendationFailure):
    """The engine responded, but not with the required JSON structure."""
