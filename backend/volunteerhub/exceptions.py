"""Domain exceptions.

Every error raised by the service layer derives from ``VolunteerHubError`` and
carries an HTTP status so the API layer can render it without knowing the
concrete type.
"""

from typing import Optional


class VolunteerHubError(Exception):
    """Base exception for task and notification errors."""

    status_code: int = 500

    def __init__(self, message: str, code: str = "VOLUNTEERHUB_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(VolunteerHubError):
    """A required field is missing or a value is not accepted."""

    status_code = 400

    def __init__(self, message: str, fields: Optional[list[str]] = None):
        self.fields = fields or []
        super().__init__(message=message, code="VALIDATION_ERROR")


class NotFoundError(VolunteerHubError):
    """Operation on an id that does not exist."""

    status_code = 404

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(message=f"{entity} not found", code="NOT_FOUND")


class ConflictError(VolunteerHubError):
    """The record changed underneath a conditional update."""

    status_code = 409

    def __init__(self, message: str):
        super().__init__(message=message, code="CONFLICT")


class PersistenceError(VolunteerHubError):
    """The datastore rejected or failed an operation."""

    status_code = 500

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(message=f"{operation} failed: {message}", code="PERSISTENCE_ERROR")


class ChannelPublishError(VolunteerHubError):
    """Pushing an event on the fan-out channel failed.

    Never surfaced to API callers; the persisted notification is authoritative.
    """

    def __init__(self, topic: str, message: str):
        self.topic = topic
        super().__init__(message=f"[{topic}] {message}", code="CHANNEL_PUBLISH_ERROR")
