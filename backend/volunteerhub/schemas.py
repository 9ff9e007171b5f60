"""Request and response schemas shared by the API and the client library.

Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

NotificationType = Literal[
    "new_task",
    "task_reminder",
    "task_completed",
    "task_assigned",
    "general",
]
NotificationStatus = Literal["unread", "read"]


class CamelModel(BaseModel):
    """Base schema: camelCase aliases, accepts either spelling on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_wire(self) -> dict:
        """Dump as a JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class GeoPoint(CamelModel):
    """GeoJSON point."""

    type: Literal["Point"] = "Point"
    coordinates: list[float] = Field(..., min_length=2, max_length=2)

    @property
    def longitude(self) -> float:
        return self.coordinates[0]

    @property
    def latitude(self) -> float:
        return self.coordinates[1]


# --- Task Schemas ---

class TaskCreate(CamelModel):
    """Create a task.

    ``title``, ``description`` and ``time`` are presence-checked by the
    service so that a missing field is reported as a ValidationError.
    """

    title: str | None = None
    description: str | None = None
    time: str | None = None
    location: GeoPoint | None = None
    location_label: str = ""
    signed_up: bool = False
    points_reward: int = Field(default=1, ge=1)
    estimated_hours: int = Field(default=1, ge=1)
    created_by: str | None = None
    user_id: str | None = None

    # Denormalized into the broadcast notification
    organization_name: str | None = None
    organization_image: str | None = None


class TaskUpdate(CamelModel):
    """Partial task update; only supplied fields are merged."""

    title: str | None = None
    description: str | None = None
    time: str | None = None
    location: GeoPoint | None = None
    location_label: str | None = None
    signed_up: bool | None = None
    completed: bool | None = None
    points_reward: int | None = Field(None, ge=1)
    estimated_hours: int | None = Field(None, ge=1)


class TaskResponse(CamelModel):
    """Task as returned by the API."""

    id: str
    title: str
    description: str
    time: str
    location: GeoPoint | None = None
    location_label: str = ""
    signed_up: bool = False
    completed: bool = False
    points_reward: int = 1
    estimated_hours: int = 1
    created_by: str = "unknown"
    completed_at: datetime | None = None
    completed_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TaskCompleteRequest(CamelModel):
    """Body of ``PATCH /tasks/{id}/complete``."""

    user_id: str = Field(..., min_length=1)
    feedback: str | None = None
    points_reward: int | None = None
    user_name: str | None = None
    user_image: str | None = None


# --- Completion Archive Schemas ---

class CompletedTaskCreate(CamelModel):
    """Append an archive entry directly."""

    user_id: str | None = None
    task_id: str | None = None
    title: str | None = None
    description: str | None = None
    time: str | None = None
    location: GeoPoint | None = None
    location_label: str = ""
    signed_up: bool = False
    feedback: str = ""
    points_reward: int = Field(default=1, ge=1)
    estimated_hours: int = Field(default=1, ge=1)
    completed_at: datetime | None = None


class CompletedTaskResponse(CamelModel):
    """Archive entry as returned by the API."""

    id: str
    user_id: str
    task_id: str
    title: str
    description: str
    time: str
    location: GeoPoint | None = None
    location_label: str = ""
    signed_up: bool = False
    feedback: str = ""
    points_reward: int = 1
    estimated_hours: int = 1
    completed_at: datetime


class TaskCompleteResponse(CamelModel):
    """Result of the completion transition."""

    success: bool = True
    message: str = "Task completed successfully"
    completed_task: CompletedTaskResponse
    task_updated: bool


# --- Notification Schemas ---

class OrganizationInfo(CamelModel):
    name: str | None = None
    image: str | None = None


class TaskInfo(CamelModel):
    title: str | None = None
    location: str | None = None
    time: str | None = None


class CompletedBy(CamelModel):
    id: str
    name: str = "Unknown User"
    image: str | None = None


class NotificationCreate(CamelModel):
    """Create a notification (internal and test use)."""

    user_id: str | None = None
    title: str | None = None
    message: str | None = None
    type: NotificationType = "general"
    status: NotificationStatus = "unread"
    task_id: str | None = None
    organization_info: OrganizationInfo | None = None
    task_info: TaskInfo | None = None
    completed_by: CompletedBy | None = None


class NotificationUpdate(CamelModel):
    """Body of ``PATCH /notifications/{id}``."""

    status: NotificationStatus


class NotificationResponse(CamelModel):
    """Notification as returned by the API and pushed on the channel."""

    id: str
    user_id: str
    title: str
    message: str
    type: NotificationType = "general"
    status: NotificationStatus = "unread"
    task_id: str | None = None
    organization_info: OrganizationInfo | None = None
    task_info: TaskInfo | None = None
    completed_by: CompletedBy | None = None
    created_at: datetime
    updated_at: datetime | None = None


class NotificationListResponse(CamelModel):
    """Inbox listing."""

    success: bool = True
    data: list[NotificationResponse]


class MessageResponse(CamelModel):
    message: str
