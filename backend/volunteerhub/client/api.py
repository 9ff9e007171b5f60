"""HTTP client for the VolunteerHub API."""

from typing import Any

import httpx
import structlog

from volunteerhub.client.config import get_client_settings
from volunteerhub.schemas import (
    CamelModel,
    CompletedTaskCreate,
    CompletedTaskResponse,
    NotificationCreate,
    NotificationListResponse,
    NotificationResponse,
    TaskCompleteRequest,
    TaskCompleteResponse,
    TaskCreate,
    TaskResponse,
    TaskUpdate,
)

logger = structlog.get_logger()


class APIError(Exception):
    """A request failed at the transport level or returned an error status."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def _body(model: CamelModel, exclude_unset: bool = False) -> dict:
    return model.model_dump(mode="json", by_alias=True, exclude_unset=exclude_unset)


class VolunteerHubClient:
    """Thin async wrapper over the REST endpoints.

    Responses are parsed into the shared schemas. Every failure surfaces as
    ``APIError``; nothing is retried.
    """

    def __init__(
        self,
        base_url: str | None = None,
        http: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ):
        settings = get_client_settings()
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(
            base_url=base_url or settings.api_url,
            timeout=timeout or settings.request_timeout,
        )

    async def __aenter__(self) -> "VolunteerHubClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    async def _request(self, method: str, path: str, json: dict | None = None) -> Any:
        try:
            response = await self.http.request(method, path, json=json)
        except httpx.HTTPError as e:
            logger.warning("api_request_failed", method=method, path=path, error=str(e))
            raise APIError(f"{method} {path} failed: {e}") from e

        if response.is_error:
            try:
                message = response.json().get("message") or response.text
            except ValueError:
                message = response.text
            logger.warning(
                "api_request_rejected",
                method=method,
                path=path,
                status_code=response.status_code,
                error=message,
            )
            raise APIError(message, status_code=response.status_code)

        return response.json()

    # --- Tasks ---

    async def list_tasks(self) -> list[TaskResponse]:
        data = await self._request("GET", "/tasks")
        return [TaskResponse.model_validate(item) for item in data]

    async def create_task(self, task: TaskCreate) -> TaskResponse:
        data = await self._request("POST", "/tasks", json=_body(task, exclude_unset=True))
        return TaskResponse.model_validate(data)

    async def update_task(self, task_id: str, updates: TaskUpdate) -> TaskResponse:
        data = await self._request(
            "PATCH", f"/tasks/{task_id}", json=_body(updates, exclude_unset=True)
        )
        return TaskResponse.model_validate(data)

    async def delete_task(self, task_id: str) -> str:
        data = await self._request("DELETE", f"/tasks/{task_id}")
        return data["message"]

    async def complete_task(
        self, task_id: str, request: TaskCompleteRequest
    ) -> TaskCompleteResponse:
        data = await self._request("PATCH", f"/tasks/{task_id}/complete", json=_body(request))
        return TaskCompleteResponse.model_validate(data)

    async def list_completed_tasks(self) -> list[TaskResponse]:
        data = await self._request("GET", "/tasks/completed")
        return [TaskResponse.model_validate(item) for item in data]

    # --- Completion archive ---

    async def record_completion(self, entry: CompletedTaskCreate) -> CompletedTaskResponse:
        data = await self._request("POST", "/completed-tasks", json=_body(entry))
        return CompletedTaskResponse.model_validate(data)

    async def list_completions(self) -> list[CompletedTaskResponse]:
        data = await self._request("GET", "/completed-tasks")
        return [CompletedTaskResponse.model_validate(item) for item in data]

    async def list_user_completions(self, user_id: str) -> list[CompletedTaskResponse]:
        data = await self._request("GET", f"/tasks/completed/{user_id}")
        return [CompletedTaskResponse.model_validate(item) for item in data]

    # --- Notifications ---

    async def list_notifications(self, user_id: str) -> list[NotificationResponse]:
        data = await self._request("GET", f"/notifications/{user_id}")
        return NotificationListResponse.model_validate(data).data

    async def mark_notification_read(self, notification_id: str) -> NotificationResponse:
        data = await self._request(
            "PATCH", f"/notifications/{notification_id}", json={"status": "read"}
        )
        return NotificationResponse.model_validate(data)

    async def create_notification(self, notification: NotificationCreate) -> NotificationResponse:
        data = await self._request(
            "POST", "/notifications", json=_body(notification, exclude_unset=True)
        )
        return NotificationResponse.model_validate(data)

    async def delete_notification(self, notification_id: str) -> str:
        data = await self._request("DELETE", f"/notifications/{notification_id}")
        return data["message"]
