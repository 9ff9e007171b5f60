"""API router package."""

from fastapi import APIRouter

from volunteerhub.api import completed_tasks, health, notifications, tasks

router = APIRouter()

# Include all API routers
router.include_router(health.router, tags=["Health"])
router.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])
router.include_router(completed_tasks.router, prefix="/completed-tasks", tags=["Completed Tasks"])
router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
