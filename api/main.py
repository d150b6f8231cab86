"""
FastAPI application for the notification store.

This application provides:
1. The send endpoint that clients use to push new notifications
2. Read endpoints (all, latest, one, stats, unread count)
3. Mutation endpoints (update, mark read, mark all read, delete, clear)
4. A health check

Run with:
    uvicorn api.main:create_app --factory --reload --port 3000

Then visit http://localhost:3000/docs for interactive API documentation.

Design decisions:
- The store is created once and passed into create_app(); handlers reach it
  through a FastAPI dependency, never through a global
- Handlers are async and call the store synchronously, so each request
  finishes its store access before the next one starts
- Every response carries a `success` flag; errors never expose internals
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from notification_store.config import Settings
from notification_store.data_store import NotificationStore
from notification_store.errors import NotificationNotFound, StorePersistenceError
from notification_store.models import NotificationCreate, NotificationUpdate
from notification_store.stats import compute_stats

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)-24s | %(levelname)-5s | %(message)s",
    datefmt="%H:%M:%S",
)

logger = logging.getLogger("notification_api")

SERVICE_NAME = "notification-store"


def get_store(request: Request) -> NotificationStore:
    """The store this application was built with."""
    return request.app.state.store


router = APIRouter()


# =============================================================================
# Health Check
# =============================================================================

@router.get("/health", tags=["Health"])
async def health_check():
    """Liveness check."""
    return {
        "success": True,
        "status": "healthy",
        "service": SERVICE_NAME,
        "message": "Notification service is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# =============================================================================
# Send
# =============================================================================

@router.post(
    "/send-notification",
    status_code=status.HTTP_201_CREATED,
    tags=["Notifications"],
)
async def send_notification(
    payload: Optional[NotificationCreate] = None,
    store: NotificationStore = Depends(get_store),
):
    """
    Store a notification pushed by a client.

    Missing fields are defaulted. The server assigns `id` and `timestamp`
    and marks the record as notified.
    """
    fields = payload.model_dump(exclude_unset=True) if payload else {}
    notification = store.create(fields)
    logger.info(f"Notification {notification.id} received and saved")
    return {
        "success": True,
        "message": "Notification received and saved",
        "notification": notification.to_json(),
    }


# =============================================================================
# Reads
# =============================================================================

@router.get("/notifications", tags=["Notifications"])
async def list_notifications(store: NotificationStore = Depends(get_store)):
    """All notifications in insertion order."""
    notifications = store.list()
    logger.info(f"Found {len(notifications)} notifications")
    return {
        "success": True,
        "count": len(notifications),
        "notifications": [n.to_json() for n in notifications],
    }


@router.get("/notifications/latest", tags=["Notifications"])
async def get_latest_notification(store: NotificationStore = Depends(get_store)):
    """The most recently added notification; 404 when there are none."""
    notification = store.get_latest()
    logger.info(f"Latest notification is {notification.id}")
    return {"success": True, "notification": notification.to_json()}


@router.get("/notifications/stats", tags=["Notifications"])
async def get_notification_stats(store: NotificationStore = Depends(get_store)):
    """Counts by delivery status and type."""
    stats = compute_stats(store.list())
    logger.info(f"Statistics: total={stats.total} notified={stats.notified}")
    return {"success": True, "stats": stats.to_json()}


@router.get("/notifications/unread-count", tags=["Notifications"])
async def get_unread_count(store: NotificationStore = Depends(get_store)):
    """Number of notifications not yet marked as notified."""
    return {"success": True, "unreadCount": store.count_unnotified()}


@router.get("/notifications/{notification_id}", tags=["Notifications"])
async def get_notification(notification_id: str, store: NotificationStore = Depends(get_store)):
    return {"success": True, "notification": store.find(notification_id).to_json()}


# =============================================================================
# Updates
# =============================================================================

@router.patch("/notifications/read-all", tags=["Notifications"])
async def mark_all_notifications_read(store: NotificationStore = Depends(get_store)):
    count = store.mark_all_read()
    return {
        "success": True,
        "message": f"Marked {count} notifications as read",
        "count": count,
    }


@router.patch("/notifications/{notification_id}", tags=["Notifications"])
async def update_notification(
    notification_id: str,
    payload: Optional[NotificationUpdate] = None,
    store: NotificationStore = Depends(get_store),
):
    """
    Partially update a notification.

    Only the fields present in the body are changed. `id` and `timestamp`
    are ignored if supplied.
    """
    fields = payload.to_fields() if payload else {}
    notification = store.update(notification_id, fields)
    return {
        "success": True,
        "message": f"Notification {notification_id} updated successfully",
        "notification": notification.to_json(),
    }


@router.patch("/notifications/{notification_id}/read", tags=["Notifications"])
async def mark_notification_read(
    notification_id: str,
    store: NotificationStore = Depends(get_store),
):
    notification = store.mark_read(notification_id)
    return {
        "success": True,
        "message": f"Notification {notification_id} marked as read",
        "notification": notification.to_json(),
    }


# =============================================================================
# Deletes
# =============================================================================

@router.delete("/notifications/{notification_id}", tags=["Notifications"])
async def delete_notification(
    notification_id: str,
    store: NotificationStore = Depends(get_store),
):
    store.delete(notification_id)
    return {
        "success": True,
        "message": f"Notification {notification_id} deleted successfully",
    }


@router.delete("/notifications", tags=["Notifications"])
async def clear_notifications(store: NotificationStore = Depends(get_store)):
    count = store.clear()
    return {
        "success": True,
        "message": f"Cleared {count} notifications",
        "count": count,
    }


# =============================================================================
# Error handling
# =============================================================================

def _failure(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, **extra},
    )


async def _handle_not_found(request: Request, exc: NotificationNotFound) -> JSONResponse:
    logger.warning(f"{request.method} {request.url.path}: {exc}")
    return _failure(status.HTTP_404_NOT_FOUND, str(exc))


async def _handle_persistence_error(request: Request, exc: StorePersistenceError) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path}: {exc}")
    return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [".".join(str(part) for part in err["loc"]) for err in exc.errors()]
    logger.warning(f"{request.method} {request.url.path}: invalid payload {fields}")
    return _failure(
        422,
        "Invalid notification payload",
        errors=fields,
    )


async def _handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Unknown path and unsupported method on a known path look the same to callers
    if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
        return _failure(status.HTTP_404_NOT_FOUND, "Route not found")
    return _failure(exc.status_code, str(exc.detail))


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


# =============================================================================
# Application factory
# =============================================================================

def create_app(
    store: Optional[NotificationStore] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Build the application around a store.

    Args:
        store: Store to serve. Built from `settings` when omitted.
        settings: Defaults to Settings.from_env(), which also applies
            NOTIFY_LOG_LEVEL to the root logger. Nothing is built at
            import time; servers use this function as a uvicorn factory.
    """
    if settings is None:
        # Only an environment-configured app adjusts process-wide logging
        settings = Settings.from_env()
        logging.getLogger().setLevel(settings.log_level)
    if store is None:
        store = NotificationStore(db_path=settings.db_path, seed=settings.seed)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application startup and shutdown."""
        logger.info(f"Starting notification service with {len(store)} notifications")
        yield
        logger.info("Shutting down")

    app = FastAPI(
        title="Notification Store",
        description="""
        CRUD-style REST service over a flat JSON notification database.

        Clients push notifications with `/send-notification` and poll
        `/notifications/latest`.
        """,
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.settings = settings

    app.add_exception_handler(NotificationNotFound, _handle_not_found)
    app.add_exception_handler(StorePersistenceError, _handle_persistence_error)
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, _handle_http_error)
    app.add_exception_handler(Exception, _handle_unexpected_error)

    app.include_router(router)
    return app
