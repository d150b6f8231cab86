"""
HTTP API for the notification store.

This package provides the FastAPI application that exposes the
notification record store over REST:
- Send / list / latest / stats / unread-count
- Update, mark-read and mark-all-read
- Delete one and clear all
- Health check
"""

from api.main import create_app

__all__ = ["create_app"]
