"""Errors raised by the task engine and the routes.

Each error carries the HTTP status it maps to; the handlers registered in
``taskboard.main`` render them as ``{"detail": message}``.
"""
from typing import Optional


class TaskboardError(Exception):
    status_code = 500

    def __init__(self, message: str, headers: Optional[dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.headers = headers


class ValidationError(TaskboardError):
    status_code = 400


class AuthenticationError(TaskboardError):
    status_code = 401

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class AuthorizationError(TaskboardError):
    status_code = 403


class NotFoundError(TaskboardError):
    status_code = 404


class ConflictError(TaskboardError):
    status_code = 409


class StoreError(TaskboardError):
    status_code = 500
