"""
Error taxonomy shared by the server and the client.

Every error carries the HTTP status it maps to and renders as
``{"error": message}``.
"""

from __future__ import annotations

from typing import Optional


class KanbanError(Exception):
    """Базовая ошибка Kanban."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {"error": self.message}


class BadRequest(KanbanError):
    """Missing or malformed input (no uploaded file, no board id)."""

    status_code = 400


class NotFound(KanbanError):
    """Referenced task is absent from the board's task list."""

    status_code = 404


class InternalFailure(KanbanError):
    """Storage read/write or decode failure."""

    status_code = 500
