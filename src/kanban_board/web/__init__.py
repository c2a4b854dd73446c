"""
Web module - FastAPI REST API for boards and tasks.
"""

from .app import (
    create_app,
    KanbanWebApp,
    run_server,
)

__all__ = [
    "create_app",
    "KanbanWebApp",
    "run_server",
]
