"""
FastAPI Kanban server.

REST API для досок, задач, заметок и вложений.

Использование:
    from kanban_board.web import run_server

    run_server(port=3000)

Или через CLI:
    kanban serve --port 3000
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Dict, Optional

import uvicorn
from fastapi import Body, FastAPI, File, Query, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..config import AppConfig, load_config
from ..errors import BadRequest, InternalFailure, KanbanError
from ..tasks.service import TaskService
from ..tasks.storage import BoardStore, JsonFileStore, UploadStore

logger = logging.getLogger(__name__)


class TaskCreate(BaseModel):
    """Body of POST /api/tasks. Values are passed through unchecked."""
    title: Any = None
    description: Any = None
    boardId: Any = None
    columnId: Any = None
    swimlaneId: Any = None
    order: Any = None


class TaskMove(BaseModel):
    """Body of PATCH /api/tasks/{id}/move."""
    newColumnId: Any = None
    newSwimlaneId: Any = None
    newOrder: Any = None
    boardId: Any = None


class NoteCreate(BaseModel):
    """Body of POST /api/tasks/{id}/notes."""
    text: Any = None
    boardId: Any = None


def guarded(message: str):
    """
    Decorator: turn unexpected failures of a handler into InternalFailure.

    KanbanError subclasses pass through untouched so their status survives.
    """
    def decorator(handler):
        @wraps(handler)
        def wrapper(*args, **kwargs):
            try:
                return handler(*args, **kwargs)
            except KanbanError:
                raise
            except Exception:
                logger.exception(message)
                raise InternalFailure(message)
        return wrapper
    return decorator


class KanbanWebApp:
    """
    FastAPI приложение Kanban.

    Все ошибки отдаются как {"error": message} со статусом 400, 404 или 500.
    """

    def __init__(
        self,
        service: Optional[TaskService] = None,
        config: Optional[AppConfig] = None
    ):
        self.config = config or load_config()
        self.config.ensure_directories()
        self.service = service or self._default_service()
        self.app = self._create_app()

    def _default_service(self) -> TaskService:
        return TaskService(
            BoardStore(JsonFileStore(self.config.data_path)),
            UploadStore(self.config.uploads_path),
        )

    def _create_app(self) -> FastAPI:
        """Создать FastAPI приложение."""
        app = FastAPI(
            title="Kanban Board",
            description="Boards, tasks, notes and attachments",
            version="1.0.0"
        )

        # CORS
        app.add_middleware(
            CORSMiddleware,
            allow_origins=self.config.cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization"],
        )

        self._setup_error_handlers(app)
        self._setup_routes(app)

        uploads = self.service.uploads
        uploads_dir = uploads.uploads_dir if uploads else self.config.uploads_path
        uploads_dir.mkdir(parents=True, exist_ok=True)
        app.mount("/uploads", StaticFiles(directory=str(uploads_dir)), name="uploads")

        return app

    def _setup_error_handlers(self, app: FastAPI) -> None:
        @app.exception_handler(KanbanError)
        async def kanban_error(request, exc: KanbanError):
            return JSONResponse(exc.to_dict(), status_code=exc.status_code)

        @app.exception_handler(StarletteHTTPException)
        async def http_error(request, exc: StarletteHTTPException):
            return JSONResponse(
                {"error": exc.detail},
                status_code=exc.status_code,
                headers=getattr(exc, "headers", None),
            )

        @app.exception_handler(RequestValidationError)
        async def validation_error(request, exc: RequestValidationError):
            errors = exc.errors()
            detail = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
            return JSONResponse({"error": detail}, status_code=400)

    def _setup_routes(self, app: FastAPI) -> None:
        """Настроить маршруты."""
        service = self.service

        @app.get("/api/health")
        async def health():
            """Health check."""
            return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

        @app.get("/api/boards/{board_id}")
        @guarded("Failed to read board data")
        def get_board(board_id: str):
            board = service.get_board(board_id)
            # absent board document is served as an empty object
            return {"board": board.to_dict() if board else {}}

        @app.get("/api/boards/{board_id}/tasks")
        @guarded("Failed to read tasks data")
        def get_tasks(board_id: str):
            return {"tasks": [t.to_dict() for t in service.get_tasks(board_id)]}

        @app.post("/api/tasks")
        @guarded("Failed to create task")
        def create_task(body: TaskCreate):
            task = service.create_task(body.model_dump())
            return {"task": task.to_dict()}

        @app.put("/api/tasks/{task_id}")
        @guarded("Failed to update task")
        def update_task(task_id: str, changes: Dict[str, Any] = Body(...)):
            task = service.update_task(task_id, changes)
            return {"task": task.to_dict()}

        @app.delete("/api/tasks/{board_id}/{task_id}")
        @guarded("Failed to delete task")
        def delete_task(board_id: str, task_id: str):
            service.delete_task(board_id, task_id)
            return {"success": True}

        @app.patch("/api/tasks/{task_id}/move")
        @guarded("Failed to move task")
        def move_task(task_id: str, body: TaskMove, boardId: Optional[str] = Query(None)):
            task = service.move_task(
                task_id,
                boardId or body.boardId,
                body.newColumnId,
                body.newSwimlaneId,
                body.newOrder,
            )
            return {"task": task.to_dict()}

        @app.post("/api/tasks/{task_id}/notes")
        @guarded("Failed to add note")
        def add_note(task_id: str, body: NoteCreate, boardId: Optional[str] = Query(None)):
            note = service.add_note(task_id, boardId or body.boardId, body.text)
            return {"note": note.to_dict()}

        @app.post("/api/tasks/{task_id}/attachments")
        @guarded("Failed to upload file")
        def upload_attachment(
            task_id: str,
            file: Optional[UploadFile] = File(None),
            boardId: Optional[str] = Query(None),
        ):
            if file is None:
                raise BadRequest("No file uploaded")
            try:
                attachment = service.add_attachment(task_id, boardId, file.filename, file.file)
            finally:
                file.file.close()
            return {"attachment": attachment.to_dict()}

    def run(self) -> None:
        """Запустить сервер."""
        logger.info("Starting Kanban server on %s:%s", self.config.host, self.config.port)
        uvicorn.run(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level.lower(),
        )


def create_app(
    config: Optional[AppConfig] = None,
    service: Optional[TaskService] = None
) -> FastAPI:
    """
    Создать FastAPI приложение.

    Args:
        config: Конфигурация (опционально)
        service: TaskService (опционально, по умолчанию JSON-файлы из config)

    Returns:
        FastAPI приложение
    """
    return KanbanWebApp(service, config).app


def run_server(config: Optional[AppConfig] = None) -> None:
    """Запустить веб-сервер с конфигурацией из ~/.kanban-board."""
    KanbanWebApp(config=config).run()
