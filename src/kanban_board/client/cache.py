"""
Client-side mirror of one board.

Использование:
    cache = KanbanStateCache(KanbanApiClient("http://localhost:3000"))
    cache.fetch_board("b1")
    cache.fetch_tasks("b1")

    task = cache.create_task({"title": "A", "columnId": "c1", "swimlaneId": "s1"})
    cache.move_task(task.id, "c2", "s1", 3)

Mutations are applied locally before the server answers. A failed call
restores the previous state, records ``error`` and re-raises.
"""

from __future__ import annotations

import logging
from typing import Any, BinaryIO, Dict, List, Optional, Union

from ..errors import BadRequest, NotFound
from ..tasks.models import Attachment, Board, Note, Task, order_key
from .api import KanbanApiClient
from .operations import (
    AddAttachment,
    AddNote,
    CreateTask,
    DeleteTask,
    MoveTask,
    TaskOperation,
    UpdateTask,
    index_of,
)

logger = logging.getLogger(__name__)


class KanbanStateCache:
    """
    Состояние доски на клиенте.

    Поддерживает:
    - Загрузку доски и задач
    - Фильтрацию по колонке и дорожке
    - Оптимистичные изменения с откатом
    """

    def __init__(self, api: KanbanApiClient):
        self.api = api
        self.board: Optional[Board] = None
        self.board_id: Optional[str] = None
        self.tasks: List[Task] = []
        self.loading = False
        self.error: Optional[str] = None

    # ------------------------------------------------------------------ loads

    def fetch_board(self, board_id: str) -> Optional[Board]:
        self.loading = True
        try:
            self.board = self.api.get_board(board_id)
            self.board_id = board_id
            return self.board
        except Exception:
            self.error = "Failed to fetch board"
            raise
        finally:
            self.loading = False

    def fetch_tasks(self, board_id: str) -> List[Task]:
        self.loading = True
        try:
            self.tasks = self.api.get_tasks(board_id)
            self.board_id = board_id
            return self.tasks
        except Exception:
            self.error = "Failed to fetch tasks"
            raise
        finally:
            self.loading = False

    # ------------------------------------------------------------------ views

    def get_task(self, task_id: str) -> Optional[Task]:
        index = index_of(self.tasks, task_id)
        return self.tasks[index] if index != -1 else None

    def tasks_by_column(self, column_id: str) -> List[Task]:
        return [t for t in self.tasks if t.column_id == column_id]

    def tasks_by_swimlane(self, swimlane_id: str) -> List[Task]:
        return [t for t in self.tasks if t.swimlane_id == swimlane_id]

    def tasks_by_column_and_swimlane(self, column_id: str, swimlane_id: str) -> List[Task]:
        return [
            t for t in self.tasks
            if t.column_id == column_id and t.swimlane_id == swimlane_id
        ]

    # -------------------------------------------------------------- mutations

    def run(self, op: TaskOperation) -> Any:
        """
        Выполнить обратимую операцию.

        Returns:
            Результат вызова API

        Raises:
            NotFound: задачи нет в кэше (запрос не отправляется)
            ApiError / httpx.HTTPError: после отката изменений
        """
        op.apply(self.tasks)
        self.loading = True
        try:
            result = op.send(self.api)
        except Exception:
            op.rollback(self.tasks)
            self.error = op.error_message
            logger.warning("%s (task %s), local change rolled back", op.error_message, op.task_id)
            raise
        finally:
            self.loading = False

        op.commit(self.tasks, result)
        self.tasks.sort(key=order_key)
        return result

    def create_task(self, fields: Dict[str, Any]) -> Task:
        fields = dict(fields)
        if not fields.get("boardId"):
            fields["boardId"] = self._current_board_id()
        return self.run(CreateTask(fields))

    def update_task(self, task_id: str, changes: Dict[str, Any]) -> Task:
        changes = dict(changes)
        if not changes.get("boardId"):
            changes["boardId"] = self._board_id_of(task_id)
        return self.run(UpdateTask(task_id, changes))

    def delete_task(self, task_id: str) -> None:
        self.run(DeleteTask(self._board_id_of(task_id), task_id))

    def move_task(self, task_id: str, column_id: str, swimlane_id: str, order: int) -> Task:
        return self.run(MoveTask(self._board_id_of(task_id), task_id, column_id, swimlane_id, order))

    def add_note(self, task_id: str, text: str) -> Note:
        return self.run(AddNote(self._board_id_of(task_id), task_id, text))

    def add_attachment(self, task_id: str, file_name: str, content: Union[bytes, BinaryIO]) -> Attachment:
        return self.run(AddAttachment(self._board_id_of(task_id), task_id, file_name, content))

    def clear_error(self) -> None:
        self.error = None

    # ---------------------------------------------------------------- helpers

    def _current_board_id(self) -> str:
        board_id = self.board.id if self.board else self.board_id
        if not board_id:
            raise BadRequest("Invalid board ID")
        return board_id

    def _board_id_of(self, task_id: str) -> str:
        task = self.get_task(task_id)
        if task is None:
            raise NotFound("Task not found")
        return task.board_id or self._current_board_id()
