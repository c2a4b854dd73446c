"""
Task mutations for a board.

Использование:
    from kanban_board.tasks import BoardStore, JsonFileStore, TaskService

    service = TaskService(BoardStore(JsonFileStore(data_dir)), uploads)

    task = service.create_task({"title": "A", "boardId": "b1", "columnId": "c1"})
    service.move_task(task.id, "b1", "c2", "s2", 5)
    service.delete_task("b1", task.id)

Every mutation loads the board's whole task list, changes it and writes the
whole list back. Tasks are found by id only; field values are not validated.
"""

from __future__ import annotations

import logging
from typing import Any, BinaryIO, Callable, Dict, List, Optional, Tuple

from ..errors import BadRequest, NotFound
from .models import Attachment, Board, Note, Task, utcnow
from .storage import BoardStore, UploadStore

logger = logging.getLogger(__name__)


class TaskService:
    """Операции над задачами доски."""

    def __init__(
        self,
        store: BoardStore,
        uploads: Optional[UploadStore] = None,
        clock: Callable[[], str] = utcnow,
    ):
        self.store = store
        self.uploads = uploads
        self.clock = clock

    # ------------------------------------------------------------------ reads

    def get_board(self, board_id: str) -> Optional[Board]:
        return self.store.get_board(board_id)

    def get_tasks(self, board_id: str) -> List[Task]:
        return self.store.get_tasks(board_id)

    # -------------------------------------------------------------- mutations

    def create_task(self, fields: Dict[str, Any]) -> Task:
        """
        Создать задачу.

        Args:
            fields: title, description, boardId, columnId, swimlaneId, order

        Returns:
            Созданная Task
        """
        board_id = _require_board_id(fields.get("boardId"))
        tasks = self.store.get_tasks(board_id)

        task = Task.create(
            title=fields.get("title") or "",
            description=fields.get("description") or "",
            board_id=board_id,
            column_id=fields.get("columnId") or "",
            swimlane_id=fields.get("swimlaneId") or "",
            order=fields.get("order") or 0,
            now=self.clock(),
        )
        tasks.append(task)
        self.store.save_tasks(board_id, tasks)

        logger.info("Created task %s on board %s", task.id, board_id)
        return task

    def update_task(self, task_id: str, changes: Dict[str, Any]) -> Task:
        """
        Обновить задачу частичными данными.

        Args:
            task_id: ID задачи
            changes: поля задачи (camelCase) и boardId

        Returns:
            Обновлённая Task
        """
        board_id = _require_board_id(changes.get("boardId"))
        tasks = self.store.get_tasks(board_id)
        index, current = _find(tasks, task_id)

        updated = current.merged(changes, now=self.clock())
        tasks[index] = updated
        self.store.save_tasks(board_id, tasks)

        logger.info("Updated task %s on board %s", task_id, board_id)
        return updated

    def delete_task(self, board_id: str, task_id: str) -> None:
        board_id = _require_board_id(board_id)
        tasks = self.store.get_tasks(board_id)
        index, _ = _find(tasks, task_id)

        del tasks[index]
        self.store.save_tasks(board_id, tasks)

        logger.info("Deleted task %s from board %s", task_id, board_id)

    def move_task(
        self,
        task_id: str,
        board_id: Optional[str],
        column_id: str,
        swimlane_id: str,
        order: int,
    ) -> Task:
        """
        Переместить задачу в колонку/дорожку.

        Меняются только columnId, swimlaneId, order и updated. Порядок
        остальных задач не пересчитывается.
        """
        board_id = _require_board_id(board_id)
        tasks = self.store.get_tasks(board_id)
        index, current = _find(tasks, task_id)

        moved = current.moved(column_id, swimlane_id, order, now=self.clock())
        tasks[index] = moved
        self.store.save_tasks(board_id, tasks)

        logger.info(
            "Moved task %s on board %s to %s/%s (order %s)",
            task_id, board_id, column_id, swimlane_id, order,
        )
        return moved

    def add_note(self, task_id: str, board_id: Optional[str], text: str) -> Note:
        board_id = _require_board_id(board_id)
        tasks = self.store.get_tasks(board_id)
        _, task = _find(tasks, task_id)

        note = Note.create(text or "", timestamp=self.clock())
        task.notes.append(note)
        self.store.save_tasks(board_id, tasks)

        logger.info("Added note %s to task %s", note.id, task_id)
        return note

    def add_attachment(
        self,
        task_id: str,
        board_id: Optional[str],
        file_name: Optional[str],
        stream: Optional[BinaryIO],
    ) -> Attachment:
        """
        Прикрепить загруженный файл к задаче.

        Файл сохраняется под новым именем (uuid + расширение) только после
        того, как задача найдена.
        """
        if stream is None or not file_name:
            raise BadRequest("No file uploaded")
        board_id = _require_board_id(board_id)
        if self.uploads is None:
            raise RuntimeError("TaskService has no upload store configured")

        tasks = self.store.get_tasks(board_id)
        _, task = _find(tasks, task_id)

        stored_name = self.uploads.save(file_name, stream)
        attachment = Attachment.create(stored_name, file_name, uploaded_at=self.clock())
        task.attachments.append(attachment)
        self.store.save_tasks(board_id, tasks)

        logger.info("Attached %s (%s) to task %s", file_name, stored_name, task_id)
        return attachment


def _require_board_id(board_id: Optional[str]) -> str:
    if not isinstance(board_id, str) or not board_id:
        raise BadRequest("Invalid board ID")
    return board_id


def _find(tasks: List[Task], task_id: str) -> Tuple[int, Task]:
    for index, task in enumerate(tasks):
        if task.id == task_id:
            return index, task
    raise NotFound("Task not found")
