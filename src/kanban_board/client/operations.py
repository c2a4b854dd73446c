"""
Reversible task mutations for the client cache.

Each operation goes through the same steps:

    op.apply(tasks)         # snapshot + optimistic change
    result = op.send(api)   # HTTP call
    op.commit(tasks, result)    # on success: take the server copy
    op.rollback(tasks)          # on failure: restore the snapshot
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from typing import Any, BinaryIO, Dict, List, Optional, Union

from ..errors import NotFound
from ..tasks.models import Attachment, Note, Task, utcnow
from .api import KanbanApiClient

PENDING_PREFIX = "pending-"


def pending_id() -> str:
    return f"{PENDING_PREFIX}{uuid.uuid4()}"


def index_of(tasks: List[Task], task_id: str) -> int:
    for index, task in enumerate(tasks):
        if task.id == task_id:
            return index
    return -1


class TaskOperation(ABC):
    """Базовая обратимая операция над списком задач кэша."""

    error_message = "Failed to update tasks"

    def __init__(self, task_id: str):
        self.task_id = task_id
        self.snapshot: Optional[Task] = None
        self.index = -1

    def _capture(self, tasks: List[Task]) -> Task:
        self.index = index_of(tasks, self.task_id)
        if self.index == -1:
            raise NotFound("Task not found")
        self.snapshot = tasks[self.index].copy()
        return tasks[self.index]

    def _replace(self, tasks: List[Task], task_id: str, task: Task) -> None:
        index = index_of(tasks, task_id)
        if index == -1:
            tasks.insert(min(self.index, len(tasks)) if self.index >= 0 else len(tasks), task)
        else:
            tasks[index] = task

    @abstractmethod
    def apply(self, tasks: List[Task]) -> None:
        """Capture the snapshot and change tasks in place."""

    @abstractmethod
    def send(self, api: KanbanApiClient) -> Any:
        """Perform the server call."""

    def commit(self, tasks: List[Task], result: Any) -> None:
        if isinstance(result, Task):
            self._replace(tasks, self.task_id, result)

    def rollback(self, tasks: List[Task]) -> None:
        if self.snapshot is not None:
            self._replace(tasks, self.task_id, self.snapshot)


class CreateTask(TaskOperation):
    """Вставить временную задачу, заменить её ответом сервера."""

    error_message = "Failed to create task"

    def __init__(self, fields: Dict[str, Any]):
        super().__init__(pending_id())
        self.fields = fields

    def apply(self, tasks: List[Task]) -> None:
        self.index = len(tasks)
        tasks.append(Task(
            id=self.task_id,
            title=self.fields.get("title") or "",
            description=self.fields.get("description") or "",
            board_id=self.fields.get("boardId") or "",
            column_id=self.fields.get("columnId") or "",
            swimlane_id=self.fields.get("swimlaneId") or "",
            order=self.fields.get("order") or 0,
        ))

    def send(self, api: KanbanApiClient) -> Task:
        return api.create_task(self.fields)

    def rollback(self, tasks: List[Task]) -> None:
        index = index_of(tasks, self.task_id)
        if index != -1:
            del tasks[index]


class UpdateTask(TaskOperation):
    error_message = "Failed to update task"

    def __init__(self, task_id: str, changes: Dict[str, Any]):
        super().__init__(task_id)
        self.changes = changes

    def apply(self, tasks: List[Task]) -> None:
        current = self._capture(tasks)
        tasks[self.index] = current.merged(self.changes)

    def send(self, api: KanbanApiClient) -> Task:
        return api.update_task(self.task_id, self.changes)


class DeleteTask(TaskOperation):
    """Удалить сразу; при ошибке вернуть задачу на прежнее место."""

    error_message = "Failed to delete task"

    def __init__(self, board_id: str, task_id: str):
        super().__init__(task_id)
        self.board_id = board_id

    def apply(self, tasks: List[Task]) -> None:
        self._capture(tasks)
        del tasks[self.index]

    def send(self, api: KanbanApiClient) -> bool:
        return api.delete_task(self.board_id, self.task_id)

    def commit(self, tasks: List[Task], result: Any) -> None:
        pass


class MoveTask(TaskOperation):
    error_message = "Failed to move task"

    def __init__(self, board_id: str, task_id: str, column_id: str, swimlane_id: str, order: int):
        super().__init__(task_id)
        self.board_id = board_id
        self.column_id = column_id
        self.swimlane_id = swimlane_id
        self.order = order

    def apply(self, tasks: List[Task]) -> None:
        current = self._capture(tasks)
        tasks[self.index] = current.moved(self.column_id, self.swimlane_id, self.order)

    def send(self, api: KanbanApiClient) -> Task:
        return api.move_task(self.task_id, self.board_id, self.column_id, self.swimlane_id, self.order)


class AddNote(TaskOperation):
    error_message = "Failed to add note"

    def __init__(self, board_id: str, task_id: str, text: str):
        super().__init__(task_id)
        self.board_id = board_id
        self.text = text
        self.provisional = Note(id=pending_id(), text=text, timestamp=utcnow())

    def apply(self, tasks: List[Task]) -> None:
        task = self._capture(tasks).copy()
        task.notes.append(self.provisional)
        tasks[self.index] = task

    def send(self, api: KanbanApiClient) -> Note:
        return api.add_note(self.task_id, self.board_id, self.text)

    def commit(self, tasks: List[Task], result: Note) -> None:
        index = index_of(tasks, self.task_id)
        if index == -1:
            return
        task = tasks[index]
        task.notes = [result if n.id == self.provisional.id else n for n in task.notes]


class AddAttachment(TaskOperation):
    error_message = "Failed to add attachment"

    def __init__(self, board_id: str, task_id: str, file_name: str, content: Union[bytes, BinaryIO]):
        super().__init__(task_id)
        self.board_id = board_id
        self.file_name = file_name
        self.content = content
        self.provisional = Attachment(id=pending_id(), file_hash="", file_name=file_name)

    def apply(self, tasks: List[Task]) -> None:
        task = self._capture(tasks).copy()
        task.attachments.append(self.provisional)
        tasks[self.index] = task

    def send(self, api: KanbanApiClient) -> Attachment:
        return api.upload_attachment(self.task_id, self.board_id, self.file_name, self.content)

    def commit(self, tasks: List[Task], result: Attachment) -> None:
        index = index_of(tasks, self.task_id)
        if index == -1:
            return
        task = tasks[index]
        task.attachments = [result if a.id == self.provisional.id else a for a in task.attachments]
