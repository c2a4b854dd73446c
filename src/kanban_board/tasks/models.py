"""
Board and task models.

Модели данных доски: Board, Column, Swimlane, Task, Note, Attachment.
Сериализуются в camelCase JSON, как хранятся на диске и передаются по API.
"""

from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def utcnow() -> str:
    """Текущее время в ISO-8601 (UTC)."""
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Column:
    """Колонка доски."""
    id: str
    name: str
    order: int = 0
    created: str = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "order": self.order, "created": self.created}

    @classmethod
    def from_dict(cls, data: dict) -> Column:
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            order=data.get("order", 0),
            created=data.get("created", ""),
        )


@dataclass
class Swimlane(Column):
    """Горизонтальная дорожка доски."""


@dataclass
class Board:
    """Доска: метаданные, колонки и дорожки."""
    id: str
    name: str
    created: str = field(default_factory=utcnow)
    columns: List[Column] = field(default_factory=list)
    swimlanes: List[Swimlane] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "created": self.created,
            "columns": [c.to_dict() for c in self.columns],
            "swimlanes": [s.to_dict() for s in self.swimlanes],
        }

    @classmethod
    def from_dict(cls, data: dict) -> Board:
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            created=data.get("created", ""),
            columns=[Column.from_dict(c) for c in data.get("columns", [])],
            swimlanes=[Swimlane.from_dict(s) for s in data.get("swimlanes", [])],
        )

    @classmethod
    def create(
        cls,
        name: str,
        columns: Optional[List[str]] = None,
        swimlanes: Optional[List[str]] = None,
        board_id: Optional[str] = None,
    ) -> Board:
        """Создать доску с колонками и дорожками в заданном порядке."""
        now = utcnow()
        return cls(
            id=board_id or new_id(),
            name=name,
            created=now,
            columns=[Column(new_id(), n, i, now) for i, n in enumerate(columns or [])],
            swimlanes=[Swimlane(new_id(), n, i, now) for i, n in enumerate(swimlanes or [])],
        )

    def sorted_columns(self) -> List[Column]:
        return sorted(self.columns, key=lambda c: c.order)

    def sorted_swimlanes(self) -> List[Swimlane]:
        return sorted(self.swimlanes, key=lambda s: s.order)


@dataclass
class Note:
    """Заметка к задаче."""
    id: str
    text: str
    timestamp: str = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {"id": self.id, "timestamp": self.timestamp, "text": self.text}

    @classmethod
    def from_dict(cls, data: dict) -> Note:
        return cls(id=data["id"], text=data.get("text", ""), timestamp=data.get("timestamp", ""))

    @classmethod
    def create(cls, text: str, timestamp: Optional[str] = None) -> Note:
        return cls(id=new_id(), text=text, timestamp=timestamp or utcnow())


ATTACHMENT_CAPTION = "TODO caption"


@dataclass
class Attachment:
    """
    Вложение задачи.

    file_hash хранит сгенерированное имя файла в каталоге uploads,
    а не хеш содержимого.
    """
    id: str
    file_hash: str
    file_name: str
    caption: str = ATTACHMENT_CAPTION
    uploaded_at: str = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "fileHash": self.file_hash,
            "fileName": self.file_name,
            "caption": self.caption,
            "uploadedAt": self.uploaded_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Attachment:
        return cls(
            id=data["id"],
            file_hash=data.get("fileHash", ""),
            file_name=data.get("fileName", ""),
            caption=data.get("caption", ""),
            uploaded_at=data.get("uploadedAt", ""),
        )

    @classmethod
    def create(cls, stored_name: str, original_name: str, uploaded_at: Optional[str] = None) -> Attachment:
        return cls(
            id=new_id(),
            file_hash=stored_name,
            file_name=original_name,
            uploaded_at=uploaded_at or utcnow(),
        )


# wire name -> attribute name
TASK_FIELDS = {
    "id": "id",
    "title": "title",
    "description": "description",
    "boardId": "board_id",
    "columnId": "column_id",
    "swimlaneId": "swimlane_id",
    "created": "created",
    "updated": "updated",
    "order": "order",
    "notes": "notes",
    "attachments": "attachments",
}


@dataclass
class Task:
    """Задача на доске."""
    id: str
    title: str
    description: str = ""
    board_id: str = ""
    column_id: str = ""
    swimlane_id: str = ""
    created: str = field(default_factory=utcnow)
    updated: str = field(default_factory=utcnow)
    order: int = 0
    notes: List[Note] = field(default_factory=list)
    attachments: List[Attachment] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "boardId": self.board_id,
            "columnId": self.column_id,
            "swimlaneId": self.swimlane_id,
            "created": self.created,
            "updated": self.updated,
            "order": self.order,
            "notes": [n.to_dict() for n in self.notes],
            "attachments": [a.to_dict() for a in self.attachments],
        }

    @classmethod
    def from_dict(cls, data: dict) -> Task:
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            description=data.get("description") or "",
            board_id=data.get("boardId", ""),
            column_id=data.get("columnId", ""),
            swimlane_id=data.get("swimlaneId", ""),
            created=data.get("created", ""),
            updated=data.get("updated", ""),
            order=data.get("order", 0),
            notes=[Note.from_dict(n) for n in data.get("notes") or []],
            attachments=[Attachment.from_dict(a) for a in data.get("attachments") or []],
        )

    @classmethod
    def create(
        cls,
        title: str,
        board_id: str,
        column_id: str = "",
        swimlane_id: str = "",
        order: int = 0,
        description: str = "",
        now: Optional[str] = None,
    ) -> Task:
        """Создать новую задачу: created == updated, без заметок и вложений."""
        now = now or utcnow()
        return cls(
            id=new_id(),
            title=title,
            description=description,
            board_id=board_id,
            column_id=column_id,
            swimlane_id=swimlane_id,
            created=now,
            updated=now,
            order=order,
        )

    def merged(self, changes: Dict[str, Any], now: Optional[str] = None) -> Task:
        """
        Слить частичное обновление (camelCase поля) с задачей.

        Известные поля из changes перекрывают сохранённые; id и created
        всегда берутся из текущей задачи, updated обновляется.
        """
        data = self.to_dict()
        for key, value in changes.items():
            if key in TASK_FIELDS:
                data[key] = value
        data["id"] = self.id
        data["created"] = self.created
        data["updated"] = now or utcnow()
        return Task.from_dict(data)

    def moved(self, column_id: str, swimlane_id: str, order: int, now: Optional[str] = None) -> Task:
        task = self.copy()
        task.column_id = column_id
        task.swimlane_id = swimlane_id
        task.order = order
        task.updated = now or utcnow()
        return task

    def copy(self) -> Task:
        return copy.deepcopy(self)

    def __str__(self) -> str:
        return f"[{self.id}] {self.title}"


def order_key(task: Task) -> Any:
    """Ключ сортировки по order; отсутствующий order считается нулём."""
    return task.order if task.order is not None else 0
