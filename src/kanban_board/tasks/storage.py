"""
Board persistence.

Документы доски хранятся по ключу в DocumentStore:
    board-{id}  -> объект Board
    tasks-{id}  -> {"tasks": [...]}

JsonFileStore пишет каждый документ в отдельный JSON-файл каталога данных,
MemoryDocumentStore держит их в словаре. Запись не атомарна: весь список
задач перезаписывается целиком.
"""

from __future__ import annotations

import json
import logging
import uuid
from pathlib import Path
from typing import BinaryIO, Dict, List, Optional, Protocol

from .models import Board, Task

logger = logging.getLogger(__name__)


class DocumentStore(Protocol):
    """Get/put JSON documents by key."""

    def get(self, key: str) -> Optional[dict]:
        """Return the document stored under key, or None if absent."""
        ...

    def put(self, key: str, document: dict) -> None:
        """Replace the document stored under key."""
        ...


class JsonFileStore:
    """One ``{key}.json`` file per document inside ``data_dir``."""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def get(self, key: str) -> Optional[dict]:
        path = self.path_for(key)
        if not path.exists():
            logger.debug("Document %s not found at %s", key, path)
            return None

        with open(path, encoding="utf-8") as f:
            return json.load(f)

    def put(self, key: str, document: dict) -> None:
        path = self.path_for(key)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(document, f, indent=2, ensure_ascii=False)
        logger.debug("Wrote document %s to %s", key, path)


class MemoryDocumentStore:
    """In-process document store."""

    def __init__(self, documents: Optional[Dict[str, dict]] = None):
        self.documents: Dict[str, dict] = {}
        for key, document in (documents or {}).items():
            self.put(key, document)

    def get(self, key: str) -> Optional[dict]:
        document = self.documents.get(key)
        # round-trip so callers never share state with the store
        return json.loads(json.dumps(document)) if document is not None else None

    def put(self, key: str, document: dict) -> None:
        self.documents[key] = json.loads(json.dumps(document))


def board_key(board_id: str) -> str:
    return f"board-{board_id}"


def tasks_key(board_id: str) -> str:
    return f"tasks-{board_id}"


class BoardStore:
    """Чтение и запись доски и её списка задач."""

    def __init__(self, documents: DocumentStore):
        self.documents = documents

    def get_board(self, board_id: str) -> Optional[Board]:
        data = self.documents.get(board_key(board_id))
        if not data:
            return None
        return Board.from_dict(data)

    def save_board(self, board: Board) -> None:
        self.documents.put(board_key(board.id), board.to_dict())

    def get_tasks(self, board_id: str) -> List[Task]:
        data = self.documents.get(tasks_key(board_id))
        if not data:
            return []
        return [Task.from_dict(t) for t in data.get("tasks", [])]

    def save_tasks(self, board_id: str, tasks: List[Task]) -> None:
        self.documents.put(tasks_key(board_id), {"tasks": [t.to_dict() for t in tasks]})
        logger.debug("Saved %d tasks for board %s", len(tasks), board_id)


class UploadStore:
    """
    Attachment files, renamed to ``uuid4 + original extension``.

    The stored name does not depend on the content, so identical uploads
    are kept as separate files.
    """

    CHUNK_SIZE = 64 * 1024

    def __init__(self, uploads_dir: Path):
        self.uploads_dir = Path(uploads_dir)
        self.uploads_dir.mkdir(parents=True, exist_ok=True)

    def new_name(self, original_name: str) -> str:
        return f"{uuid.uuid4()}{Path(original_name).suffix}"

    def save(self, original_name: str, stream: BinaryIO) -> str:
        stored_name = self.new_name(original_name)
        path = self.path(stored_name)
        with open(path, "wb") as out:
            while True:
                chunk = stream.read(self.CHUNK_SIZE)
                if not chunk:
                    break
                out.write(chunk)
        logger.debug("Stored upload %s as %s", original_name, stored_name)
        return stored_name

    def path(self, stored_name: str) -> Path:
        return self.uploads_dir / stored_name
