"""
HTTP client for the Kanban REST API.

Usage:
    with KanbanApiClient("http://localhost:3000") as api:
        tasks = api.get_tasks("b1")

Any ``httpx.Client`` can be injected instead of a base URL (tests pass the
FastAPI ``TestClient``).
"""

from __future__ import annotations

from typing import Any, BinaryIO, Dict, List, Optional, Union

import httpx

from ..errors import KanbanError
from ..tasks.models import Attachment, Board, Note, Task


class ApiError(KanbanError):
    """Non-2xx response from the server, carrying its status and message."""


class KanbanApiClient:
    """Синхронный клиент REST API."""

    def __init__(
        self,
        base_url: Union[str, httpx.Client] = "http://127.0.0.1:3000",
        timeout: float = 10.0,
    ):
        if isinstance(base_url, httpx.Client):
            self.http = base_url
            self._owns_http = False
        else:
            self.http = httpx.Client(base_url=base_url, timeout=timeout)
            self._owns_http = True

    def close(self) -> None:
        if self._owns_http:
            self.http.close()

    def __enter__(self) -> KanbanApiClient:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _request(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        response = self.http.request(method, url, **kwargs)
        if response.is_error:
            try:
                message = response.json().get("error") or response.reason_phrase
            except ValueError:
                message = response.text or response.reason_phrase
            raise ApiError(message, status_code=response.status_code)
        return response.json()

    # ------------------------------------------------------------------ reads

    def get_board(self, board_id: str) -> Optional[Board]:
        data = self._request("GET", f"/api/boards/{board_id}")
        board = data.get("board")
        return Board.from_dict(board) if board else None

    def get_tasks(self, board_id: str) -> List[Task]:
        data = self._request("GET", f"/api/boards/{board_id}/tasks")
        return [Task.from_dict(t) for t in data.get("tasks", [])]

    # -------------------------------------------------------------- mutations

    def create_task(self, fields: Dict[str, Any]) -> Task:
        data = self._request("POST", "/api/tasks", json=fields)
        return Task.from_dict(data["task"])

    def update_task(self, task_id: str, changes: Dict[str, Any]) -> Task:
        data = self._request("PUT", f"/api/tasks/{task_id}", json=changes)
        return Task.from_dict(data["task"])

    def delete_task(self, board_id: str, task_id: str) -> bool:
        data = self._request("DELETE", f"/api/tasks/{board_id}/{task_id}")
        return bool(data.get("success"))

    def move_task(
        self,
        task_id: str,
        board_id: str,
        column_id: str,
        swimlane_id: str,
        order: int,
    ) -> Task:
        data = self._request(
            "PATCH",
            f"/api/tasks/{task_id}/move",
            params={"boardId": board_id},
            json={"newColumnId": column_id, "newSwimlaneId": swimlane_id, "newOrder": order},
        )
        return Task.from_dict(data["task"])

    def add_note(self, task_id: str, board_id: str, text: str) -> Note:
        data = self._request(
            "POST",
            f"/api/tasks/{task_id}/notes",
            json={"text": text, "boardId": board_id},
        )
        return Note.from_dict(data["note"])

    def upload_attachment(
        self,
        task_id: str,
        board_id: str,
        file_name: str,
        content: Union[bytes, BinaryIO],
    ) -> Attachment:
        data = self._request(
            "POST",
            f"/api/tasks/{task_id}/attachments",
            params={"boardId": board_id},
            files={"file": (file_name, content)},
        )
        return Attachment.from_dict(data["attachment"])
