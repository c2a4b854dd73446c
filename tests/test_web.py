"""
Tests for web/app.py - FastAPI REST API.
"""

import inspect
import pytest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fastapi.testclient import TestClient

from kanban_board.config import AppConfig
from kanban_board.errors import InternalFailure, NotFound
from kanban_board.tasks import BoardStore, MemoryDocumentStore, TaskService, UploadStore
from kanban_board.web.app import KanbanWebApp, create_app, guarded


class TestAppCreation:

    def test_create_app_routes(self, config, service):
        app = create_app(config, service)

        routes = {r.path for r in app.routes}
        assert "/api/boards/{board_id}" in routes
        assert "/api/tasks/{task_id}/move" in routes
        assert "/uploads" in routes

    def test_default_service_uses_config_dirs(self, config):
        web = KanbanWebApp(config=config)

        assert web.service.uploads.uploads_dir == config.uploads_path
        assert config.data_path.is_dir()
        assert config.uploads_path.is_dir()

    def test_health(self, http):
        response = http.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_cors_allows_dev_origin(self, http):
        response = http.options(
            "/api/tasks",
            headers={
                "Origin": "http://localhost:9000",
                "Access-Control-Request-Method": "POST",
            },
        )

        assert response.headers["access-control-allow-origin"] == "http://localhost:9000"

    def test_unknown_route_uses_error_body(self, http):
        response = http.get("/api/nope")

        assert response.status_code == 404
        assert response.json() == {"error": "Not Found"}

    def test_wrong_method_uses_error_body(self, http):
        response = http.delete("/api/health")

        assert response.status_code == 405
        assert response.json() == {"error": "Method Not Allowed"}

    def test_storage_handlers_run_in_threadpool(self, config, service):
        app = create_app(config, service)

        endpoints = {r.path: r.endpoint for r in app.routes if r.path.startswith("/api/tasks")}
        assert endpoints
        assert not any(inspect.iscoroutinefunction(e) for e in endpoints.values())


class TestBoardRoutes:

    def test_get_board(self, http):
        response = http.get("/api/boards/b1")

        assert response.status_code == 200
        board = response.json()["board"]
        assert board["id"] == "b1"
        assert [c["id"] for c in board["columns"]] == ["c1", "c2"]

    def test_missing_board_is_empty_object(self, http):
        response = http.get("/api/boards/nope")

        assert response.status_code == 200
        assert response.json() == {"board": {}}

    def test_get_tasks_empty(self, http):
        assert http.get("/api/boards/b1/tasks").json() == {"tasks": []}

    def test_get_tasks_unknown_board(self, http):
        assert http.get("/api/boards/nope/tasks").json() == {"tasks": []}

    def test_corrupt_tasks_document_is_500(self, http, config):
        (config.data_path / "tasks-b1.json").write_text("{", encoding="utf-8")

        response = http.get("/api/boards/b1/tasks")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to read tasks data"}


class TestTaskRoutes:

    def test_create_task(self, http, task_fields):
        response = http.post("/api/tasks", json=task_fields())

        assert response.status_code == 200
        task = response.json()["task"]
        assert task["id"]
        assert task["created"] == task["updated"]
        assert task["notes"] == [] and task["attachments"] == []

        tasks = http.get("/api/boards/b1/tasks").json()["tasks"]
        assert tasks == [task]

    def test_create_task_without_board(self, http, task_fields):
        fields = task_fields()
        del fields["boardId"]

        response = http.post("/api/tasks", json=fields)

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid board ID"}

    def test_create_task_bad_body_is_400(self, http):
        response = http.post("/api/tasks", json=[1, 2])

        assert response.status_code == 400
        assert "error" in response.json()

    def test_create_task_with_null_fields(self, http):
        response = http.post("/api/tasks", json={
            "title": "A",
            "description": None,
            "order": None,
            "boardId": "b1",
        })

        assert response.status_code == 200
        task = response.json()["task"]
        assert task["description"] == ""
        assert task["order"] == 0

    def test_update_task(self, http, task_fields):
        task = http.post("/api/tasks", json=task_fields()).json()["task"]

        response = http.put(f"/api/tasks/{task['id']}", json={
            "boardId": "b1",
            "id": "other",
            "created": "1970-01-01T00:00:00+00:00",
            "title": "B",
        })

        assert response.status_code == 200
        updated = response.json()["task"]
        assert updated["id"] == task["id"]
        assert updated["created"] == task["created"]
        assert updated["updated"] > task["updated"]
        assert updated["title"] == "B"
        assert http.get("/api/boards/b1/tasks").json()["tasks"] == [updated]

    def test_update_missing_task(self, http):
        response = http.put("/api/tasks/missing", json={"boardId": "b1", "title": "x"})

        assert response.status_code == 404
        assert response.json() == {"error": "Task not found"}

    def test_delete_task(self, http, task_fields):
        task = http.post("/api/tasks", json=task_fields()).json()["task"]

        response = http.delete(f"/api/tasks/b1/{task['id']}")

        assert response.json() == {"success": True}
        assert http.get("/api/boards/b1/tasks").json()["tasks"] == []

    def test_delete_missing_task(self, http, task_fields):
        task = http.post("/api/tasks", json=task_fields()).json()["task"]

        response = http.delete("/api/tasks/b1/missing")

        assert response.status_code == 404
        assert response.json() == {"error": "Task not found"}
        assert http.get("/api/boards/b1/tasks").json()["tasks"] == [task]


class TestMoveRoute:

    def test_move_with_board_query(self, http, task_fields):
        t1 = http.post("/api/tasks", json=task_fields(title="t1")).json()["task"]
        t2 = http.post("/api/tasks", json=task_fields(title="t2")).json()["task"]

        response = http.patch(
            f"/api/tasks/{t1['id']}/move",
            params={"boardId": "b1"},
            json={"newColumnId": "c2", "newSwimlaneId": "s2", "newOrder": 5},
        )

        assert response.status_code == 200
        moved = response.json()["task"]
        assert (moved["columnId"], moved["swimlaneId"], moved["order"]) == ("c2", "s2", 5)

        tasks = {t["id"]: t for t in http.get("/api/boards/b1/tasks").json()["tasks"]}
        assert tasks[t1["id"]] == moved
        assert tasks[t2["id"]] == t2

    def test_move_to_fractional_order(self, http, task_fields):
        task = http.post("/api/tasks", json=task_fields()).json()["task"]

        response = http.patch(
            f"/api/tasks/{task['id']}/move",
            params={"boardId": "b1"},
            json={"newColumnId": "c2", "newSwimlaneId": "s1", "newOrder": 1.5},
        )

        assert response.status_code == 200
        assert response.json()["task"]["order"] == 1.5
        assert http.get("/api/boards/b1/tasks").json()["tasks"][0]["order"] == 1.5

    def test_move_with_board_in_body(self, http, task_fields):
        task = http.post("/api/tasks", json=task_fields()).json()["task"]

        response = http.patch(
            f"/api/tasks/{task['id']}/move",
            json={"newColumnId": "c2", "newSwimlaneId": "s1", "newOrder": 1, "boardId": "b1"},
        )

        assert response.status_code == 200

    def test_move_without_board(self, http, task_fields):
        task = http.post("/api/tasks", json=task_fields()).json()["task"]

        response = http.patch(
            f"/api/tasks/{task['id']}/move",
            json={"newColumnId": "c2", "newSwimlaneId": "s1", "newOrder": 1},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid board ID"}

    def test_move_missing_task(self, http):
        response = http.patch(
            "/api/tasks/missing/move",
            params={"boardId": "b1"},
            json={"newColumnId": "c2", "newSwimlaneId": "s1", "newOrder": 1},
        )

        assert response.status_code == 404


class TestNoteRoute:

    def test_add_note(self, http, task_fields):
        task = http.post("/api/tasks", json=task_fields()).json()["task"]

        response = http.post(f"/api/tasks/{task['id']}/notes", json={"text": "hi", "boardId": "b1"})

        assert response.status_code == 200
        note = response.json()["note"]
        assert note["text"] == "hi"
        stored = http.get("/api/boards/b1/tasks").json()["tasks"][0]
        assert stored["notes"] == [note]

    def test_add_note_missing_task(self, http):
        response = http.post("/api/tasks/missing/notes", json={"text": "hi", "boardId": "b1"})

        assert response.status_code == 404


class TestAttachmentRoute:

    def test_upload_and_download(self, http, task_fields):
        task = http.post("/api/tasks", json=task_fields()).json()["task"]

        response = http.post(
            f"/api/tasks/{task['id']}/attachments",
            params={"boardId": "b1"},
            files={"file": ("notes.txt", b"hello")},
        )

        assert response.status_code == 200
        attachment = response.json()["attachment"]
        assert attachment["fileName"] == "notes.txt"
        assert attachment["fileHash"].endswith(".txt")
        assert attachment["caption"] == "TODO caption"

        download = http.get(f"/uploads/{attachment['fileHash']}")
        assert download.status_code == 200
        assert download.content == b"hello"

        stored = http.get("/api/boards/b1/tasks").json()["tasks"][0]
        assert stored["attachments"] == [attachment]

    def test_identical_uploads_get_distinct_ids(self, http, task_fields):
        task = http.post("/api/tasks", json=task_fields()).json()["task"]
        url = f"/api/tasks/{task['id']}/attachments"

        first = http.post(url, params={"boardId": "b1"}, files={"file": ("a.txt", b"x")}).json()
        second = http.post(url, params={"boardId": "b1"}, files={"file": ("a.txt", b"x")}).json()

        assert first["attachment"]["id"] != second["attachment"]["id"]
        assert first["attachment"]["fileHash"] != second["attachment"]["fileHash"]

    def test_upload_without_file(self, http, task_fields):
        task = http.post("/api/tasks", json=task_fields()).json()["task"]

        response = http.post(f"/api/tasks/{task['id']}/attachments", params={"boardId": "b1"})

        assert response.status_code == 400
        assert response.json() == {"error": "No file uploaded"}

    def test_upload_without_board(self, http, task_fields):
        task = http.post("/api/tasks", json=task_fields()).json()["task"]

        response = http.post(
            f"/api/tasks/{task['id']}/attachments",
            files={"file": ("a.txt", b"x")},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid board ID"}

    def test_upload_missing_task(self, http):
        response = http.post(
            "/api/tasks/missing/attachments",
            params={"boardId": "b1"},
            files={"file": ("a.txt", b"x")},
        )

        assert response.status_code == 404


class TestInMemoryApp:

    def test_app_over_memory_store(self, temp_dir, clock):
        config = AppConfig(data_dir=str(temp_dir / "data"))
        service = TaskService(BoardStore(MemoryDocumentStore()), UploadStore(temp_dir / "up"), clock=clock)

        with TestClient(create_app(config, service)) as client:
            task = client.post("/api/tasks", json={"title": "A", "boardId": "b9"}).json()["task"]
            tasks = client.get("/api/boards/b9/tasks").json()["tasks"]

        assert tasks == [task]
        assert not (config.data_path / "tasks-b9.json").exists()


class TestGuarded:

    def test_unexpected_error_becomes_internal_failure(self):
        @guarded("Failed to read")
        def handler():
            raise OSError("disk gone")

        with pytest.raises(InternalFailure) as exc_info:
            handler()

        assert exc_info.value.message == "Failed to read"
        assert exc_info.value.status_code == 500

    def test_kanban_errors_pass_through(self):
        @guarded("Failed to read")
        def handler():
            raise NotFound("Task not found")

        with pytest.raises(NotFound):
            handler()

    def test_wrapped_handler_stays_synchronous(self):
        @guarded("Failed")
        def handler(value):
            return value

        assert not inspect.iscoroutinefunction(handler)
        assert handler(3) == 3
