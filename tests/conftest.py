"""
Pytest configuration and fixtures.
"""

import pytest
import tempfile
import shutil
from datetime import datetime, timedelta, timezone
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from kanban_board.config import AppConfig
from kanban_board.tasks import Board, BoardStore, JsonFileStore, TaskService, UploadStore


class TickingClock:
    """Clock that advances one second per call, so timestamps always differ."""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> str:
        self.now += timedelta(seconds=1)
        return self.now.isoformat()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp = tempfile.mkdtemp()
    yield Path(temp)
    shutil.rmtree(temp, ignore_errors=True)


@pytest.fixture
def config(temp_dir):
    """Config pointing at a temporary data directory."""
    return AppConfig(data_dir=str(temp_dir / "data"))


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def store(config):
    return BoardStore(JsonFileStore(config.data_path))


@pytest.fixture
def service(config, store, clock):
    return TaskService(store, UploadStore(config.uploads_path), clock=clock)


@pytest.fixture
def board(store):
    """Board b1 with two columns and two swimlanes."""
    board = Board.create("Sprint", ["To Do", "Done"], ["Frontend", "Backend"], board_id="b1")
    board.columns[0].id, board.columns[1].id = "c1", "c2"
    board.swimlanes[0].id, board.swimlanes[1].id = "s1", "s2"
    store.save_board(board)
    store.save_tasks("b1", [])
    return board


@pytest.fixture
def http(config, service, board):
    """FastAPI TestClient over the JSON-file service."""
    from fastapi.testclient import TestClient
    from kanban_board.web import create_app

    with TestClient(create_app(config, service)) as client:
        yield client


@pytest.fixture
def task_fields():
    """Factory for create-task request bodies."""
    def make(**overrides):
        fields = {
            "title": "A",
            "description": "",
            "boardId": "b1",
            "columnId": "c1",
            "swimlaneId": "s1",
            "order": 0,
        }
        fields.update(overrides)
        return fields
    return make
