"""Board storage, task mutations and terminal rendering."""

from .models import Attachment, Board, Column, Note, Swimlane, Task
from .storage import BoardStore, DocumentStore, JsonFileStore, MemoryDocumentStore, UploadStore
from .service import TaskService
from .kanban import print_board, print_task_detail

__all__ = [
    "Attachment",
    "Board",
    "Column",
    "Note",
    "Swimlane",
    "Task",
    "BoardStore",
    "DocumentStore",
    "JsonFileStore",
    "MemoryDocumentStore",
    "UploadStore",
    "TaskService",
    "print_board",
    "print_task_detail",
]
