from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console

from .config import AppConfig, load_config, save_config
from .errors import KanbanError
from .tasks import Board, BoardStore, JsonFileStore, TaskService, UploadStore, print_board, print_task_detail

app = typer.Typer(no_args_is_help=True)

console = Console()


def _setup_logging(cfg: AppConfig) -> None:
    logging.basicConfig(
        level=getattr(logging, cfg.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load(data_dir: Optional[str]) -> AppConfig:
    cfg = load_config()
    if data_dir:
        cfg = AppConfig(**{**cfg.model_dump(), "data_dir": data_dir})
    return cfg


def _service(cfg: AppConfig) -> TaskService:
    return TaskService(
        BoardStore(JsonFileStore(cfg.data_path)),
        UploadStore(cfg.uploads_path),
    )


@app.command("config")
def config_set(
    data_dir: Optional[str] = typer.Option(None, "--data-dir"),
    uploads_dir: Optional[str] = typer.Option(None, "--uploads-dir"),
    host: Optional[str] = typer.Option(None, "--host"),
    port: Optional[int] = typer.Option(None, "--port"),
    log_level: Optional[str] = typer.Option(None, "--log-level"),
) -> None:
    """Сохранить/обновить конфиг."""
    cfg = load_config()
    data = cfg.model_dump()
    if data_dir is not None:
        data["data_dir"] = data_dir
    if uploads_dir is not None:
        data["uploads_dir"] = uploads_dir
    if host is not None:
        data["host"] = host
    if port is not None:
        data["port"] = port
    if log_level is not None:
        data["log_level"] = log_level

    save_config(AppConfig(**data))
    console.print("OK")


@app.command()
def config_show() -> None:
    """Показать конфиг."""
    console.print(load_config().model_dump_json(indent=2))


@app.command("serve")
def serve_cmd(
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Порт"),
    host: Optional[str] = typer.Option(None, "--host", "-h", help="Хост"),
    data_dir: Optional[str] = typer.Option(None, "--data-dir", help="Каталог с JSON-документами"),
) -> None:
    """Запустить REST API сервер."""
    from .web import run_server

    cfg = _load(data_dir)
    data = cfg.model_dump()
    if port is not None:
        data["port"] = port
    if host is not None:
        data["host"] = host
    cfg = AppConfig(**data)

    _setup_logging(cfg)
    cfg.ensure_directories()
    console.print(f"[green]Starting Kanban server on http://{cfg.host}:{cfg.port}[/green]")
    console.print(f"[dim]Data: {cfg.data_path}  Uploads: {cfg.uploads_path}[/dim]")
    run_server(cfg)


# ==============================================================================
# Board Commands
# ==============================================================================

@app.command("init-board")
def init_board_cmd(
    name: str = typer.Argument(..., help="Название доски"),
    columns: List[str] = typer.Option(["To Do", "In Progress", "Done"], "--column", "-c", help="Колонка (можно несколько)"),
    swimlanes: List[str] = typer.Option(["Default"], "--swimlane", "-s", help="Дорожка (можно несколько)"),
    board_id: Optional[str] = typer.Option(None, "--board-id", help="ID доски (по умолчанию uuid)"),
    data_dir: Optional[str] = typer.Option(None, "--data-dir"),
) -> None:
    """Создать документ доски и пустой список задач."""
    cfg = _load(data_dir)
    store = BoardStore(JsonFileStore(cfg.data_path))

    if board_id and store.get_board(board_id):
        console.print(f"[red]Board already exists: {board_id}[/red]")
        raise typer.Exit(1)

    board = Board.create(name, columns, swimlanes, board_id=board_id)
    store.save_board(board)
    store.save_tasks(board.id, [])
    console.print(f"[green]Created board: {board.name} ({board.id})[/green]")
    for column in board.columns:
        console.print(f"  column   {column.id}  {column.name}")
    for lane in board.swimlanes:
        console.print(f"  swimlane {lane.id}  {lane.name}")


@app.command("board")
def board_cmd(
    board_id: str = typer.Argument(..., help="ID доски"),
    data_dir: Optional[str] = typer.Option(None, "--data-dir"),
) -> None:
    """Показать Kanban доску."""
    service = _service(_load(data_dir))
    board = service.get_board(board_id)
    if board is None:
        console.print(f"[red]Board not found: {board_id}[/red]")
        raise typer.Exit(1)

    print_board(board, service.get_tasks(board_id), console)


@app.command("task-create")
def task_create_cmd(
    board_id: str = typer.Argument(..., help="ID доски"),
    title: str = typer.Argument(..., help="Название задачи"),
    column_id: str = typer.Option("", "--column", "-c", help="ID колонки"),
    swimlane_id: str = typer.Option("", "--swimlane", "-s", help="ID дорожки"),
    description: str = typer.Option("", "--desc", "-d", help="Описание"),
    order: int = typer.Option(0, "--order", "-o", help="Позиция в колонке"),
    data_dir: Optional[str] = typer.Option(None, "--data-dir"),
) -> None:
    """Создать новую задачу."""
    service = _service(_load(data_dir))
    task = service.create_task({
        "boardId": board_id,
        "title": title,
        "description": description,
        "columnId": column_id,
        "swimlaneId": swimlane_id,
        "order": order,
    })
    console.print(f"[green]Created: {task}[/green]")


@app.command("task-move")
def task_move_cmd(
    board_id: str = typer.Argument(..., help="ID доски"),
    task_id: str = typer.Argument(..., help="ID задачи"),
    column_id: str = typer.Option(..., "--column", "-c", help="ID колонки"),
    swimlane_id: str = typer.Option(..., "--swimlane", "-s", help="ID дорожки"),
    order: int = typer.Option(0, "--order", "-o", help="Позиция в колонке"),
    data_dir: Optional[str] = typer.Option(None, "--data-dir"),
) -> None:
    """Переместить задачу в другую колонку/дорожку."""
    service = _service(_load(data_dir))
    try:
        task = service.move_task(task_id, board_id, column_id, swimlane_id, order)
    except KanbanError as e:
        console.print(f"[red]{e.message}: {task_id}[/red]")
        raise typer.Exit(1)
    console.print(f"[cyan]Moved {task_id} → {task.column_id}/{task.swimlane_id}[/cyan]")


@app.command("task-note")
def task_note_cmd(
    board_id: str = typer.Argument(..., help="ID доски"),
    task_id: str = typer.Argument(..., help="ID задачи"),
    text: str = typer.Argument(..., help="Текст заметки"),
    data_dir: Optional[str] = typer.Option(None, "--data-dir"),
) -> None:
    """Добавить заметку к задаче."""
    service = _service(_load(data_dir))
    try:
        note = service.add_note(task_id, board_id, text)
    except KanbanError as e:
        console.print(f"[red]{e.message}: {task_id}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Added note {note.id}[/green]")


@app.command("task-attach")
def task_attach_cmd(
    board_id: str = typer.Argument(..., help="ID доски"),
    task_id: str = typer.Argument(..., help="ID задачи"),
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Файл"),
    data_dir: Optional[str] = typer.Option(None, "--data-dir"),
) -> None:
    """Прикрепить файл к задаче."""
    service = _service(_load(data_dir))
    try:
        with open(file, "rb") as stream:
            attachment = service.add_attachment(task_id, board_id, file.name, stream)
    except KanbanError as e:
        console.print(f"[red]{e.message}: {task_id}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Attached {attachment.file_name} as {attachment.file_hash}[/green]")


@app.command("task-show")
def task_show_cmd(
    board_id: str = typer.Argument(..., help="ID доски"),
    task_id: str = typer.Argument(..., help="ID задачи"),
    data_dir: Optional[str] = typer.Option(None, "--data-dir"),
) -> None:
    """Показать детали задачи."""
    service = _service(_load(data_dir))
    for task in service.get_tasks(board_id):
        if task.id == task_id:
            print_task_detail(task, console)
            return
    console.print(f"[red]Task not found: {task_id}[/red]")
    raise typer.Exit(1)


@app.command("task-delete")
def task_delete_cmd(
    board_id: str = typer.Argument(..., help="ID доски"),
    task_id: str = typer.Argument(..., help="ID задачи"),
    data_dir: Optional[str] = typer.Option(None, "--data-dir"),
) -> None:
    """Удалить задачу."""
    service = _service(_load(data_dir))
    try:
        service.delete_task(board_id, task_id)
    except KanbanError as e:
        console.print(f"[red]{e.message}: {task_id}[/red]")
        raise typer.Exit(1)
    console.print(f"[red]Deleted task: {task_id}[/red]")


if __name__ == "__main__":
    app()
