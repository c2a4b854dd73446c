"""
Terminal rendering of a board.

Использование:
    from kanban_board.tasks import print_board

    print_board(board, tasks)
"""

from __future__ import annotations

from typing import Dict, List, Optional

from rich.columns import Columns
from rich.console import Console
from rich.panel import Panel

from .models import Board, Task, order_key

console = Console()

MAX_TASKS_PER_COLUMN = 10
UNASSIGNED = "(no column)"


def group_by_column(board: Board, tasks: List[Task]) -> Dict[str, List[Task]]:
    """
    Разложить задачи по колонкам доски.

    Задачи с неизвестным columnId попадают в группу UNASSIGNED.
    Внутри колонки задачи отсортированы по order (стабильно).
    """
    known = {c.id for c in board.columns}
    groups: Dict[str, List[Task]] = {c.id: [] for c in board.sorted_columns()}
    for task in sorted(tasks, key=order_key):
        key = task.column_id if task.column_id in known else UNASSIGNED
        groups.setdefault(key, []).append(task)
    return groups


def print_board(board: Board, tasks: List[Task], target: Optional[Console] = None) -> None:
    """
    Вывести доску колонками.

    Args:
        board: Board
        tasks: задачи доски
        target: Console для вывода (по умолчанию общий)
    """
    out = target or console
    lanes = {s.id: s.name for s in board.swimlanes}
    names = {c.id: c.name for c in board.columns}

    column_panels = []
    for column_id, column_tasks in group_by_column(board, tasks).items():
        lines = []
        for task in column_tasks[:MAX_TASKS_PER_COLUMN]:
            title = task.title or ""
            if len(title) > 25:
                title = title[:25] + "..."
            line = f"[cyan]{title}[/cyan]"
            lane = lanes.get(task.swimlane_id)
            if lane:
                line += f"\n  [dim]{lane}[/dim]"
            if task.notes or task.attachments:
                line += f"\n  [dim]notes: {len(task.notes)} | files: {len(task.attachments)}[/dim]"
            lines.append(line)

        if len(column_tasks) > MAX_TASKS_PER_COLUMN:
            lines.append(f"[dim]... +{len(column_tasks) - MAX_TASKS_PER_COLUMN} more[/dim]")

        content = "\n\n".join(lines) if lines else "[dim]No tasks[/dim]"
        title = names.get(column_id, column_id)
        column_panels.append(Panel(
            content,
            title=f"{title} ({len(column_tasks)})",
            border_style="dim" if column_id == UNASSIGNED else "blue",
            width=35,
        ))

    out.print(f"[bold]{board.name}[/bold] [dim]({board.id})[/dim]")
    out.print(Columns(column_panels))
    out.print(f"\n[dim]Total: {len(tasks)} tasks | Swimlanes: {len(board.swimlanes)}[/dim]")


def print_task_detail(task: Task, target: Optional[Console] = None) -> None:
    """Вывести детали задачи."""
    out = target or console
    content = f"""
**ID:** {task.id}
**Title:** {task.title}
**Column:** {task.column_id or 'None'}
**Swimlane:** {task.swimlane_id or 'None'}
**Order:** {task.order}

**Description:**
{task.description or 'No description'}

**Created:** {task.created[:19]}
**Updated:** {task.updated[:19]}
"""
    for note in task.notes:
        content += f"\n[dim]{note.timestamp[:19]}[/dim] {note.text}"
    for attachment in task.attachments:
        content += f"\n[dim]file:[/dim] {attachment.file_name} -> {attachment.file_hash}"

    out.print(Panel(content, title=f"Task: {task.id}", border_style="cyan"))
