"""Task execution and result rendering for CLI"""

import logging
from typing import Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from cli.auth_handlers import acquire_access_token
from errors import RunnerError
from runner import TaskOutput, run_task
from utils.export import export_table

logger = logging.getLogger(__name__)


def execute_task(console: Console, task_name: str, args: Sequence[str] = ()) -> Optional[TaskOutput]:
    """
    Acquire a token, run the task in a worker and render the result

    Returns:
        The task output, or None if authentication or the worker failed
    """
    token = acquire_access_token(console)
    if token is None:
        return None

    try:
        output = run_task(
            task_name,
            list(args),
            token,
            on_progress=lambda text: console.print(text, markup=False),
        )
    except RunnerError as e:
        logger.error(f"Task {task_name} failed: {type(e).__name__}")
        console.print(f"[red]❌ Task failed:[/red] {escape(str(e))}")
        return None

    console.print(f"[green]✅ Task {task_name} completed[/green]")
    render_output(console, output)
    return output


def render_output(console: Console, output: TaskOutput) -> None:
    """Show a task result as a table, its message, or pretty JSON"""
    if output.has_table:
        table = Table(title="Results", show_lines=False)
        for header in output.headers:
            table.add_column(escape(header), style="cyan" if header == output.headers[0] else None)
        for row in output.rows:
            table.add_row(*(escape(cell) for cell in row))
        console.print(table)

    if output.message:
        console.print(output.message, markup=False)
    if output.file_path:
        console.print(f"[dim]📄 File: {escape(output.file_path)}[/dim]")

    raw_json = output.raw_json
    if raw_json is not None:
        console.print(Panel(Text(raw_json), title="Result", border_style="dim"))


def export_result(console: Console, output: Optional[TaskOutput]) -> None:
    """Write the last tabular result to a timestamped CSV file"""
    if output is None or not output.has_table:
        console.print("[yellow]⚠️ No results to export[/yellow]")
        return

    try:
        path = export_table(output.headers, output.rows)
    except OSError as e:
        console.print(f"[red]❌ Failed to export:[/red] {escape(str(e))}")
        return
    console.print(f"[green]💾 Exported to {escape(str(path))}[/green]")
