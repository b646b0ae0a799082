"""
Rich-based terminal user interface.

Provides the notes view: an input prompt fed by typing or OS dictation,
a summary panel, a task table and short transient notices.
"""

from typing import Optional
import asyncio
import logging
import threading

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.text import Text
from rich.table import Table
from rich import box

from ..notes.state import NoteState

logger = logging.getLogger(__name__)

COMMANDS = [
    ("/summarize", "Summarize the transcript"),
    ("/tasks", "Extract tasks from the transcript"),
    ("/share", "Copy transcript and tasks to the clipboard"),
    ("/clear", "Clear transcript, summary and tasks"),
    ("/show", "Show the current notes"),
    ("/help", "Show this help"),
    ("/quit", "Exit"),
]


class TerminalUI:
    """
    Rich-based terminal view for a notes session.

    Renders whatever NoteState it is given; it never changes state itself.
    """

    def __init__(self, console: Optional[Console] = None):
        """Initialize the terminal UI."""
        self.console = console or Console()
        self._progress_context: Optional[Progress] = None
        self._current_task = None

    async def show_welcome(self) -> None:
        """Display the title panel and command help."""
        welcome_text = Text()
        welcome_text.append("🎙️  Voice Notes", style="bold magenta")
        welcome_text.append("\n\nDictate or type your notes, then summarize or extract tasks\n")

        panel = Panel(
            welcome_text,
            title="Welcome",
            title_align="center",
            border_style="cyan",
            padding=(1, 2)
        )

        self.console.print(panel)
        await self.show_help()

    async def show_help(self) -> None:
        """List the available commands."""
        table = Table(box=box.SIMPLE, show_header=False)
        table.add_column("Command", style="bold green")
        table.add_column("Description", style="white")
        for command, description in COMMANDS:
            table.add_row(command, description)

        self.console.print("📋 Anything else you enter is added to the transcript.")
        self.console.print(table)

    async def prompt_input(self) -> Optional[str]:
        """
        Read one line of input.

        The read happens on a daemon thread so an interrupted session can
        exit without waiting for a pending line.

        Returns:
            The entered line, or None if input was closed or interrupted.
        """
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        reader = threading.Thread(target=self._read_line, args=(loop, future), daemon=True)
        reader.start()
        return await future

    def _read_line(self, loop: asyncio.AbstractEventLoop, future: asyncio.Future) -> None:
        """Blocking read; hands the line (or error) back to the event loop."""
        try:
            line = self.console.input("[bold cyan]› [/bold cyan]")
        except (EOFError, KeyboardInterrupt):
            line = None
        except Exception as e:
            self._post(loop, future, e)
            return
        self._post(loop, future, line)

    @staticmethod
    def _post(loop: asyncio.AbstractEventLoop, future: asyncio.Future, outcome) -> None:
        def resolve():
            if future.done():
                return
            if isinstance(outcome, Exception):
                future.set_exception(outcome)
            else:
                future.set_result(outcome)

        try:
            loop.call_soon_threadsafe(resolve)
        except RuntimeError:
            # Event loop already closed
            logger.debug("Input arrived after the event loop closed")

    async def start_progress(self, message: str = "Processing...") -> None:
        """Show a spinner while a request is outstanding."""
        if not self._progress_context:
            self._progress_context = Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                TimeElapsedColumn(),
                console=self.console,
                transient=True
            )
            self._progress_context.start()
            self._current_task = self._progress_context.add_task(f"🤖 {message}", total=None)
        elif self._current_task is not None:
            self._progress_context.update(self._current_task, description=f"🤖 {message}")

    def stop_progress(self) -> None:
        """Stop the current progress indicator."""
        if self._progress_context:
            self._progress_context.stop()
            self._progress_context = None
            self._current_task = None

    async def show_notice(self, message: str) -> None:
        """Display a short transient notice."""
        self.stop_progress()
        self.console.print(f"[yellow]⚠️  {message}[/yellow]")

    async def show_success(self, message: str) -> None:
        self.stop_progress()
        self.console.print(f"[green]✅ {message}[/green]")

    async def clear_input(self) -> None:
        """Clear the visible transcript."""
        self.console.clear()
        self.console.print("[dim]Notes cleared.[/dim]")

    async def show_notes(self, state: NoteState) -> None:
        """
        Render the transcript, summary and task list.

        Args:
            state: Note state to render
        """
        self.stop_progress()

        if state.transcript:
            self.console.print(Panel(state.transcript, title="Transcript", border_style="white", padding=(0, 1)))
        else:
            self.console.print("[dim]Transcript is empty. Start dictating...[/dim]")

        if state.summary:
            self.console.print(Panel(state.summary, title="Summary", border_style="cyan", padding=(0, 1)))

        if state.tasks:
            table = Table(
                title="Tasks",
                title_style="bold cyan",
                box=box.ROUNDED,
                show_header=False
            )
            table.add_column("", style="green", width=2)
            table.add_column("Task", style="white")
            for task in state.tasks:
                table.add_row("-", task.text)
            self.console.print(table)

    async def show_permission_status(self, granted: bool, what: str = "Microphone") -> None:
        if granted:
            self.console.print(f"[dim]{what} access granted[/dim]")
        else:
            self.console.print(
                f"[yellow]⚠️  {what} access not granted. "
                "OS dictation may not be able to fill the transcript.[/yellow]"
            )
