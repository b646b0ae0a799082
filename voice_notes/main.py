"""
Main application entry point for Voice Notes.

This module provides the command-line interface and wires the terminal
view, the notes session, the completion provider and the permission gate.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .ai.providers import CompletionProvider, create_provider
from .config import Settings, PROVIDER_DEFAULTS
from .device.permissions import PermissionGate, PyAudioPermissionBackend
from .notes.session import NotesSession
from .ui.terminal import TerminalUI

logger = logging.getLogger(__name__)


class NotesApp:
    """
    Main application class that coordinates all components.

    Reads input lines from the view, feeds plain text into the transcript
    and dispatches slash commands to the notes session.
    """

    def __init__(
        self,
        settings: Settings,
        provider: Optional[CompletionProvider] = None,
        ui: Optional[TerminalUI] = None,
        permissions: Optional[PermissionGate] = None
    ):
        """Initialize the notes application."""
        self.settings = settings
        self.ui = ui or TerminalUI()
        self.provider = provider or create_provider(settings)
        self.session = NotesSession(self.provider, self.ui)
        self.permissions = permissions or PermissionGate(PyAudioPermissionBackend())

    async def run_session(self, request_microphone: bool = False) -> None:
        """
        Run an interactive notes session until the user quits.

        Args:
            request_microphone: Ask for microphone access before starting
        """
        # Probing devices blocks, keep it off the event loop
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self.permissions.request_storage_permission)

        await self.ui.show_welcome()

        if request_microphone:
            granted = await loop.run_in_executor(None, self.permissions.request_audio_permission)
            await self.ui.show_permission_status(granted)

        if self.session.state.transcript:
            await self.ui.show_notes(self.session.state)

        while True:
            line = await self.ui.prompt_input()
            if line is None:
                break
            if not await self.handle_input(line):
                break

    async def handle_input(self, line: str) -> bool:
        """
        Handle one line of input.

        Returns:
            False when the session should end.
        """
        command = line.strip().lower()

        if not command.startswith("/"):
            if line.strip():
                self.session.add_dictation(line.rstrip())
            return True

        if command in ("/quit", "/exit", "/q"):
            return False
        if command == "/summarize":
            await self._run_request(self.session.summarize)
        elif command == "/tasks":
            await self._run_request(self.session.extract_tasks)
        elif command == "/share":
            if await self.session.share_notes():
                await self.ui.show_success("Notes copied to clipboard")
        elif command == "/clear":
            await self.session.clear_all()
        elif command == "/show":
            await self.ui.show_notes(self.session.state)
        elif command == "/help":
            await self.ui.show_help()
        else:
            await self.ui.show_notice(f"Unknown command: {command}")

        return True

    async def _run_request(self, action) -> None:
        """Run a summarize/extract action behind the progress spinner."""
        if self.session.is_loading:
            await self.ui.show_notice("Still processing the previous request")
            return

        await self.ui.start_progress("Processing...")
        try:
            updated = await action()
        finally:
            self.ui.stop_progress()

        if updated:
            await self.ui.show_notes(self.session.state)


def setup_logging(level: str) -> None:
    """Route log records through rich at the given level."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)]
    )


@click.command()
@click.version_option(version=__version__)
@click.option(
    '--provider',
    default=None,
    help='Completion provider (default: $VOICE_NOTES_PROVIDER or gemini)',
    type=click.Choice(sorted(PROVIDER_DEFAULTS))
)
@click.option('--model', default=None, help='Model identifier (default: provider default)')
@click.option(
    '--log-level',
    default=None,
    help='Logging level (default: $VOICE_NOTES_LOG_LEVEL or WARNING)',
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False)
)
@click.option(
    '--input', 'input_path',
    default=None,
    help='Load the transcript from a text file',
    type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option('--request-mic', is_flag=True, help='Ask for microphone access at startup')
def main(
    provider: Optional[str],
    model: Optional[str],
    log_level: Optional[str],
    input_path: Optional[Path],
    request_mic: bool
) -> None:
    """
    Voice Notes - dictated notes with AI summaries and task extraction.

    Dictate or type into the prompt, then use /summarize or /tasks to ask
    the configured LLM for a summary or an action-item list.
    """
    settings = Settings.from_env(provider).with_overrides(model=model, log_level=log_level)
    setup_logging(settings.log_level)

    errors = settings.validate()
    if errors:
        click.echo(click.style("Cannot start - configuration issues:", fg="red"), err=True)
        for error in errors:
            click.echo(f"  ⚠ {error}", err=True)
        sys.exit(1)

    logger.info(f"Using {settings.provider} ({settings.resolved_model()}), key {settings.masked_api_key()}")

    try:
        app = NotesApp(settings)

        if input_path:
            app.session.set_transcript(input_path.read_text(encoding="utf-8"))

        asyncio.run(app.run_session(request_microphone=request_mic))

    except KeyboardInterrupt:
        click.echo("\nApplication interrupted by user.")
        sys.exit(0)
    except Exception as e:
        logger.debug("Fatal error", exc_info=True)
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
