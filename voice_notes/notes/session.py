"""
Notes session orchestration.

Owns the current NoteState and coordinates the transcript, the completion
provider and the task parser. User-facing problems are reported through
the view as short notices; details only go to the log.
"""

from typing import Optional
import logging

from ..ai.providers import CompletionProvider, CompletionError
from ..device.share import ClipboardShare, ShareError
from . import state as notes
from .parser import parse_tasks
from .state import NoteState

logger = logging.getLogger(__name__)

SUMMARY_PROMPT = "Please provide a concise summary of the following text:\n\n"
TASKS_PROMPT = (
    'Extract all tasks and action items from the following text. '
    'Format each task on a new line starting with "- ":\n\n'
)

EMPTY_TEXT_NOTICE = "Please enter some text first"
SUMMARY_ERROR_NOTICE = "Error generating summary"
TASKS_ERROR_NOTICE = "Error extracting tasks"
SHARE_ERROR_NOTICE = "Error sharing notes"


def build_summary_prompt(transcript: str) -> str:
    return SUMMARY_PROMPT + transcript


def build_tasks_prompt(transcript: str) -> str:
    return TASKS_PROMPT + transcript


def format_share_text(state: NoteState) -> str:
    """
    Assemble the transcript, events and tasks into one plain-text block.

    Sections without entries are left out. The summary is not shared.
    """
    share_text = state.transcript + "\n\n"

    if state.events:
        share_text += "Events:\n"
        for event in state.events:
            share_text += f"- {event.title}: {event.time}\n"
        share_text += "\n"

    if state.tasks:
        share_text += "Tasks:\n"
        for task in state.tasks:
            share_text += f"- {task.text}\n"

    return share_text


class NotesSession:
    """
    Coordinates one note-taking session.

    The loading flag is advisory: it is set for exactly the duration of a
    provider call so the view can disable its AI actions, but it does not
    stop a second call made directly on the session.

    Args:
        provider: Completion provider used for summaries and tasks
        ui: View that receives notices (show_notice, clear_input)
        sharer: Share mechanism, defaults to the clipboard
    """

    def __init__(self, provider: CompletionProvider, ui, sharer: Optional[ClipboardShare] = None):
        self.provider = provider
        self.ui = ui
        self.sharer = sharer or ClipboardShare()
        self.state = NoteState()

    @property
    def is_loading(self) -> bool:
        return self.state.loading

    def set_transcript(self, text: str) -> None:
        self.state = notes.with_transcript(self.state, text)

    def add_dictation(self, text: str) -> None:
        """Append a dictated or typed fragment to the transcript."""
        self.state = notes.append_transcript(self.state, text)

    async def summarize(self) -> bool:
        """
        Replace the summary with a completion for the current transcript.

        Returns:
            True if the summary was updated.
        """
        if not self.state.has_text:
            await self.ui.show_notice(EMPTY_TEXT_NOTICE)
            return False

        self.state = notes.begin_request(self.state)
        try:
            summary = await self.provider.complete(build_summary_prompt(self.state.transcript))
            self.state = notes.with_summary(self.state, summary)
            return True
        except (CompletionError, ValueError) as e:
            logger.error(f"Error summarizing text: {e}")
            await self.ui.show_notice(SUMMARY_ERROR_NOTICE)
            return False
        finally:
            self.state = notes.end_request(self.state)

    async def extract_tasks(self) -> bool:
        """
        Replace the task list with tasks extracted from the transcript.

        Returns:
            True if the task list was updated.
        """
        if not self.state.has_text:
            await self.ui.show_notice(EMPTY_TEXT_NOTICE)
            return False

        self.state = notes.begin_request(self.state)
        try:
            completion = await self.provider.complete(build_tasks_prompt(self.state.transcript))
            self.state = notes.with_tasks(self.state, parse_tasks(completion))
            return True
        except (CompletionError, ValueError) as e:
            logger.error(f"Error extracting tasks: {e}")
            await self.ui.show_notice(TASKS_ERROR_NOTICE)
            return False
        finally:
            self.state = notes.end_request(self.state)

    async def share_notes(self) -> bool:
        """Hand the assembled notes to the share mechanism."""
        try:
            self.sharer.share(format_share_text(self.state))
            return True
        except ShareError as e:
            logger.error(f"Error sharing notes: {e}")
            await self.ui.show_notice(SHARE_ERROR_NOTICE)
            return False

    async def clear_all(self) -> None:
        """Reset transcript, summary and tasks, and clear the view's input."""
        self.state = notes.cleared(self.state)
        await self.ui.clear_input()
