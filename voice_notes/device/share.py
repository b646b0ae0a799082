"""
Share mechanism for assembled notes.

On a desktop the closest thing to a share sheet is the system clipboard:
the notes are copied so the user can paste them into any app.
"""

import logging

import pyperclip

logger = logging.getLogger(__name__)


class ShareError(Exception):
    """Raised when the notes could not be handed to the share mechanism."""
    pass


class ClipboardShare:
    """Shares plain text by copying it to the system clipboard."""

    def share(self, message: str) -> None:
        """
        Hand a plain-text message to the clipboard.

        Args:
            message: Text to share

        Raises:
            ShareError: If no clipboard mechanism is available
        """
        try:
            pyperclip.copy(message)
        except pyperclip.PyperclipException as e:
            raise ShareError(f"Could not copy to clipboard: {e}") from e

        logger.info(f"Shared {len(message)} chars via clipboard")
