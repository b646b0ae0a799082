"""
Task list extraction from free-text completions.

The extraction prompt asks the model for one task per line, formatted as
"- <text>". Anything else in the completion (preamble, headings, closing
remarks) is ignored.
"""

from typing import Callable, List, Optional
import logging
import uuid

from .state import Task

logger = logging.getLogger(__name__)

TASK_MARKER = "-"


def new_task_id() -> str:
    """Generate an opaque task identifier."""
    return uuid.uuid4().hex


def parse_tasks(raw: str, id_factory: Optional[Callable[[], str]] = None) -> List[Task]:
    """
    Turn a task-extraction completion into Task records.

    Lines whose stripped content starts with "-" are kept. The first two
    characters (the marker and the space after it) are dropped and the rest
    is stripped again. Lines that leave no text are skipped.

    Args:
        raw: Completion text as returned by the provider
        id_factory: Identifier generator, defaults to random UUIDs

    Returns:
        Tasks in source line order; an empty list if nothing matched.
    """
    make_id = id_factory or new_task_id
    tasks: List[Task] = []

    for line in raw.splitlines():
        stripped = line.strip()
        if not stripped.startswith(TASK_MARKER):
            continue

        text = stripped[2:].strip()
        if not text:
            continue

        tasks.append(Task(id=make_id(), text=text))

    logger.debug(f"Parsed {len(tasks)} task(s) from {len(raw)} chars")
    return tasks
