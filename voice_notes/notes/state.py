"""
Note state and its update functions.

NoteState is immutable; every change goes through one of the functions
below, which return a new state. The session owns the current value and
hands it to the view for rendering.
"""

from dataclasses import dataclass, replace
from typing import Iterable, Tuple


@dataclass(frozen=True)
class Task:
    """A single extracted action item."""
    id: str
    text: str


@dataclass(frozen=True)
class Event:
    """A titled point in time mentioned in the notes."""
    title: str
    time: str


@dataclass(frozen=True)
class NoteState:
    """Everything the notes view displays."""
    transcript: str = ""
    summary: str = ""
    tasks: Tuple[Task, ...] = ()
    events: Tuple[Event, ...] = ()
    loading: bool = False

    @property
    def has_text(self) -> bool:
        return bool(self.transcript.strip())


def with_transcript(state: NoteState, text: str) -> NoteState:
    """Replace the transcript."""
    return replace(state, transcript=text)


def append_transcript(state: NoteState, text: str) -> NoteState:
    """Append a dictated fragment to the transcript on its own line."""
    if not state.transcript:
        return replace(state, transcript=text)
    return replace(state, transcript=f"{state.transcript}\n{text}")


def begin_request(state: NoteState) -> NoteState:
    return replace(state, loading=True)


def end_request(state: NoteState) -> NoteState:
    return replace(state, loading=False)


def with_summary(state: NoteState, summary: str) -> NoteState:
    """Replace the summary with a new completion."""
    return replace(state, summary=summary)


def with_tasks(state: NoteState, tasks: Iterable[Task]) -> NoteState:
    """Replace the whole task list; previous tasks are not merged."""
    return replace(state, tasks=tuple(tasks))


def cleared(state: NoteState) -> NoteState:
    """Reset transcript, summary and tasks to their initial values."""
    return replace(state, transcript="", summary="", tasks=())
