"""
Tests for task extraction from model completions.

Model output does not always follow the "- <task>" format, so these cover
malformed responses as well as the happy path.
"""

import itertools

import pytest

from voice_notes.notes.parser import parse_tasks, new_task_id
from voice_notes.notes.state import Task


def sequential_ids():
    counter = itertools.count(1)
    return lambda: f"t{next(counter)}"


class TestParseTasks:
    """Test dash-prefixed line extraction."""

    def test_extracts_dash_lines_in_order(self):
        """Only dash lines become tasks, in source order."""
        tasks = parse_tasks("intro line\n- Buy milk\n- Call Bob\nnot a task")

        assert [t.text for t in tasks] == ["Buy milk", "Call Bob"]

    def test_no_dash_lines_returns_empty_list(self):
        tasks = parse_tasks("There are no action items in this text.")

        assert tasks == []
        assert isinstance(tasks, list)

    def test_empty_completion(self):
        assert parse_tasks("") == []

    def test_surrounding_whitespace_is_stripped(self):
        tasks = parse_tasks("   -   Send the report   \n\t- Book a room\t")

        assert [t.text for t in tasks] == ["Send the report", "Book a room"]

    def test_blank_lines_are_ignored(self):
        tasks = parse_tasks("\n\n- First\n\n\n- Second\n\n")

        assert [t.text for t in tasks] == ["First", "Second"]

    def test_windows_line_endings(self):
        tasks = parse_tasks("Tasks:\r\n- Water plants\r\n- Pay rent\r\n")

        assert [t.text for t in tasks] == ["Water plants", "Pay rent"]

    def test_bare_dashes_are_dropped(self):
        """Lines that carry no text after the marker produce no task."""
        tasks = parse_tasks("-\n- \n-  \n- Real task")

        assert [t.text for t in tasks] == ["Real task"]

    def test_marker_and_following_character_are_removed(self):
        """The first two characters of the line are the marker and its space."""
        tasks = parse_tasks("-Buy eggs")

        assert tasks[0].text == "uy eggs"

    def test_uses_id_factory(self):
        tasks = parse_tasks("- a\n- b\n- c", id_factory=sequential_ids())

        assert tasks == [Task("t1", "a"), Task("t2", "b"), Task("t3", "c")]

    def test_default_ids_are_unique(self):
        tasks = parse_tasks("\n".join(f"- task {i}" for i in range(50)))

        assert len({t.id for t in tasks}) == 50

    @pytest.mark.parametrize("raw", [
        "Here are the tasks:\n- Email Sam",
        "- Email Sam\nLet me know if you need anything else!",
        "  - Email Sam  ",
    ])
    def test_chatty_responses(self, raw):
        """Preamble and closing remarks around the list are ignored."""
        assert [t.text for t in parse_tasks(raw)] == ["Email Sam"]


def test_new_task_id_is_opaque_string():
    task_id = new_task_id()

    assert isinstance(task_id, str)
    assert task_id
    assert task_id != new_task_id()
