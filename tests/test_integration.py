"""
Integration tests for Voice Notes components.

These tests verify that components work together correctly and catch
common integration issues like missing methods or incompatible interfaces.
"""

import ast
import inspect
from pathlib import Path
from typing import Set
from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest

from voice_notes.ai.providers import CompletionProvider, GeminiProvider, RequestFailedError
from voice_notes.config import Settings
from voice_notes.device.permissions import PermissionGate
from voice_notes.main import NotesApp
from voice_notes.notes.session import NotesSession
from voice_notes.notes.state import NoteState
from voice_notes.ui.terminal import TerminalUI

PACKAGE_DIR = Path(__file__).parent.parent / "voice_notes"


def extract_method_calls(file_path: Path, target_attr: str) -> Set[str]:
    """Collect names of methods called as self.<target_attr>.<method>(...)."""
    tree = ast.parse(file_path.read_text())
    method_calls = set()

    for node in ast.walk(tree):
        if (isinstance(node, ast.Call) and
                isinstance(node.func, ast.Attribute) and
                isinstance(node.func.value, ast.Attribute) and
                isinstance(node.func.value.value, ast.Name) and
                node.func.value.value.id == 'self' and
                node.func.value.attr == target_attr):
            method_calls.add(node.func.attr)

    return method_calls


def make_app(provider=None, ui=None):
    provider = provider or AsyncMock(spec=CompletionProvider)
    ui = ui or AsyncMock(spec=TerminalUI)
    permissions = Mock(spec=PermissionGate)
    permissions.request_storage_permission.return_value = True
    permissions.request_audio_permission.return_value = True
    app = NotesApp(Settings(api_key="key"), provider=provider, ui=ui, permissions=permissions)
    return app, provider, ui, permissions


class TestMethodExistence:
    """Test that every UI method the app and session call exists."""

    @pytest.mark.parametrize("module", ["main.py", "notes/session.py"])
    def test_ui_calls_exist_on_terminal_ui(self, module):
        called = extract_method_calls(PACKAGE_DIR / module, "ui")

        assert called, f"expected UI calls in {module}"
        missing = {name for name in called if not callable(getattr(TerminalUI, name, None))}
        assert not missing, f"TerminalUI missing methods: {sorted(missing)}"

    def test_session_calls_exist_on_notes_session(self):
        called = extract_method_calls(PACKAGE_DIR / "main.py", "session")

        missing = {name for name in called if not hasattr(NotesSession, name)}
        assert not missing, f"NotesSession missing methods: {sorted(missing)}"

    def test_async_signatures(self):
        """Methods awaited by callers must be coroutines."""
        for name in ["show_welcome", "show_help", "prompt_input", "start_progress",
                     "show_notice", "show_success", "clear_input", "show_notes",
                     "show_permission_status"]:
            assert inspect.iscoroutinefunction(getattr(TerminalUI, name)), name
        assert not inspect.iscoroutinefunction(TerminalUI.stop_progress)

        for name in ["summarize", "extract_tasks", "share_notes", "clear_all"]:
            assert inspect.iscoroutinefunction(getattr(NotesSession, name)), name

        assert inspect.iscoroutinefunction(GeminiProvider.complete)


@pytest.mark.asyncio
class TestMockedIntegration:
    """Test the app loop with mocked provider and view."""

    async def test_dictation_then_tasks_then_share(self):
        app, provider, ui, _ = make_app()
        provider.complete.return_value = "Sure!\n- Email the client\n- Update the roadmap"

        assert await app.handle_input("Remember to email the client") is True
        assert await app.handle_input("and update the roadmap") is True
        assert await app.handle_input("/tasks") is True

        assert app.session.state.transcript == "Remember to email the client\nand update the roadmap"
        assert [t.text for t in app.session.state.tasks] == ["Email the client", "Update the roadmap"]
        ui.start_progress.assert_awaited_once()
        ui.stop_progress.assert_called_once()
        ui.show_notes.assert_awaited_once_with(app.session.state)

        with patch('pyperclip.copy') as mock_clipboard:
            await app.handle_input("/share")

        mock_clipboard.assert_called_once_with(
            "Remember to email the client\nand update the roadmap\n\n"
            "Tasks:\n- Email the client\n- Update the roadmap\n"
        )
        ui.show_success.assert_awaited_once()

    async def test_summarize_error_is_a_notice(self):
        app, provider, ui, _ = make_app()
        provider.complete.side_effect = RequestFailedError(500)

        await app.handle_input("some notes")
        await app.handle_input("/summarize")

        ui.show_notice.assert_awaited_once_with("Error generating summary")
        ui.stop_progress.assert_called_once()
        ui.show_notes.assert_not_called()

    async def test_blank_lines_are_not_added(self):
        app, _, _, _ = make_app()

        await app.handle_input("   ")

        assert app.session.state.transcript == ""

    async def test_clear_and_unknown_command(self):
        app, _, ui, _ = make_app()
        await app.handle_input("notes")

        await app.handle_input("/clear")
        await app.handle_input("/bogus")

        assert app.session.state.transcript == ""
        ui.clear_input.assert_awaited_once()
        ui.show_notice.assert_awaited_once_with("Unknown command: /bogus")

    @pytest.mark.parametrize("command", ["/quit", "/exit", "/q", "/QUIT"])
    async def test_quit_commands(self, command):
        app, _, _, _ = make_app()

        assert await app.handle_input(command) is False

    async def test_loading_refuses_new_request(self):
        app, provider, ui, _ = make_app()
        app.session.state = NoteState(transcript="notes", loading=True)

        await app.handle_input("/summarize")

        provider.complete.assert_not_called()
        ui.show_notice.assert_awaited_once_with("Still processing the previous request")

    async def test_run_session_until_input_closes(self):
        app, _, ui, permissions = make_app()
        ui.prompt_input.side_effect = ["first line", "/show", None]

        await app.run_session(request_microphone=True)

        permissions.request_storage_permission.assert_called_once()
        permissions.request_audio_permission.assert_called_once()
        ui.show_permission_status.assert_awaited_once_with(True)
        ui.show_welcome.assert_awaited_once()
        ui.show_notes.assert_awaited_once()
        assert app.session.state.transcript == "first line"


@pytest.mark.asyncio
async def test_gemini_end_to_end_summary():
    """Real provider over a mock transport, driven through the app."""
    def handler(request):
        return httpx.Response(200, json={
            "candidates": [{"content": {"parts": [{"text": "Launch moved to Friday."}]}}]
        })

    provider = GeminiProvider(api_key="key", transport=httpx.MockTransport(handler))
    app, _, ui, _ = make_app(provider=provider)

    await app.handle_input("We talked about moving the launch to Friday.")
    await app.handle_input("/summarize")

    assert app.session.state.summary == "Launch moved to Friday."
    assert app.session.state.loading is False
    ui.show_notice.assert_not_called()


class TestComponentInitialization:
    """Test that all components can be instantiated without errors."""

    def test_default_wiring(self):
        app = NotesApp(Settings(api_key="key"))

        assert isinstance(app.ui, TerminalUI)
        assert isinstance(app.provider, GeminiProvider)
        assert isinstance(app.session, NotesSession)
        assert isinstance(app.permissions, PermissionGate)
        assert app.session.state.transcript == ""
