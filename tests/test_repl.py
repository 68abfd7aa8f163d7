"""Tests for the prompt_toolkit-hosted shell."""

import subprocess
from types import SimpleNamespace

import pytest
from prompt_toolkit.buffer import Buffer
from prompt_toolkit.document import Document
from prompt_toolkit.keys import Keys

import vellum_repl
from conftest import FakeBackend
from vellum_integration.config import VellumConfig
from vellum_integration.hooks import HookEvent
from vellum_integration.session import SETUP_SENTINEL


@pytest.fixture
def commands(monkeypatch):
    """Capture commands the shell would hand to /bin/sh."""
    ran = []

    def fake_run(command, **kwargs):
        ran.append((command, kwargs))
        return subprocess.CompletedProcess(command, 0)

    monkeypatch.setattr(vellum_repl.subprocess, "run", fake_run)
    return ran


def make_shell(path, backend=None, environ=None):
    environ = {"PATH": path, "HOME": "/home/user"} if environ is None else environ
    return vellum_repl.VellumShell(
        config=VellumConfig(),
        environ=environ,
        backend=backend or FakeBackend(),
        interactive=True,
    )


def press(kb, key, buffer):
    (binding,) = kb.get_bindings_for_keys((key,))
    binding.handler(SimpleNamespace(current_buffer=buffer, arg=1))


class TestVellumShell:
    def test_start_activates_integration(self, fzf_path):
        shell = make_shell(fzf_path)
        assert shell.start()
        assert shell.registry.names(HookEvent.PREEXEC) == ["vellum-capture"]
        assert shell.environ[SETUP_SENTINEL] == "1"

    def test_missing_selector_still_runs_commands(self, empty_path, commands, capsys):
        backend = FakeBackend()
        shell = make_shell(empty_path, backend)

        assert not shell.start()
        shell.execute("echo hi")

        assert [c for c, _ in commands] == ["echo hi"]
        assert backend.stored == []
        assert "fzf is required!" in capsys.readouterr().err

    def test_each_command_is_stored_once(self, fzf_path, commands):
        backend = FakeBackend()
        shell = make_shell(fzf_path, backend)
        shell.start()
        shell.start()

        shell.execute("make test ")
        shell.execute("   ")

        assert backend.stored == ["make test "]

    def test_second_shell_on_same_environment_is_skipped(self, fzf_path):
        environ = {"PATH": fzf_path}
        assert make_shell(fzf_path, environ=environ).start()
        assert not make_shell(fzf_path, environ=environ).start()

    def test_sentinel_is_not_inherited_by_commands(self, fzf_path, commands):
        shell = make_shell(fzf_path)
        shell.start()
        shell.execute("env")

        env = commands[0][1]["env"]
        assert SETUP_SENTINEL not in env
        assert env["VELLUM_SESSION"] == "0190-session"

    def test_precmd_resets_cursor(self, fzf_path):
        shell = make_shell(fzf_path)
        shell.start()
        shell.integration.context.cursor = "10"

        shell.registry.fire(HookEvent.PRECMD)

        assert shell.integration.context.cursor == ""

    def test_cd_and_exit(self, fzf_path, tmp_path, commands):
        shell = make_shell(fzf_path)
        shell.start()

        assert shell.execute(f"cd {tmp_path}") == 0
        assert shell.cwd == tmp_path.resolve()
        assert shell.execute("cd /definitely/not/here") == 1
        shell.execute("exit 3")

        assert not shell.running
        assert shell.last_exit == 3
        assert commands == []


class TestKeyBindings:
    def _integration(self, fzf_path, backend):
        shell = make_shell(fzf_path, backend)
        shell.start()
        return shell.integration

    def test_up_up_down(self, fzf_path):
        backend = FakeBackend(replies=["10|git commit", "7|git checkout main", "10|git commit"])
        integration = self._integration(fzf_path, backend)
        kb = vellum_repl.bind_keys(integration)
        buffer = Buffer()
        buffer.text = "git co"

        press(kb, Keys.Up, buffer)
        press(kb, Keys.Up, buffer)
        press(kb, Keys.Down, buffer)

        assert buffer.text == "git commit"
        assert buffer.cursor_position == len("git commit")
        assert integration.context.cursor == "10"
        assert backend.requests[0].prefix == "git co"

    def test_multiline_buffer_moves_cursor_instead(self, fzf_path):
        backend = FakeBackend(replies=["1|ls"])
        integration = self._integration(fzf_path, backend)
        kb = vellum_repl.bind_keys(integration)
        buffer = Buffer(multiline=True)
        buffer.document = Document("echo a\necho b", cursor_position=len("echo a\necho b"))

        press(kb, Keys.Up, buffer)

        assert buffer.text == "echo a\necho b"
        assert buffer.document.cursor_position_row == 0
        assert backend.move_calls() == []

    def test_down_on_last_line_of_multiline_buffer_navigates(self, fzf_path):
        backend = FakeBackend(replies=["1|ls"])
        integration = self._integration(fzf_path, backend)
        kb = vellum_repl.bind_keys(integration)
        buffer = Buffer(multiline=True)
        buffer.document = Document("echo a\necho b", cursor_position=len("echo a\necho b"))

        press(kb, Keys.Down, buffer)

        assert buffer.text == "ls"

    def test_search_replaces_buffer(self, fzf_path, monkeypatch):
        backend = FakeBackend(history_output="4\tmake test\x00")
        integration = self._integration(fzf_path, backend)
        monkeypatch.setattr(vellum_repl, "run_in_terminal", lambda func: func())
        monkeypatch.setattr(
            integration.search_bridge, "run_selector",
            lambda config, records, query: ("4\tmake test\n", 0),
        )
        kb = vellum_repl.bind_keys(integration)
        buffer = Buffer()
        buffer.text = "make"

        press(kb, Keys.ControlR, buffer)

        assert buffer.text == "make test"
        assert integration.context.last_selected_id == "4"


class TestMain:
    @pytest.mark.parametrize("content", ["selector:\n  - fzf\n", "move: [unclosed\n"])
    def test_bad_config_is_reported(self, tmp_path, content, capsys):
        path = tmp_path / "shell.yaml"
        path.write_text(content)

        with pytest.raises(SystemExit) as exc:
            vellum_repl.main(["--config", str(path)])

        assert exc.value.code == 2
        assert "cannot load config" in capsys.readouterr().err
