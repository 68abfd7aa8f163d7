"""Tests for arrow-key navigation."""

import pytest

from conftest import FakeBackend
from vellum_integration.cursor import (
    Direction,
    Idle,
    Navigating,
    Navigator,
    cursor_state,
)
from vellum_integration.hooks import PromptResetHook


class TestPrefixSemantics:
    @pytest.mark.parametrize("steps", [1, 2, 5])
    @pytest.mark.parametrize("direction", [Direction.PREVIOUS, Direction.NEXT])
    def test_prefix_only_on_first_request(self, context, steps, direction):
        backend = FakeBackend(replies=[f"{i}|git co{i}" for i in range(steps)])
        navigator = Navigator(backend)

        buffer = "git co"
        for _ in range(steps):
            outcome = navigator.navigate(context, direction, buffer)
            buffer = outcome.buffer

        assert backend.requests[0].prefix == "git co"
        assert backend.requests[0].cursor == ""
        assert all(r.prefix is None for r in backend.requests[1:])

    def test_later_requests_ignore_edited_buffer(self, context):
        backend = FakeBackend(replies=["10|git commit", "7|git checkout main"])
        navigator = Navigator(backend)

        navigator.navigate(context, Direction.PREVIOUS, "git co")
        navigator.navigate(context, Direction.PREVIOUS, "git commit --amend")

        assert backend.move_calls()[1] == ["move", "--with-id", "--session", "--", "-1", "10"]

    def test_move_args_are_relayed(self, context):
        context.config.move_args = ["--no-duplicates"]
        backend = FakeBackend(replies=["1|ls"])
        Navigator(backend).navigate(context, Direction.PREVIOUS, "")
        assert "--no-duplicates" in backend.move_calls()[0]

    def test_session_is_passed_to_backend(self, context):
        backend = FakeBackend(replies=["1|ls"])
        Navigator(backend).navigate(context, Direction.PREVIOUS, "")
        assert backend.requests[0].session == "0190-session"
        assert backend.sessions[0] is context.session


class TestScenario:
    def test_previous_previous_next(self, context):
        backend = FakeBackend(replies=["10|git commit", "7|git checkout main", "10|git commit"])
        navigator = Navigator(backend)

        buffer = "git co"
        for direction in (Direction.PREVIOUS, Direction.PREVIOUS, Direction.NEXT):
            buffer = navigator.navigate(context, direction, buffer).buffer

        calls = backend.move_calls()
        assert calls[0] == ["move", "--with-id", "--session", "--prefix=git co", "--", "-1", ""]
        assert calls[1] == ["move", "--with-id", "--session", "--", "-1", "10"]
        assert calls[2] == ["move", "--with-id", "--session", "--", "1", "7"]
        assert buffer == "git commit"
        assert context.cursor == "10"


class TestFailures:
    def test_malformed_reply_is_a_no_op(self, context):
        context.cursor = "10"
        backend = FakeBackend(replies=["no delimiter here"])
        outcome = Navigator(backend).navigate(context, Direction.PREVIOUS, "git commit")

        assert not outcome.changed
        assert context.cursor == "10"

    def test_malformed_reply_from_idle_stays_idle(self, context):
        backend = FakeBackend(replies=["", ""])
        navigator = Navigator(backend)
        navigator.navigate(context, Direction.PREVIOUS, "git")
        navigator.navigate(context, Direction.PREVIOUS, "git")

        assert cursor_state(context) == Idle()
        assert [r.prefix for r in backend.requests] == ["git", "git"]

    def test_failed_call_leaves_state(self, context):
        context.cursor = "4"
        backend = FakeBackend(replies=[None])
        outcome = Navigator(backend).navigate(context, Direction.NEXT, "ls")

        assert outcome.buffer is None
        assert context.cursor == "4"

    def test_empty_id_is_accepted(self, context):
        context.cursor = "4"
        backend = FakeBackend(replies=["|git st"])
        outcome = Navigator(backend).navigate(context, Direction.NEXT, "ls")

        assert outcome.buffer == "git st"
        assert cursor_state(context) == Idle()


class TestMultiline:
    def test_newline_in_buffer_bypasses_backend(self, context):
        backend = FakeBackend(replies=["1|ls"])
        outcome = Navigator(backend).navigate(context, Direction.PREVIOUS, "for x in a b\ndo")

        assert outcome.bypass
        assert not outcome.changed
        assert backend.calls == []

    def test_probe_without_newline_navigates(self, context):
        backend = FakeBackend(replies=["1|ls"])
        outcome = Navigator(backend).navigate(context, Direction.NEXT, "echo a\necho b", probe="")

        assert outcome.buffer == "ls"
        assert len(backend.calls) == 1

    def test_probe_with_newline_bypasses(self, context):
        backend = FakeBackend()
        outcome = Navigator(backend).navigate(context, Direction.NEXT, "echo a", probe="\nrest")
        assert outcome.bypass
        assert backend.calls == []


class TestReset:
    @pytest.mark.parametrize("entry_id", ["10", "0190a3f2-7c1e", ""])
    def test_reset_always_yields_idle(self, context, entry_id):
        context.cursor = entry_id
        PromptResetHook(context)()
        assert cursor_state(context) == Idle()

    def test_state_reflects_cursor(self, context):
        assert cursor_state(context) == Idle()
        context.cursor = "3"
        assert cursor_state(context) == Navigating("3")

    def test_sequence_restarts_with_prefix_after_reset(self, context):
        backend = FakeBackend(replies=["10|git commit", "10|git commit"])
        navigator = Navigator(backend)

        navigator.navigate(context, Direction.PREVIOUS, "git co")
        PromptResetHook(context)()
        navigator.navigate(context, Direction.PREVIOUS, "git")

        assert backend.requests[1].prefix == "git"
        assert backend.requests[1].cursor == ""
