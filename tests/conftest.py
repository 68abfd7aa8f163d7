"""Shared fixtures: a scripted stand-in for the vellum binary."""

import os
import stat

import pytest

from vellum_integration.backend import BackendResult
from vellum_integration.codec import encode_move
from vellum_integration.config import VellumConfig
from vellum_integration.context import Session, ShellContext


def _result(args, stdout="", exit_code=0):
    return BackendResult(args=list(args), stdout=stdout, stderr="", exit_code=exit_code, duration_ms=0)


class FakeBackend:
    """Records every call and answers ``move`` from a queue of replies.

    A reply of None simulates a failed call (non-zero exit, no output).
    """

    def __init__(self, replies=None, history_output="", history_exit=0,
                 session_token="0190-session", timestamp="2026-10-16T09:00:00+00:00"):
        self.replies = list(replies or [])
        self.history_output = history_output
        self.history_exit = history_exit
        self.session_token = session_token
        self.timestamp = timestamp
        self.calls = []
        self.requests = []
        self.stored = []
        self.sessions = []

    def init_session(self):
        self.calls.append(["init", "session"])
        return self.session_token

    def init_timestamp(self):
        self.calls.append(["init", "timestamp"])
        return self.timestamp

    def store(self, command, session=None):
        self.calls.append(["store", "--", command])
        self.stored.append(command)
        self.sessions.append(session)
        return _result(["store", "--", command])

    def move(self, request, session=None):
        args = encode_move(request)
        self.calls.append(args)
        self.requests.append(request)
        self.sessions.append(session)
        reply = self.replies.pop(0) if self.replies else None
        if reply is None:
            return _result(args, exit_code=1)
        return _result(args, stdout=reply + "\n")

    def history(self, extra_args=None, session=None):
        args = ["history", "--fzf"] + list(extra_args or [])
        self.calls.append(args)
        self.sessions.append(session)
        return _result(args, stdout=self.history_output, exit_code=self.history_exit)

    def move_calls(self):
        return [c for c in self.calls if c and c[0] == "move"]


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def context():
    return ShellContext(session=Session(token="0190-session"), config=VellumConfig())


@pytest.fixture
def fzf_path(tmp_path):
    """A directory holding an executable named fzf, for PATH lookups."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    fzf = bin_dir / "fzf"
    fzf.write_text("#!/bin/sh\nexit 0\n")
    fzf.chmod(fzf.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(bin_dir)


@pytest.fixture
def empty_path(tmp_path):
    bin_dir = tmp_path / "empty"
    bin_dir.mkdir()
    return str(bin_dir)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """Keep the developer's own vellum/fzf settings out of the tests."""
    for name in list(os.environ):
        if name.startswith(("VELLUM_", "FZF_", "__VELLUM")):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
