"""Shared fixtures for CLI tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from typer.testing import CliRunner

from cvsreplay.cli import app

if TYPE_CHECKING:
    from click.testing import Result


@pytest.fixture
def runner(monkeypatch):
    """Create a CLI test runner with no inherited CVSROOT or config."""
    monkeypatch.delenv("CVSROOT", raising=False)
    monkeypatch.delenv("CVS_REPLAY_CONFIG", raising=False)
    monkeypatch.delenv("CVS_REPLAY_LOG", raising=False)
    return CliRunner()


@pytest.fixture
def push_args(tmp_db, git_repo, fake_cvs):
    """Arguments for a push against the fixture repository and fake cvs."""
    return [
        "push",
        "--branch",
        "main",
        "--cvs",
        str(fake_cvs.path),
        "--cvsroot",
        ":local:/nonexistent/cvsroot",
        "--database",
        tmp_db,
        "--git",
        str(git_repo.path),
    ]


def invoke(runner: CliRunner, args: list[str], **kwargs) -> "Result":
    """Invoke the CLI without swallowing unexpected exceptions."""
    return runner.invoke(app, args, catch_exceptions=False, **kwargs)
