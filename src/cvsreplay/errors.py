"""Structured error types for cvs-replay."""

from __future__ import annotations

import shlex
from collections.abc import Sequence
from os import PathLike, fsdecode


class ReplayError(Exception):
    """Base error for all cvs-replay errors."""


class ConfigError(ReplayError):
    """Raised when the replay configuration is missing or invalid."""


class BranchNotFoundError(ReplayError):
    """Raised when the requested git branch cannot be resolved."""

    def __init__(self, branch: str, remote: bool = False) -> None:
        self.branch = branch
        self.remote = remote
        kind = "remote" if remote else "local"
        super().__init__(f"Cannot find {kind} branch '{branch}'")


class BranchAlreadyReplayedError(ReplayError):
    """Raised when the metadata store already maps the branch.

    Updating a branch that has already been replayed is not supported, so
    this is a refusal rather than a no-op.
    """

    def __init__(self, git_branch: str, cvs_branch: str) -> None:
        self.git_branch = git_branch
        self.cvs_branch = cvs_branch
        super().__init__(
            f"Branch '{git_branch}' was already replayed as '{cvs_branch}'; "
            "update of existing branch not yet supported"
        )


class TargetNotEmptyError(ReplayError):
    """Raised when the target directory already has content in the checkout."""

    def __init__(
        self, path: str | PathLike[str], recorded_branch: str | None = None
    ) -> None:
        self.path = fsdecode(path)
        self.recorded_branch = recorded_branch
        message = f"Target directory '{self.path}' already exists and is not empty"
        if recorded_branch is not None:
            message += (
                f"; branch '{recorded_branch}' is already recorded in the metadata"
                " database, so it will be refused on retry"
            )
        super().__init__(message)


class MetadataError(ReplayError):
    """Raised when metadata store operations fail."""

    def __init__(self, operation: str, detail: str) -> None:
        self.operation = operation
        self.detail = detail
        super().__init__(f"Metadata store error during {operation}: {detail}")


class MigrationError(MetadataError):
    """Raised when a schema migration fails or diverges from the shipped one."""

    def __init__(self, detail: str) -> None:
        super().__init__("migration", detail)


class GitRepositoryError(ReplayError):
    """Raised when reading from the git repository fails."""

    def __init__(self, operation: str, detail: str) -> None:
        self.operation = operation
        self.detail = detail
        super().__init__(f"Git error during {operation}: {detail}")


class TreeWalkError(ReplayError):
    """Raised when a tree walk was aborted; the cause holds the underlying failure."""

    def __init__(self, commit: str, path: str) -> None:
        self.commit = commit
        self.path = path
        super().__init__(f"Tree walk of commit {commit} aborted at '{path}'")


class CvsCommandError(ReplayError):
    """Raised when a cvs invocation exits non-zero or cannot be started."""

    def __init__(self, argv: Sequence[str | PathLike[str]], returncode: int | None) -> None:
        self.argv = [fsdecode(a) for a in argv]
        self.returncode = returncode
        command = shlex.join(self.argv)
        if returncode is None:
            super().__init__(f"Could not run cvs: {command}")
        else:
            super().__init__(f"cvs exited with status {returncode}: {command}")
