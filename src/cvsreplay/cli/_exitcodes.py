"""Process exit codes used by the CLI."""

from __future__ import annotations

from cvsreplay.errors import (
    ConfigError,
    CvsCommandError,
    GitRepositoryError,
    MetadataError,
    TreeWalkError,
)

SUCCESS = 0
GENERAL_ERROR = 1
USAGE_ERROR = 2
DATABASE_ERROR = 3
GIT_ERROR = 4
CVS_ERROR = 5
FILESYSTEM_ERROR = 6


def for_exception(exc: BaseException) -> int:
    """Pick the exit code for an error raised by a command."""
    if isinstance(exc, TreeWalkError):
        cause = exc.__cause__
        if cause is not None and not isinstance(cause, TreeWalkError):
            code = for_exception(cause)
            return GIT_ERROR if code == GENERAL_ERROR else code
        return GIT_ERROR
    if isinstance(exc, ConfigError):
        return USAGE_ERROR
    if isinstance(exc, MetadataError):
        return DATABASE_ERROR
    if isinstance(exc, GitRepositoryError):
        return GIT_ERROR
    if isinstance(exc, CvsCommandError):
        return CVS_ERROR
    if isinstance(exc, OSError):
        return FILESYSTEM_ERROR
    return GENERAL_ERROR
