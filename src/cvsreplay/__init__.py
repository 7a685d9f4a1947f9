"""cvs-replay: one-way replay of git branch history onto CVS."""

__version__ = "0.1.0"

from cvsreplay.config import ReplayConfig
from cvsreplay.cvs import CvsContext, CvsRepository
from cvsreplay.errors import (
    BranchAlreadyReplayedError,
    BranchNotFoundError,
    ConfigError,
    CvsCommandError,
    GitRepositoryError,
    MetadataError,
    MigrationError,
    ReplayError,
    TargetNotEmptyError,
    TreeWalkError,
)
from cvsreplay.git import GitRepository
from cvsreplay.replay import ReplayResult, Replayer, replay_branch
from cvsreplay.sanitize import sanitize_branch
from cvsreplay.storage import MetadataStore

__all__ = [
    "__version__",
    "ReplayConfig",
    "CvsContext",
    "CvsRepository",
    "GitRepository",
    "MetadataStore",
    "ReplayResult",
    "Replayer",
    "replay_branch",
    "sanitize_branch",
    "ReplayError",
    "ConfigError",
    "BranchNotFoundError",
    "BranchAlreadyReplayedError",
    "TargetNotEmptyError",
    "MetadataError",
    "MigrationError",
    "GitRepositoryError",
    "TreeWalkError",
    "CvsCommandError",
]
