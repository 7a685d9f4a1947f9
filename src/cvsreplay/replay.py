"""Replay a git branch's linear history onto a CVS module."""

from __future__ import annotations

import logging
import os
import stat
import tempfile
from dataclasses import dataclass
from pathlib import Path

import pygit2

from cvsreplay.config import ReplayConfig
from cvsreplay.cvs import CvsContext, CvsRepository
from cvsreplay.errors import (
    BranchAlreadyReplayedError,
    BranchNotFoundError,
    TargetNotEmptyError,
    TreeWalkError,
)
from cvsreplay.git import CommitInfo, EntryKind, GitRepository, TreeEntry, WalkResult
from cvsreplay.sanitize import sanitize_branch
from cvsreplay.state import CommitState, ReplayState
from cvsreplay.storage import MetadataStore

logger = logging.getLogger(__name__)

# Directory cvs keeps its bookkeeping in, inside every checked-out directory.
CVS_ADMIN_DIR = "CVS"
# Administrative module that comes along when the whole repository (`.`) is checked out.
CVSROOT_DIR = "CVSROOT"


@dataclass(frozen=True)
class ReplayResult:
    git_branch: str
    cvs_branch: str
    commits: int


def replay_branch(config: ReplayConfig) -> ReplayResult:
    """Replay ``config.branch`` onto a fresh checkout of ``config.module``.

    The branch's linear history is recorded in the metadata store before the
    checkout is touched, so an interrupted replay is still refused later.
    """
    cvs = CvsContext(config.cvs)
    with MetadataStore.open(config.database) as store:
        git = GitRepository.open(config.git)
        branch = git.find_branch(config.branch, remote=config.remote)
        if branch is None:
            raise BranchNotFoundError(config.branch, remote=config.remote)

        existing = store.get_cvs_branch(config.branch)
        if existing is not None:
            raise BranchAlreadyReplayedError(config.branch, existing)

        cvs_branch = sanitize_branch(config.branch)
        commits = branch.linear_history()
        store.write_branch(config.branch, cvs_branch, commits)
    logger.info(
        "Replaying %d commit(s) of %s as %s", len(commits), config.branch, cvs_branch
    )

    with tempfile.TemporaryDirectory(prefix="cvs-replay-") as workdir:
        cvs_repo = cvs.checkout(config.cvsroot, config.module, workdir)
        replayer = Replayer(git, cvs_repo, workdir, config.target, module=config.module)
        try:
            replayer.prepare_target()
        except TargetNotEmptyError as e:
            raise TargetNotEmptyError(e.path, recorded_branch=config.branch) from None
        for i, oid in enumerate(commits, start=1):
            replayer.apply_commit(oid)
            logger.info("commit %d/%d: %s", i, len(commits), oid)

    return ReplayResult(git_branch=config.branch, cvs_branch=cvs_branch, commits=len(commits))


class Replayer:
    """Materialises commits one at a time onto a cvs working copy."""

    def __init__(
        self,
        git: GitRepository,
        cvs_repo: CvsRepository,
        workdir: str | os.PathLike[str],
        target: str,
        module: str = ".",
    ) -> None:
        self.git = git
        self.cvs_repo = cvs_repo
        self.target = target
        self.module = module
        self.state = ReplayState(workdir, target)

    @property
    def absolute_target(self) -> Path:
        env = self.state.environment
        return env.absolute_base / env.cvs_base

    def _bookkeeping_entries(self) -> frozenset[str]:
        """Names in the target directory that cvs itself put there."""
        if self.module == "." and self.state.environment.cvs_base == Path("."):
            return frozenset((CVS_ADMIN_DIR, CVSROOT_DIR))
        return frozenset((CVS_ADMIN_DIR,))

    def prepare_target(self) -> None:
        """Create the target directory and register it with cvs.

        The add is issued even for ``.``; cvs accepts adding the checkout root.
        A target holding only cvs bookkeeping counts as empty.
        """
        absolute = self.absolute_target
        ignored = self._bookkeeping_entries()
        if absolute.is_dir() and any(p.name not in ignored for p in absolute.iterdir()):
            raise TargetNotEmptyError(self.state.environment.cvs_base)
        logger.debug("target: %s", absolute)
        absolute.mkdir(parents=True, exist_ok=True)
        self.cvs_repo.add(self.target, binary=False)

    def apply_commit(self, oid: pygit2.Oid) -> CommitState:
        """Write one commit's tree to disk and commit it to cvs."""
        commit = self.git.commit(oid)
        commit_state = CommitState()
        failure: list[tuple[str, Exception]] = []

        def visit(prefix: str, entry: TreeEntry) -> WalkResult:
            try:
                return self._visit_entry(prefix, entry, commit, commit_state)
            except Exception as e:
                logger.error(
                    "error walking entry with path %r and name %r: %s", prefix, entry.name, e
                )
                failure.append((prefix + entry.name, e))
                return WalkResult.ABORT

        if self.git.walk_tree(commit.tree_id, visit) is WalkResult.ABORT:
            path, cause = failure[0]
            raise TreeWalkError(str(oid), path) from cause

        removed = sorted(
            self.state.remove_files_unseen_in_commit(commit_state),
            key=lambda f: f.relative_path,
        )
        # The working copy has to reflect the deletion before cvs remove.
        for file in removed:
            file.absolute_path().unlink()
        self.cvs_repo.remove_multiple(f.cvs_relative_path() for f in removed)

        self.cvs_repo.add_multiple(
            (f.cvs_relative_path() for f in commit_state.iter_new_non_binary_files()),
            binary=False,
        )
        self.cvs_repo.add_multiple(
            (f.cvs_relative_path() for f in commit_state.iter_new_binary_files()),
            binary=True,
        )

        self.cvs_repo.commit(commit.raw_message)
        return commit_state

    def _visit_entry(
        self,
        prefix: str,
        entry: TreeEntry,
        commit: CommitInfo,
        commit_state: CommitState,
    ) -> WalkResult:
        git_path = prefix + entry.name if entry.name else prefix.rstrip("/")
        file = self.state.file(git_path)
        absolute = file.absolute_path()

        if entry.kind is EntryKind.BLOB:
            last_oid = self.state.get_oid(file)
            if last_oid != entry.id:
                blob = self.git.blob(entry.id)
                absolute.write_bytes(blob.content)

                # cvs goes by modification time.
                os.utime(absolute, (commit.time, commit.time))

                if entry.filemode & 0o111:
                    mode = stat.S_IMODE(absolute.stat().st_mode)
                    absolute.chmod(mode | 0o111)

                if last_oid is None:
                    commit_state.new_file(file, blob.is_binary)
                self.state.save_oid(file, entry.id)

            commit_state.seen_file(file)
            return WalkResult.CONTINUE

        if entry.kind is EntryKind.TREE:
            if not absolute.exists():
                absolute.mkdir(parents=True)
                # Directories have to be cvs added too, always as text.
                commit_state.new_file(file, binary=False)
            return WalkResult.CONTINUE

        logger.warning("Skipping %s: unsupported entry kind %r", git_path, entry.type_name)
        return WalkResult.SKIP
