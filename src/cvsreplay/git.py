"""Read-only view of a git repository, backed by pygit2."""

from __future__ import annotations

import enum
import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from os import PathLike, fspath
from typing import Any

import pygit2

from cvsreplay.errors import GitRepositoryError

logger = logging.getLogger(__name__)


class EntryKind(enum.Enum):
    BLOB = "blob"
    TREE = "tree"
    OTHER = "other"

    @classmethod
    def from_type_str(cls, type_str: str) -> EntryKind:
        if type_str == "blob":
            return cls.BLOB
        if type_str == "tree":
            return cls.TREE
        return cls.OTHER


class WalkResult(enum.Enum):
    """What a tree-walk visitor wants to happen next."""

    CONTINUE = "continue"
    SKIP = "skip"  # do not descend into this entry
    ABORT = "abort"


@dataclass(frozen=True)
class TreeEntry:
    name: str
    id: pygit2.Oid
    kind: EntryKind
    filemode: int
    type_name: str = ""


@dataclass(frozen=True)
class CommitInfo:
    """The parts of a commit a replay needs."""

    id: pygit2.Oid
    tree_id: pygit2.Oid
    time: int  # committer time, seconds since the epoch
    raw_message: bytes


@dataclass(frozen=True)
class BlobContent:
    content: bytes
    is_binary: bool


Visitor = Callable[[str, TreeEntry], WalkResult]


class GitRepository:
    """Narrow read-only surface over a pygit2 repository."""

    def __init__(self, repo: pygit2.Repository) -> None:
        self._repo = repo

    @classmethod
    def open(cls, path: str | PathLike[str]) -> GitRepository:
        try:
            return cls(pygit2.Repository(fspath(path)))
        except (pygit2.GitError, KeyError) as e:
            raise GitRepositoryError("open", f"{fspath(path)}: {e}") from e

    def find_branch(self, name: str, remote: bool = False) -> Branch | None:
        """Look up a local (or, with ``remote``, remote-tracking) branch.

        Returns None when no such branch exists; any other failure raises.
        """
        branches = self._repo.branches.remote if remote else self._repo.branches.local
        try:
            branch = branches.get(name)
        except (pygit2.GitError, ValueError) as e:
            raise GitRepositoryError("find_branch", f"{name}: {e}") from e
        if branch is None:
            return None
        return Branch(self, branch)

    def commit(self, oid: pygit2.Oid) -> CommitInfo:
        commit = self._lookup(oid, pygit2.Commit, "commit")
        return CommitInfo(
            id=commit.id,
            tree_id=commit.tree_id,
            time=commit.commit_time,
            raw_message=commit.raw_message,
        )

    def blob(self, oid: pygit2.Oid) -> BlobContent:
        blob = self._lookup(oid, pygit2.Blob, "blob")
        return BlobContent(content=blob.data, is_binary=blob.is_binary)

    def walk_tree(self, tree_id: pygit2.Oid, visitor: Visitor) -> WalkResult:
        """Visit every entry under ``tree_id`` in pre-order.

        ``visitor`` receives the path prefix of the entry (``""`` at the root,
        otherwise ending with ``/``) and the entry. Returning SKIP stops the
        walk from descending into that entry; ABORT ends the walk, and is
        what this method then returns.
        """
        tree = self._lookup(tree_id, pygit2.Tree, "walk_tree")
        return self._walk(tree, "", visitor)

    def _walk(self, tree: pygit2.Tree, prefix: str, visitor: Visitor) -> WalkResult:
        for obj in tree:
            type_name = obj.type_str
            entry = TreeEntry(
                name=obj.name or "",
                id=obj.id,
                kind=EntryKind.from_type_str(type_name),
                filemode=obj.filemode,
                type_name=type_name,
            )
            result = visitor(prefix, entry)
            if result is WalkResult.ABORT:
                return result
            if result is WalkResult.SKIP or entry.kind is not EntryKind.TREE:
                continue
            subtree = self._lookup(entry.id, pygit2.Tree, "walk_tree")
            if self._walk(subtree, f"{prefix}{entry.name}/", visitor) is WalkResult.ABORT:
                return WalkResult.ABORT
        return WalkResult.CONTINUE

    def find_commit(self, oid: pygit2.Oid) -> pygit2.Commit | None:
        """Return the commit with id ``oid``, or None if it is not in the repository."""
        obj = self._repo.get(oid)
        return obj if isinstance(obj, pygit2.Commit) else None

    def _lookup(self, oid: pygit2.Oid, expected: type[Any], operation: str) -> Any:
        try:
            obj = self._repo.get(oid)
        except (pygit2.GitError, ValueError) as e:
            raise GitRepositoryError(operation, f"{oid}: {e}") from e
        if obj is None:
            raise GitRepositoryError(operation, f"object {oid} not found")
        if not isinstance(obj, expected):
            raise GitRepositoryError(
                operation, f"object {oid} is a {obj.type_str}, not a {expected.__name__.lower()}"
            )
        return obj


class Branch:
    """A resolved branch in a GitRepository."""

    def __init__(self, repository: GitRepository, branch: pygit2.Branch) -> None:
        self._repository = repository
        self._branch = branch

    @property
    def name(self) -> str:
        return self._branch.branch_name

    def linear_history(self) -> deque[pygit2.Oid]:
        """Return the branch's first-parent ancestry, oldest first.

        Only the first parent of each commit is followed, so merges show up as
        single commits carrying the merged result.
        """
        try:
            commit = self._branch.peel(pygit2.Commit)
        except (pygit2.GitError, ValueError, KeyError) as e:
            raise GitRepositoryError("linear_history", f"{self.name}: {e}") from e

        history: deque[pygit2.Oid] = deque()
        while True:
            history.appendleft(commit.id)
            if not commit.parent_ids:
                break
            parent_id = commit.parent_ids[0]
            parent = self._repository.find_commit(parent_id)
            if parent is None:
                logger.warning(
                    "First parent %s of %s is missing; treating %s as the root commit",
                    parent_id,
                    commit.id,
                    commit.id,
                )
                break
            commit = parent
        return history
