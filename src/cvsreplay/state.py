"""In-memory bookkeeping of what a replay has written to the working copy."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path, PurePosixPath

import pygit2


@dataclass(frozen=True)
class Environment:
    """Bases shared by every File minted from one ReplayState."""

    absolute_base: Path
    cvs_base: Path


@dataclass(frozen=True)
class File:
    """A path in the replayed tree.

    Equality and hashing use ``relative_path`` only, so files minted from
    different states compare equal when they name the same path.
    """

    relative_path: PurePosixPath
    environment: Environment = field(compare=False, repr=False)

    def absolute_path(self) -> Path:
        """Where the file lives on disk."""
        env = self.environment
        return env.absolute_base.joinpath(env.cvs_base, self.relative_path)

    def cvs_relative_path(self) -> Path:
        """The path handed to cvs, relative to the checkout root."""
        return self.environment.cvs_base.joinpath(self.relative_path)


class CommitState:
    """Files added and seen while applying a single commit."""

    def __init__(self) -> None:
        # Lists, because cvs needs directories added before their contents
        # and the tree is walked in pre-order.
        self._binary: list[File] = []
        self._non_binary: list[File] = []
        self._seen: set[File] = set()

    @property
    def seen(self) -> frozenset[File]:
        return frozenset(self._seen)

    def iter_new_binary_files(self) -> Iterator[File]:
        return iter(self._binary)

    def iter_new_non_binary_files(self) -> Iterator[File]:
        return iter(self._non_binary)

    def new_file(self, file: File, binary: bool) -> None:
        if binary:
            self._binary.append(file)
        else:
            self._non_binary.append(file)

    def seen_file(self, file: File) -> None:
        self._seen.add(file)

    def was_seen(self, file: File) -> bool:
        return file in self._seen


class ReplayState:
    """Every file written during a replay and the blob last written there."""

    def __init__(self, absolute_base: str | PathLike[str], cvs_base: str | PathLike[str]) -> None:
        self.environment = Environment(
            absolute_base=Path(absolute_base),
            cvs_base=Path(cvs_base),
        )
        self._known_files: dict[File, pygit2.Oid] = {}

    def __len__(self) -> int:
        return len(self._known_files)

    def __contains__(self, file: object) -> bool:
        return file in self._known_files

    def file(self, path: str | PathLike[str]) -> File:
        return File(relative_path=PurePosixPath(path), environment=self.environment)

    def get_oid(self, file: File) -> pygit2.Oid | None:
        return self._known_files.get(file)

    def save_oid(self, file: File, oid: pygit2.Oid) -> None:
        self._known_files[file] = oid

    def remove_files_unseen_in_commit(self, commit: CommitState) -> set[File]:
        """Forget every known file ``commit`` did not see and return them."""
        removed = {f for f in self._known_files if not commit.was_seen(f)}
        for f in removed:
            del self._known_files[f]
        return removed
