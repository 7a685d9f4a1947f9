"""SQLite-backed metadata store recording which branches have been replayed."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable
from dataclasses import dataclass
from os import PathLike, fspath
from types import TracebackType
from typing import Any

from cvsreplay.errors import MetadataError
from cvsreplay.migration import run_migrations


@dataclass(frozen=True)
class BranchMapping:
    """A git branch, the CVS branch it was replayed as, and its history length."""

    git_branch: str
    cvs_branch: str
    commit_count: int = 0


class MetadataStore:
    """Branch mappings and linear histories of replayed branches.

    The schema is provisioned by the embedded migrations whenever the store
    is opened; opening an up-to-date store changes nothing.
    """

    def __init__(self, db_path: str | PathLike[str]) -> None:
        self.db_path = fspath(db_path)
        try:
            self._conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise MetadataError("open", f"{self.db_path}: {e}") from e
        try:
            self._conn.execute("PRAGMA foreign_keys=ON")
            run_migrations(self._conn)
        except sqlite3.Error as e:
            self._conn.close()
            raise MetadataError("open", f"{self.db_path}: {e}") from e
        except BaseException:
            self._conn.close()
            raise

    @classmethod
    def open(cls, db_path: str | PathLike[str]) -> MetadataStore:
        return cls(db_path)

    def __enter__(self) -> MetadataStore:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._conn.close()

    # --- Branch mappings ---

    def get_cvs_branch(self, git_branch: str) -> str | None:
        row = self._query_one("SELECT cvs FROM branch_mappings WHERE git = ?", (git_branch,))
        return row[0] if row else None

    def write_branch(
        self,
        git_branch: str,
        cvs_branch: str,
        commits: Iterable[Any],
    ) -> None:
        """Record ``git_branch`` as replayed to ``cvs_branch`` with its linear history.

        ``commits`` is iterated once, oldest first; each item is stored as its
        ``str()`` (the hex oid). The mapping and the full history are written
        in one transaction: on any failure nothing changes.
        """
        try:
            self._conn.execute("BEGIN IMMEDIATE")
            self._conn.execute(
                "INSERT OR REPLACE INTO branch_mappings (git, cvs) VALUES (?, ?)",
                (git_branch, cvs_branch),
            )
            self._conn.execute("DELETE FROM commit_branches WHERE branch = ?", (git_branch,))
            self._conn.executemany(
                "INSERT INTO commit_branches (oid, branch, branch_index) VALUES (?, ?, ?)",
                ((str(oid), git_branch, i) for i, oid in enumerate(commits)),
            )
        except sqlite3.Error as e:
            self._rollback()
            raise MetadataError("write_branch", str(e)) from e
        except BaseException:
            self._rollback()
            raise
        try:
            self._conn.commit()
        except sqlite3.Error as e:
            self._rollback()
            raise MetadataError("write_branch", str(e)) from e

    def list_branches(self) -> list[BranchMapping]:
        rows = self._query_all(
            "SELECT bm.git, bm.cvs, COUNT(cb.oid) FROM branch_mappings bm "
            "LEFT JOIN commit_branches cb ON cb.branch = bm.git "
            "GROUP BY bm.git, bm.cvs ORDER BY bm.git"
        )
        return [BranchMapping(git_branch=r[0], cvs_branch=r[1], commit_count=r[2]) for r in rows]

    def list_commits(self, git_branch: str) -> list[str]:
        """Return the recorded linear history of ``git_branch``, oldest first."""
        rows = self._query_all(
            "SELECT oid FROM commit_branches WHERE branch = ? ORDER BY branch_index",
            (git_branch,),
        )
        return [r[0] for r in rows]

    def schema_version(self) -> int:
        row = self._query_one("SELECT MAX(version) FROM schema_history")
        return int(row[0]) if row and row[0] is not None else 0

    # --- Internals ---

    def _query_one(self, sql: str, params: tuple[Any, ...] = ()) -> Any:
        try:
            return self._conn.execute(sql, params).fetchone()
        except sqlite3.Error as e:
            raise MetadataError("query", str(e)) from e

    def _query_all(self, sql: str, params: tuple[Any, ...] = ()) -> list[Any]:
        try:
            return self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise MetadataError("query", str(e)) from e

    def _rollback(self) -> None:
        if self._conn.in_transaction:
            self._conn.rollback()
