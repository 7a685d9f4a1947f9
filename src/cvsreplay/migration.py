"""Embedded schema migrations for the metadata store.

Migrations live in ``cvsreplay/migrations`` as ``V<version>__<name>.sql``.
Each applied migration is recorded in ``schema_history`` with a SHA-256 of
its SQL, so an edited migration is detected instead of silently skipped.
"""

from __future__ import annotations

import hashlib
import re
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from importlib import resources

from cvsreplay.errors import MigrationError

__all__ = [
    "Migration",
    "load_migrations",
    "applied_versions",
    "run_migrations",
]

_FILENAME_RE = re.compile(r"^V(?P<version>\d+)__(?P<name>\w+)\.sql$")

_HISTORY_DDL = """
    CREATE TABLE IF NOT EXISTS schema_history (
        version INTEGER PRIMARY KEY,
        name TEXT NOT NULL,
        applied_on TEXT NOT NULL,
        checksum TEXT NOT NULL
    )
"""


@dataclass(frozen=True)
class Migration:
    """One versioned SQL migration."""

    version: int
    name: str
    sql: str

    @property
    def checksum(self) -> str:
        return hashlib.sha256(self.sql.encode()).hexdigest()


def load_migrations(package: str = "cvsreplay.migrations") -> list[Migration]:
    """Return the migrations shipped in ``package`` ordered by version.

    Raises MigrationError on two files sharing a version.
    """
    found: dict[int, Migration] = {}
    for entry in resources.files(package).iterdir():
        match = _FILENAME_RE.match(entry.name)
        if match is None:
            continue
        version = int(match.group("version"))
        if version in found:
            raise MigrationError(
                f"Duplicate migration version {version}: "
                f"{found[version].name} and {match.group('name')}"
            )
        found[version] = Migration(
            version=version,
            name=match.group("name"),
            sql=entry.read_text(encoding="utf-8"),
        )
    return [found[v] for v in sorted(found)]


def applied_versions(conn: sqlite3.Connection) -> dict[int, str]:
    """Return ``{version: checksum}`` for migrations recorded in ``conn``."""
    conn.execute(_HISTORY_DDL)
    conn.commit()
    rows = conn.execute("SELECT version, checksum FROM schema_history").fetchall()
    return {int(version): checksum for version, checksum in rows}


def run_migrations(
    conn: sqlite3.Connection,
    migrations: list[Migration] | None = None,
) -> list[Migration]:
    """Apply every pending migration and return those that were applied.

    Re-running against an up-to-date database applies nothing.
    """
    if migrations is None:
        migrations = load_migrations()
    applied = applied_versions(conn)

    shipped = {m.version for m in migrations}
    unknown = sorted(set(applied) - shipped)
    if unknown:
        raise MigrationError(
            f"Database has migrations {unknown} that this version does not know about"
        )

    newly_applied: list[Migration] = []
    for migration in migrations:
        recorded = applied.get(migration.version)
        if recorded is not None:
            if recorded != migration.checksum:
                raise MigrationError(
                    f"Applied migration V{migration.version}__{migration.name} "
                    "differs from the shipped one"
                )
            continue
        _apply(conn, migration)
        newly_applied.append(migration)
    return newly_applied


def _apply(conn: sqlite3.Connection, migration: Migration) -> None:
    # executescript commits anything pending before it starts, so the BEGIN
    # here opens the transaction that the history row joins.
    try:
        conn.executescript(f"BEGIN;\n{migration.sql}")
        conn.execute(
            "INSERT INTO schema_history (version, name, applied_on, checksum) "
            "VALUES (?, ?, ?, ?)",
            (
                migration.version,
                migration.name,
                datetime.now(timezone.utc).isoformat(),
                migration.checksum,
            ),
        )
    except sqlite3.Error as e:
        if conn.in_transaction:
            conn.rollback()
        raise MigrationError(f"V{migration.version}__{migration.name} failed: {e}") from e
    conn.commit()
