"""Shared test fixtures for cvs-replay tests."""

from __future__ import annotations

import json
import os
import sys
import textwrap
from pathlib import Path
from typing import Any

import pygit2
import pytest

BASE_TIME = 1_600_000_000

_FAKE_CVS = textwrap.dedent("""\
    import json
    import os
    import sys

    args = sys.argv[1:]
    record = {"argv": args, "cwd": os.getcwd()}
    if args[:1] == ["-d"]:
        sub, rest = args[2], args[3:]
    else:
        sub, rest = args[0], args[1:]

    if sub == "checkout":
        target = rest[rest.index("-d") + 1]
        os.makedirs(os.path.join(target, "CVS"), exist_ok=True)
        if rest[rest.index("-R") + 1] == ".":
            os.makedirs(os.path.join(target, "CVSROOT", "CVS"), exist_ok=True)
        seed = os.environ.get("FAKE_CVS_SEED")
        if seed:
            seed_path = os.path.join(target, seed)
            os.makedirs(os.path.dirname(seed_path), exist_ok=True)
            with open(seed_path, "w") as f:
                f.write("already here\\n")
    elif sub == "commit":
        msgfile = rest[rest.index("-F") + 1]
        record["msgfile"] = msgfile
        with open(msgfile, "rb") as f:
            record["message"] = f.read().decode("utf-8", "replace")
    elif sub in ("add", "remove"):
        paths = [p for p in rest if p != "-kb"]
        record["exists"] = [os.path.exists(p) for p in paths]

    with open(os.environ["FAKE_CVS_LOG"], "a") as f:
        f.write(json.dumps(record) + "\\n")

    if os.environ.get("FAKE_CVS_FAIL") == sub:
        sys.exit(1)
""")


class FakeCvs:
    """A stand-in cvs executable that logs every invocation as a JSON line."""

    def __init__(self, directory: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        directory.mkdir(parents=True, exist_ok=True)
        self.path = directory / "cvs"
        self.path.write_text(f"#!{sys.executable}\n{_FAKE_CVS}")
        self.path.chmod(0o755)
        self.log = directory / "cvs.log"
        self._monkeypatch = monkeypatch
        monkeypatch.setenv("FAKE_CVS_LOG", str(self.log))
        monkeypatch.delenv("FAKE_CVS_FAIL", raising=False)
        monkeypatch.delenv("FAKE_CVS_SEED", raising=False)

    def fail_on(self, subcommand: str) -> None:
        self._monkeypatch.setenv("FAKE_CVS_FAIL", subcommand)

    def seed_checkout(self, relative_path: str) -> None:
        """Make checkouts contain ``relative_path`` already."""
        self._monkeypatch.setenv("FAKE_CVS_SEED", relative_path)

    def calls(self) -> list[dict[str, Any]]:
        if not self.log.exists():
            return []
        return [json.loads(line) for line in self.log.read_text().splitlines()]

    def argvs(self) -> list[list[str]]:
        return [c["argv"] for c in self.calls()]

    def reset(self) -> None:
        if self.log.exists():
            self.log.unlink()


class GitRepoBuilder:
    """Builds commits in a bare git repository from flat path -> content maps."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.repo = pygit2.init_repository(str(path), bare=True)
        self._ticks = 0

    def commit(
        self,
        files: dict[str, bytes | tuple[bytes, int]],
        message: str = "commit",
        *,
        ref: str | None = "refs/heads/main",
        parents: list[pygit2.Oid] | None = None,
        time: int | None = None,
    ) -> pygit2.Oid:
        """Create a commit whose tree holds exactly ``files``.

        A value may be raw bytes (mode 0644) or a ``(bytes, filemode)`` pair.
        ``parents`` defaults to the current tip of ``ref``.
        """
        if time is None:
            self._ticks += 1
            time = BASE_TIME + 60 * self._ticks
        if parents is None:
            parents = []
            if ref is not None and self.repo.references.get(ref) is not None:
                parents = [self.repo.references[ref].target]
        sig = pygit2.Signature("Test Author", "author@example.com", time, 0)
        tree = self._build_tree(files)
        return self.repo.create_commit(ref, sig, sig, message, tree, parents)

    def _build_tree(self, files: dict[str, Any]) -> pygit2.Oid:
        builder = self.repo.TreeBuilder()
        subdirs: dict[str, dict[str, Any]] = {}
        for path, spec in files.items():
            head, _, rest = path.partition("/")
            if rest:
                subdirs.setdefault(head, {})[rest] = spec
                continue
            data, mode = spec if isinstance(spec, tuple) else (spec, 0o100644)
            builder.insert(head, self.repo.create_blob(data), mode)
        for name, sub in subdirs.items():
            builder.insert(name, self._build_tree(sub), 0o040000)
        return builder.write()

    def create_ref(self, name: str, target: pygit2.Oid) -> None:
        self.repo.references.create(name, target)


BINARY = b"\x00\x01\x02\x03binary\x00payload"


@pytest.fixture
def tmp_db(tmp_path):
    """Create a temporary SQLite database path."""
    return str(tmp_path / "meta.db")


@pytest.fixture
def git_repo(tmp_path):
    return GitRepoBuilder(tmp_path / "repo.git")


@pytest.fixture
def fake_cvs(tmp_path, monkeypatch):
    return FakeCvs(tmp_path / "fakebin", monkeypatch)


@pytest.fixture
def make_config(tmp_db, git_repo, fake_cvs):
    """Build a ReplayConfig wired to the fixture repo, database and fake cvs."""
    from cvsreplay.config import ReplayConfig

    def _make(**overrides: Any) -> ReplayConfig:
        values: dict[str, Any] = {
            "branch": "main",
            "cvs": str(fake_cvs.path),
            "cvsroot": ":local:/nonexistent/cvsroot",
            "database": tmp_db,
            "git": str(git_repo.path),
        }
        values.update(overrides)
        return ReplayConfig(**values)

    return _make


def relative_calls(fake_cvs: FakeCvs) -> list[list[str]]:
    """Return logged argvs with the checkout call's temp path blanked out."""
    out = []
    for argv in fake_cvs.argvs():
        if "checkout" in argv:
            argv = [a if not os.path.isabs(a) else "<tmp>" for a in argv]
        out.append(argv)
    return out
