"""Thin synchronous wrapper over the cvs command-line client."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import tempfile
from collections.abc import Iterable, Sequence
from pathlib import Path

from cvsreplay.chunker import Arg, ArgChunker, default_limit
from cvsreplay.errors import CvsCommandError
from cvsreplay.log import TRACE

logger = logging.getLogger(__name__)


def _run(argv: Sequence[Arg], cwd: str | os.PathLike[str] | None = None) -> None:
    """Run one cvs command to completion, raising CvsCommandError on failure."""
    if logger.isEnabledFor(TRACE):
        logger.log(TRACE, "%s", shlex.join(os.fsdecode(a) for a in argv))
    try:
        completed = subprocess.run(list(argv), cwd=cwd, check=False)
    except OSError as e:
        raise CvsCommandError(argv, None) from e
    if completed.returncode != 0:
        raise CvsCommandError(argv, completed.returncode)


class CvsContext:
    """Entry point holding the cvs executable to use."""

    def __init__(self, cvs: str | os.PathLike[str] = "cvs") -> None:
        self.cvs = os.fspath(cvs)

    def checkout(
        self,
        cvsroot: str,
        module: str,
        target: str | os.PathLike[str],
    ) -> CvsRepository:
        """Check ``module`` out of ``cvsroot`` into ``target``."""
        _run([self.cvs, "-d", cvsroot, "checkout", "-d", target, "-R", module])
        return CvsRepository(self.cvs, Path(target))


class CvsRepository:
    """A cvs working copy; every command runs with the checkout as cwd."""

    def __init__(self, cvs: str, cwd: Path) -> None:
        self.cvs = cvs
        self.cwd = cwd

    def __repr__(self) -> str:
        return f"CvsRepository(cvs={self.cvs!r}, cwd={str(self.cwd)!r})"

    def add(self, path: Arg, binary: bool = False) -> None:
        self._run_add([path], binary)

    def add_multiple(self, paths: Iterable[Arg], binary: bool = False) -> None:
        """Add ``paths`` in as few invocations as the argument limit allows."""
        with ArgChunker(lambda chunk: self._run_add(chunk, binary), default_limit()) as chunker:
            for path in paths:
                chunker.push(path)

    def remove(self, path: Arg) -> None:
        self._run_remove([path])

    def remove_multiple(self, paths: Iterable[Arg]) -> None:
        with ArgChunker(self._run_remove, default_limit()) as chunker:
            for path in paths:
                chunker.push(path)

    def commit(self, message: bytes) -> None:
        """Commit with ``message`` written verbatim to a temporary message file."""
        with tempfile.NamedTemporaryFile(prefix="cvs-replay-msg-") as msgfile:
            msgfile.write(message)
            msgfile.flush()
            self._cmd("commit", "-F", msgfile.name)

    def _run_add(self, paths: list[Arg], binary: bool) -> None:
        if binary:
            self._cmd("add", "-kb", *paths)
        else:
            self._cmd("add", *paths)

    def _run_remove(self, paths: list[Arg]) -> None:
        self._cmd("remove", *paths)

    def _cmd(self, *args: Arg) -> None:
        _run([self.cvs, *args], cwd=self.cwd)
