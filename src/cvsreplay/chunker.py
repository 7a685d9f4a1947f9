"""Batching of command-line arguments under the platform argument-size limit."""

from __future__ import annotations

import functools
import os
from collections.abc import Callable
from types import TracebackType
from typing import Union

Arg = Union[str, bytes, "os.PathLike[str]", "os.PathLike[bytes]"]

# Room left for the command word and separators of each invocation.
ARG_MAX_MARGIN = 12

_FALLBACK_ARG_MAX = 4096


@functools.lru_cache(maxsize=None)
def arg_max() -> int:
    """Return the platform's maximum argument area in bytes."""
    try:
        value = os.sysconf("SC_ARG_MAX")
    except (AttributeError, ValueError, OSError):
        return _FALLBACK_ARG_MAX
    return value if value > 0 else _FALLBACK_ARG_MAX


def default_limit() -> int:
    """Return the ceiling used for batched cvs invocations."""
    return arg_max() - ARG_MAX_MARGIN


class ArgChunker:
    """Accumulate arguments and hand them to ``flush`` in size-bounded batches.

    Use as a context manager::

        with ArgChunker(run_add, default_limit()) as chunker:
            for path in paths:
                chunker.push(path)

    Batches are flushed in push order and never reordered or deduplicated.
    Leaving the block normally flushes whatever is left; leaving it through
    an exception does not, so the original error is what propagates.
    """

    def __init__(self, flush: Callable[[list[Arg]], None], limit: int) -> None:
        if limit <= 0:
            raise ValueError(f"Argument limit must be positive, got {limit}")
        self._flush = flush
        self.limit = limit
        self._batch: list[Arg] = []
        self._size = 0

    def __enter__(self) -> ArgChunker:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is None:
            self.close()

    def push(self, arg: Arg) -> None:
        """Add one argument, flushing the current batch first if it would overflow."""
        size = len(os.fsencode(arg))
        if self._batch and self._size + size > self.limit:
            self._do_flush()
        self._size += size
        self._batch.append(arg)

    def close(self) -> None:
        """Flush the residual batch, if any."""
        if self._batch:
            self._do_flush()

    def _do_flush(self) -> None:
        batch = self._batch
        self._batch = []
        self._size = 0
        self._flush(batch)
