"""Mapping of git branch names onto identifiers CVS accepts."""

from __future__ import annotations

_ALLOWED = frozenset("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_")


def sanitize_branch(name: str) -> str:
    """Return ``name`` with every character outside ``[A-Za-z0-9_-]`` escaped.

    A disallowed character becomes ``__u`` followed by its code point as six
    lowercase hex digits, so ``"release/1.0"`` maps to
    ``"release__u00002f1__u00002e0"``. Names made only of allowed characters
    are returned unchanged.

    The mapping is injective over names that do not themselves contain an
    escape sequence (``__u`` plus six hex digits); a name such as
    ``"__u000020"`` is left as is and so collides with ``" "``.
    """
    return "".join(c if c in _ALLOWED else f"__u{ord(c):06x}" for c in name)
