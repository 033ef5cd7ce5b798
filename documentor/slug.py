"""Pure slug helpers for anchors and diagram node ids."""

from __future__ import annotations

import hashlib
import re

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    """Lowercase ``value`` and collapse every non-alphanumeric run into one hyphen."""
    return _NON_ALNUM.sub("-", value.lower()).strip("-")


def node_id(path: str) -> str:
    """Return a Mermaid-safe identifier for a file path.

    Distinct paths can slugify identically (``a-b.js`` and ``a_b.js``), so a
    short digest of the exact path is appended.
    """
    digest = hashlib.sha1(path.encode("utf-8")).hexdigest()[:6]
    base = slugify(path).replace("-", "_") or "root"
    return f"n_{base}_{digest}"


__all__ = ["node_id", "slugify"]
