"""Cross-references between repeated embedded types within one render."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from layout_tables.types import InstantiatedType

logger = logging.getLogger(__name__)

# Names from the document root to a row; None when there is no anchor context
PathId = tuple[str, ...]

_SLUG_SEPARATORS = re.compile(r"[^a-z0-9]+")


def join_path_id(path_id: PathId | None, name: str | None) -> PathId | None:
    """Extend a path with one more name, or return None if either part is missing."""
    if path_id is None or not name:
        return None
    return (*path_id, name)


def path_anchor(path_id: PathId | None) -> str | None:
    """Return the slugified anchor for a path, e.g. ("", "Header", "flags") -> "header-flags"."""
    if path_id is None:
        return None
    return _SLUG_SEPARATORS.sub("-", "-".join(path_id).lower()).strip("-")


def type_signature(instantiated: InstantiatedType) -> str:
    """Identify a concrete instantiation by its type name and type argument values."""
    args = ",".join(instantiated.type_args.values()) if instantiated.type_args else ""
    return f"{instantiated.type_name}<{args}>"


@dataclass(frozen=True)
class CrossReference:
    """Outcome of looking up a signature in the tracker."""

    already_seen: bool
    first_path_id: PathId | None


class CrossReferenceTracker:
    """Remembers where each embedded type was first expanded.

    One tracker serves exactly one top-level render call. The first
    occurrence of a signature is recorded; later occurrences get the
    recorded path back so they can link to it instead of expanding again.
    """

    def __init__(self) -> None:
        self._seen: dict[str, PathId] = {}

    def record_or_get(self, signature: str, path_id: PathId | None) -> CrossReference:
        """Record a first occurrence, or return the path of the earlier one.

        An occurrence without a path has nothing to link to, so it is not
        recorded and a later occurrence is expanded again.
        """
        first = self._seen.get(signature)
        if first is not None:
            logger.debug("Type %s already expanded at %s", signature, "/".join(first))
            return CrossReference(already_seen=True, first_path_id=first)
        if path_id is not None:
            self._seen[signature] = path_id
        return CrossReference(already_seen=False, first_path_id=path_id)

    def __contains__(self, signature: str) -> bool:
        return signature in self._seen

    def __len__(self) -> int:
        return len(self._seen)
