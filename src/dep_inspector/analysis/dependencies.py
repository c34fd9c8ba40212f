"""Input normalization: dedupe dependencies and cap the fan-out."""

from collections.abc import Iterable

from dep_inspector.models import Dependency

MAX_PACKAGES = 600


def dedupe_and_cap(
    deps: Iterable[Dependency], limit: int = MAX_PACKAGES
) -> tuple[list[Dependency], bool]:
    """First occurrence of each ``name@version``, at most *limit* of them.

    Returns the kept dependencies and whether anything was cut.
    """
    unique: dict[str, Dependency] = {}
    for d in deps:
        unique.setdefault(d.key, d)
    kept = list(unique.values())
    return kept[:limit], len(kept) > limit
