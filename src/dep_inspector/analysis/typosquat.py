"""Typosquat detection: names one edit away from a popular package."""

import re
from typing import Optional

POPULAR_PACKAGES = (
    "react", "react-dom", "next", "express", "lodash", "axios",
    "typescript", "eslint", "webpack", "vue", "angular", "jquery",
    "moment", "bootstrap", "tailwindcss", "prettier", "jest",
)

# Conventional companion-package suffixes, e.g. "vue-cli", "axios-utils".
_INTENTIONAL_SUFFIX = re.compile(r"-(js|ts|node|npm|cli|lib|utils?|core|api)$", re.IGNORECASE)


def levenshtein(a: str, b: str) -> int:
    """Edit distance with unit-cost insert, delete and substitute."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (ca != cb),
            ))
        previous = current
    return previous[-1]


def is_exempt(name: str) -> bool:
    return name.startswith("@") or bool(_INTENTIONAL_SUFFIX.search(name))


def find_typosquat_target(
    name: str, popular: tuple[str, ...] = POPULAR_PACKAGES
) -> Optional[str]:
    """First popular package exactly one edit away from *name*, if any."""
    if is_exempt(name):
        return None
    for target in popular:
        if name != target and levenshtein(name, target) == 1:
            return target
    return None
