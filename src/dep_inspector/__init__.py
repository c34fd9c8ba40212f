"""Dep Inspector: npm dependency risk analysis with a Textual TUI.

Checks a resolved dependency set for known vulnerabilities, deprecations,
install scripts, license conflicts, typosquats and safe updates, and grades
the whole set A/B/C.
"""

__version__ = "0.1.0"
