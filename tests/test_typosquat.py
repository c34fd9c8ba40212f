"""Tests for typosquat detection."""

import pytest

from dep_inspector.analysis.typosquat import find_typosquat_target, is_exempt, levenshtein


class TestLevenshtein:
    @pytest.mark.parametrize(
        "a, b, expected",
        [
            ("", "", 0),
            ("react", "react", 0),
            ("reactt", "react", 1),
            ("raect", "react", 2),
            ("lodahs", "lodash", 2),
            ("expres", "express", 1),
            ("axois", "axios", 2),
            ("", "jest", 4),
            ("kitten", "sitting", 3),
        ],
    )
    def test_distance(self, a, b, expected):
        assert levenshtein(a, b) == expected

    def test_symmetric(self):
        assert levenshtein("webpack", "webpak") == levenshtein("webpak", "webpack")


class TestFindTyposquatTarget:
    def test_extra_letter(self):
        assert find_typosquat_target("reactt") == "react"

    def test_missing_letter(self):
        assert find_typosquat_target("expres") == "express"

    def test_substitution(self):
        assert find_typosquat_target("lodasj") == "lodash"

    def test_exact_name_is_not_typosquat(self):
        assert find_typosquat_target("react") is None

    def test_scoped_name_exempt(self):
        assert find_typosquat_target("@myorg/reactt") is None

    def test_distance_two_ignored(self):
        assert find_typosquat_target("raect") is None

    def test_first_match_wins(self):
        popular = ("jest", "best")
        assert find_typosquat_target("lest", popular) == "jest"

    def test_suffix_protected_name(self):
        assert find_typosquat_target("react-js", ("react-j",)) is None
        assert find_typosquat_target("react-jx", ("react-j",)) == "react-j"

    @pytest.mark.parametrize(
        "name",
        ["foo-js", "foo-TS", "foo-node", "foo-npm", "foo-cli", "foo-lib", "foo-util", "foo-utils", "foo-core", "foo-api"],
    )
    def test_exempt_suffixes(self, name):
        assert is_exempt(name)

    def test_plain_name_not_exempt(self):
        assert not is_exempt("reactt")
