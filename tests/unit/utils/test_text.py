"""Tests for slug helpers."""

import re

import pytest

from roster.core.utils.text import generate_slug, generate_user_slug, is_valid_slug


class TestGenerateSlug:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("My Company Name", "my-company-name"),
            ("Hello! World@2024", "hello-world2024"),
            ("  spaced   out  ", "spaced-out"),
            ("under_score--dash", "under-score-dash"),
            ("!!!", ""),
        ],
    )
    def test_slugify(self, name, expected):
        assert generate_slug(name) == expected

    def test_truncates(self):
        assert len(generate_slug("a" * 100)) == 63


class TestGenerateUserSlug:
    def test_has_random_suffix(self):
        slug = generate_user_slug("Jane Doe")

        assert re.fullmatch(r"jane-doe-[a-z0-9]{6}", slug)
        assert is_valid_slug(slug)

    def test_unique_per_call(self):
        assert generate_user_slug("Jane Doe") != generate_user_slug("Jane Doe")

    def test_fallback_for_unsluggable_name(self):
        assert generate_user_slug("???").startswith("user-")

    def test_never_exceeds_column_length(self):
        assert len(generate_user_slug("x" * 200)) <= 63


class TestIsValidSlug:
    @pytest.mark.parametrize("slug", ["abc", "jane-doe-1", "123"])
    def test_valid(self, slug):
        assert is_valid_slug(slug)

    @pytest.mark.parametrize("slug", ["", "Jane", "jane doe", "jane_doe", "jané"])
    def test_invalid(self, slug):
        assert not is_valid_slug(slug)
