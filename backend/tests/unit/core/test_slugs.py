"""Unit tests for slug generation."""

import re

import pytest

from app.core.slugs import SLUG_MAX_LENGTH, SLUG_PATTERN, slugify


class TestSlugify:
    """Tests for slugify."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("Smartphones", "smartphones"),
            ("Pixel 9 Pro Review", "pixel-9-pro-review"),
            ("Café Reviews", "cafe-reviews"),
            ("Ноутбуки", "noutbuki"),
            ("  AI -- Zone  ", "ai-zone"),
        ],
    )
    def test_slugify(self, value: str, expected: str) -> None:
        assert slugify(value) == expected

    @pytest.mark.unit
    def test_nothing_sluggable_gives_empty_string(self) -> None:
        assert slugify("!!!") == ""

    @pytest.mark.unit
    def test_result_matches_slug_pattern(self) -> None:
        assert re.match(SLUG_PATTERN, slugify("Über Gadgets & Gizmos 2025"))

    @pytest.mark.unit
    def test_long_titles_are_cut_at_a_word(self) -> None:
        slug = slugify("word " * 100)

        assert len(slug) <= SLUG_MAX_LENGTH
        assert not slug.endswith("-")
        assert slug.endswith("word")
