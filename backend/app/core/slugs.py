"""URL slug helpers."""

from slugify import slugify as _slugify

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"
SLUG_MAX_LENGTH = 255


def slugify(value: str) -> str:
    """Lowercase ASCII slug, transliterating non-Latin text.

    "Café Reviews" -> "cafe-reviews", "Ноутбуки" -> "noutbuki". Returns an
    empty string when nothing sluggable is left; callers reject that.
    """
    return _slugify(value, max_length=SLUG_MAX_LENGTH, word_boundary=True)
