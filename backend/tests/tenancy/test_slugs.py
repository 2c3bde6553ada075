"""
Tests for slug normalization, validation and unique slug generation.
"""

import pytest

from apps.core.exceptions import SlugExhaustedError, ValidationError
from apps.tenancy.slugs import (
    MAX_SLUG_ATTEMPTS,
    SLUG_MAX_LENGTH,
    generate_unique_slug,
    normalize_slug,
    slug_format_error,
    validate_slug,
)


class TestNormalizeSlug:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("Bunga Mawar", "bunga-mawar"),
            ("  Toko   Baju!!  ", "toko-baju"),
            ("Ayu's Business", "ayu-s-business"),
            ("--already-a-slug--", "already-a-slug"),
            ("!!!", "store"),
            ("", "store"),
        ],
    )
    def test_normalizes_free_text(self, value: str, expected: str) -> None:
        assert normalize_slug(value) == expected

    def test_is_idempotent(self) -> None:
        once = normalize_slug("Café  Bunga & Mawar 2024")
        assert normalize_slug(once) == once

    def test_truncates_to_max_length_without_trailing_hyphen(self) -> None:
        slug = normalize_slug("a" * 47 + " b")
        assert len(slug) <= SLUG_MAX_LENGTH
        assert not slug.endswith("-")


class TestValidateSlug:
    def test_accepts_valid_slug(self) -> None:
        validate_slug("bunga-mawar")

    @pytest.mark.parametrize("slug", ["ab", "x" * 49, "Bunga", "bunga_mawar", "bunga mawar"])
    def test_rejects_malformed_slug(self, slug: str) -> None:
        assert slug_format_error(slug) is not None
        with pytest.raises(ValidationError):
            validate_slug(slug)

    @pytest.mark.parametrize("slug", ["www", "app", "dev"])
    def test_rejects_reserved_slug(self, slug: str) -> None:
        with pytest.raises(ValidationError, match="reserved"):
            validate_slug(slug)


class TestGenerateUniqueSlug:
    def test_returns_base_when_free(self) -> None:
        assert generate_unique_slug("Bunga Mawar", lambda s: False) == "bunga-mawar"

    def test_appends_first_free_suffix(self) -> None:
        taken = {"bunga-mawar", "bunga-mawar-2"}
        assert generate_unique_slug("Bunga Mawar", taken.__contains__) == "bunga-mawar-3"

    def test_suffix_fits_within_max_length(self) -> None:
        base = "a" * SLUG_MAX_LENGTH
        slug = generate_unique_slug(base, lambda s: s == base)
        assert slug.endswith("-2")
        assert len(slug) <= SLUG_MAX_LENGTH

    def test_skips_reserved_base(self) -> None:
        assert generate_unique_slug("dev", lambda s: False) == "dev-2"

    def test_raises_after_max_attempts(self) -> None:
        calls: list[str] = []

        def always_taken(slug: str) -> bool:
            calls.append(slug)
            return True

        with pytest.raises(SlugExhaustedError):
            generate_unique_slug("shop", always_taken)
        assert len(calls) == MAX_SLUG_ATTEMPTS
