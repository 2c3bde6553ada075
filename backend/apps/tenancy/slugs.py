"""
Organization slug rules.

A slug is the tenant's subdomain label: lowercase ``[a-z0-9-]``, 3-48
characters, not one of the reserved platform labels.
"""

import re
from collections.abc import Callable

from apps.core.exceptions import SlugExhaustedError, ValidationError

SLUG_MIN_LENGTH = 3
SLUG_MAX_LENGTH = 48
RESERVED_SLUGS = frozenset({"www", "app", "dev"})
MAX_SLUG_ATTEMPTS = 1000
FALLBACK_SLUG = "store"

_SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")
_INVALID_CHARS = re.compile(r"[^a-z0-9]+")
_REPEATED_HYPHENS = re.compile(r"-{2,}")


def normalize_slug(value: str) -> str:
    """
    Turn free text (a store name) into a slug candidate.

    Deterministic and idempotent: ``normalize_slug(normalize_slug(x)) ==
    normalize_slug(x)``. Returns "store" when nothing usable remains.
    """
    slug = _INVALID_CHARS.sub("-", value.strip().lower())
    slug = _REPEATED_HYPHENS.sub("-", slug).strip("-")
    slug = slug[:SLUG_MAX_LENGTH].rstrip("-")
    return slug or FALLBACK_SLUG


def is_reserved_slug(slug: str) -> bool:
    return slug in RESERVED_SLUGS


def slug_format_error(slug: str) -> str | None:
    """Return a human-readable reason the slug is malformed, or None."""
    if not _SLUG_PATTERN.match(slug):
        return "Slug can only contain lowercase letters, numbers, and hyphens"
    if len(slug) < SLUG_MIN_LENGTH or len(slug) > SLUG_MAX_LENGTH:
        return f"Slug must be between {SLUG_MIN_LENGTH} and {SLUG_MAX_LENGTH} characters"
    return None


def validate_slug(slug: str) -> None:
    """
    Raises:
        ValidationError: If the slug is malformed or reserved.
    """
    error = slug_format_error(slug)
    if error:
        raise ValidationError(error)
    if is_reserved_slug(slug):
        raise ValidationError("This subdomain is reserved")


def generate_unique_slug(base: str, is_taken: Callable[[str], bool]) -> str:
    """
    Find the first free slug among ``base``, ``base-2``, ``base-3``, ...

    ``base`` is normalized first. Candidates are shortened so the numeric
    suffix always fits within the maximum length.

    Raises:
        SlugExhaustedError: If no candidate is free within MAX_SLUG_ATTEMPTS.
    """
    root = normalize_slug(base)
    for attempt in range(1, MAX_SLUG_ATTEMPTS + 1):
        if attempt == 1:
            candidate = root
        else:
            suffix = f"-{attempt}"
            candidate = root[: SLUG_MAX_LENGTH - len(suffix)].rstrip("-") + suffix
        if len(candidate) < SLUG_MIN_LENGTH or is_reserved_slug(candidate):
            continue
        if not is_taken(candidate):
            return candidate
    raise SlugExhaustedError()
