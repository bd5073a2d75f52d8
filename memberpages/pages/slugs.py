"""URL slug helpers for pages."""

import hashlib
import re

MAX_SLUG_LENGTH = 64

_WHITESPACE_RE = re.compile(r"[\s_]+")
_INVALID_RE = re.compile(r"[^a-z0-9-]")
_HYPHENS_RE = re.compile(r"-+")


def slugify(value: str, max_length: int = MAX_SLUG_LENGTH) -> str:
    """Create a URL-friendly slug.

    Lowercases, turns whitespace/underscore runs into hyphens, drops every
    character outside [a-z0-9-], collapses repeated hyphens and caps the
    length. Non-ASCII text is dropped entirely, so callers that need
    uniqueness must fold something ASCII (an index, a timestamp, a digest)
    into the input.

    Args:
        value: Arbitrary text.
        max_length: Maximum slug length.

    Returns:
        str: Slug, possibly empty.
    """
    slug = value.lower().strip()
    slug = _WHITESPACE_RE.sub("-", slug)
    slug = _INVALID_RE.sub("", slug)
    slug = _HYPHENS_RE.sub("-", slug).strip("-")
    return slug[:max_length].rstrip("-")


def short_digest(*parts: str, length: int = 10) -> str:
    """Stable hex digest of the given strings.

    Args:
        parts: Strings to hash, order-sensitive.
        length: Number of hex characters to keep.

    Returns:
        str: Lowercase hex digest prefix.
    """
    joined = "\x1f".join(parts)
    return hashlib.sha1(joined.encode("utf-8")).hexdigest()[:length]
