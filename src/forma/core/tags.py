"""Tag normalization - case-insensitive de-duplication."""

import re
from typing import Iterable

_SEPARATORS = re.compile(r"[,\s]+")


def tag_key(tag: str) -> str:
    """Comparison key for a tag."""
    return tag.strip().lower()


def split_tag_input(raw: str) -> list[str]:
    """Split comma, space or newline separated tag input into tokens."""
    return [token for token in _SEPARATORS.split(raw) if token]


def merge_tags(current: Iterable[str], new: str | Iterable[str]) -> list[str]:
    """
    Append new tags to the current sequence, skipping case-insensitive duplicates.

    The first-seen casing wins. Reapplying the same input changes nothing.
    """
    tokens = split_tag_input(new) if isinstance(new, str) else new
    merged = list(current)
    seen = {tag_key(t) for t in merged}

    for token in tokens:
        token = token.strip()
        if not token:
            continue
        key = tag_key(token)
        if key in seen:
            continue
        merged.append(token)
        seen.add(key)

    return merged


def normalize_tags(tags: Iterable[str]) -> list[str]:
    """De-duplicate an existing tag sequence."""
    return merge_tags([], tags)


def remove_tag(current: Iterable[str], tag: str) -> list[str]:
    """Drop a tag regardless of casing."""
    key = tag_key(tag)
    return [t for t in current if tag_key(t) != key]
