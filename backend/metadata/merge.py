"""
Metadata merging.

Responsibilities:
- Combine logger (base), provider and per-call (explicit) metadata
- Signal when there is nothing to merge so the cached base JSON can be reused

Non-responsibilities:
- No JSON conversion
- No provider invocation (the caller fetches provider metadata once per call)
"""

from __future__ import annotations

from typing import Any, Mapping, Optional


def merge_metadata(
    base: Mapping[str, Any],
    provided: Optional[Mapping[str, Any]],
    explicit: Optional[Mapping[str, Any]],
) -> Optional[dict[str, Any]]:
    """
    Merge the three metadata layers.

    Precedence on key collision (whole-value replacement, no deep merge):
        explicit > provided > base

    Returns:
        The merged dict, or None when both `provided` and `explicit` are
        empty or absent. None means "reuse the pre-rendered base metadata";
        it is semantically identical to returning a copy of `base`.
    """
    if not provided and not explicit:
        return None

    merged: dict[str, Any] = dict(base)

    if provided:
        merged.update(provided)

    if explicit:
        merged.update(explicit)

    return merged
