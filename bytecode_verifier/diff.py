"""
Character-level diagnostic diff for mismatched creation code.

Reporting aid only, never part of the pass/fail decision. SequenceMatcher
is quadratic in the worst case, so operands are windowed around the first
divergence before diffing.
"""

from __future__ import annotations

import difflib
import logging
from typing import Optional

from bytecode_verifier.models import BytecodeDiff, DiffSegment

logger = logging.getLogger(__name__)

DEFAULT_MAX_CHARS = 2_000


def first_divergence(a: str, b: str) -> int:
    """Index of the first differing character (len of the shorter on prefix)."""
    n = min(len(a), len(b))
    for i in range(n):
        if a[i] != b[i]:
            return i
    return n


def bytecode_diff(
    expected: str, actual: str, *, max_chars: int = DEFAULT_MAX_CHARS
) -> Optional[BytecodeDiff]:
    """
    Diff compiled (expected) against on-chain (actual) bytecode.

    Args:
        expected: Normalized compiled bytecode
        actual: Normalized on-chain bytecode
        max_chars: Upper bound on the characters diffed per operand

    Returns:
        BytecodeDiff, or None if the operands are identical or max_chars <= 0
    """
    if max_chars <= 0 or expected == actual:
        return None

    start = first_divergence(expected, actual)
    # Keep a little common prefix for context, aligned to a byte boundary
    window_start = max(0, start - 64) & ~1
    a = expected[window_start : window_start + max_chars]
    b = actual[window_start : window_start + max_chars]
    truncated = len(expected) - window_start > max_chars or len(actual) - window_start > max_chars
    if truncated:
        logger.debug("diff window truncated to %d chars at offset %d", max_chars, window_start)

    matcher = difflib.SequenceMatcher(None, a, b, autojunk=False)
    segments = [
        DiffSegment(tag=tag, expected=a[i1:i2], actual=b[j1:j2])
        for tag, i1, i2, j1, j2 in matcher.get_opcodes()
    ]
    return BytecodeDiff(
        first_divergence=start,
        window_start=window_start,
        truncated=truncated,
        segments=segments,
    )
