"""
Byte-string normalization.

Every bytecode value goes through normalize_hex() before any comparison,
so prefix presence and letter case never affect equality.
"""

from __future__ import annotations

import re
from typing import Final

from eth_utils import remove_0x_prefix

from bytecode_verifier.errors import MalformedHex

# __$ + 34 hex chars of keccak(fully qualified library name) + $__
LINK_PLACEHOLDER_RE: Final = re.compile(r"__\$[0-9a-f]{34}\$__")

_HEX_RE: Final = re.compile(r"[0-9a-f]*")


def _preview(value: str, limit: int = 16) -> str:
    return value if len(value) <= limit else value[:limit] + "..."


def normalize_hex(value: str, *, allow_link_placeholders: bool = False) -> str:
    """
    Return the prefix-free, lowercase hex body of a bytecode string.

    Args:
        value: Hex string, optionally 0x-prefixed
        allow_link_placeholders: Tolerate complete Solidity library link
            placeholders (unlinked artifact bytecode only)

    Raises:
        MalformedHex: If the body has odd length or non-hex content
    """
    if not isinstance(value, str):
        raise MalformedHex(f"expected hex string, got {type(value).__name__}")

    body = remove_0x_prefix(value.strip()).lower()
    if len(body) % 2:
        raise MalformedHex(f"odd-length hex string ({len(body)} chars): {_preview(body)}")

    checked = LINK_PLACEHOLDER_RE.sub("", body) if allow_link_placeholders else body
    if not _HEX_RE.fullmatch(checked):
        raise MalformedHex(f"non-hex content in bytecode: {_preview(body)}")
    return body


def is_empty_code(value: str) -> bool:
    """True for "", "0x" and whitespace-only values."""
    return not remove_0x_prefix(value.strip())
