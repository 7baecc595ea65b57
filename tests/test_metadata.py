"""
Test Solidity metadata trailer removal.

Verifies:
- Self-described trailer is stripped, length field included
- Overshooting length field falls back to identity
- Trimming never raises on short or odd input
"""

from __future__ import annotations

from bytecode_verifier.metadata import metadata_trailer_length, trim_solidity_metadata

from conftest import CODE, with_metadata

# Real solc 0.8.19 trailer: {"ipfs": <34 bytes>, "solc": 0x000813}
SOLC_PAYLOAD = "a2646970667358221220" + "5c" * 32 + "64736f6c6343000813"


def test_trailer_removed():
    bytecode = with_metadata(CODE, "a1" + "ff" * 10)
    assert trim_solidity_metadata(bytecode) == CODE


def test_real_solc_trailer_removed():
    bytecode = with_metadata(CODE, SOLC_PAYLOAD)
    assert bytecode.endswith("0033")
    assert trim_solidity_metadata(bytecode) == CODE


def test_trailer_length_includes_length_field():
    assert metadata_trailer_length("aabb0002") == 2 * 2 + 4


def test_overshoot_returns_input_unchanged():
    """0x6001 = 24577 -> 49158 chars > 4 chars: no trailer."""
    assert trim_solidity_metadata("6001") == "6001"


def test_idempotent_when_no_valid_trailer_remains():
    once = trim_solidity_metadata("6001")
    assert trim_solidity_metadata(once) == once


def test_short_input_unchanged():
    assert trim_solidity_metadata("") == ""
    assert trim_solidity_metadata("60") == "60"


def test_unparseable_tail_unchanged():
    """Placeholder text in the tail must not crash the trimmer."""
    assert trim_solidity_metadata("6000$__") == "6000$__"


def test_zero_length_trailer_strips_length_field_only():
    assert trim_solidity_metadata(CODE + "0000") == CODE
