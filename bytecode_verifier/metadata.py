"""
Solidity metadata trailer removal.

solc appends a CBOR metadata blob to runtime and creation bytecode. The
final 2 bytes hold the blob length, so the trailer is self-describing:

    <code> <cbor metadata> <len: uint16 big-endian>
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

LENGTH_FIELD_CHARS = 4


def metadata_trailer_length(bytecode: str) -> int:
    """
    Length of the metadata trailer in hex characters, length field included.

    Returns 0 when the tail cannot be a length field.
    """
    tail = bytecode[-LENGTH_FIELD_CHARS:]
    if len(tail) < LENGTH_FIELD_CHARS:
        return 0
    try:
        return int(tail, 16) * 2 + LENGTH_FIELD_CHARS
    except ValueError:
        return 0


def trim_solidity_metadata(bytecode: str) -> str:
    """
    Strip the metadata trailer from normalized Solidity bytecode.

    Bytecode without a valid trailer (pre-metadata compilers, or a length
    field that overshoots the code) is returned unchanged.
    """
    size = metadata_trailer_length(bytecode)
    if size == 0 or size > len(bytecode):
        logger.debug("no metadata trailer to trim (len=%d, trailer=%d)", len(bytecode), size)
        return bytecode
    return bytecode[: len(bytecode) - size]
