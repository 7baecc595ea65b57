"""
Solidity library link resolution.

Unlinked solc output marks every call site of an external library with a
fixed-width placeholder:

    __$<34 hex chars of keccak(fully.qualified:Name)>$__    (20 bytes)

The deployed bytecode holds the library address at the same offset, so it
is the source of truth for what the placeholder was linked to.

@see https://docs.soliditylang.org/en/latest/contracts.html#libraries
"""

from __future__ import annotations

import logging
from typing import Final

logger = logging.getLogger(__name__)

PLACEHOLDER_START: Final[str] = "__$"
PLACEHOLDER_END: Final[str] = "$__"
PLACEHOLDER_LENGTH: Final[int] = 40


def resolve_solidity_links(compiled_bytecode: str, deployed_bytecode: str) -> str:
    """
    Replace library placeholders in compiled bytecode by deployed addresses.

    Both operands must already be normalized. All occurrences of a given
    placeholder resolve to the address found at its first occurrence.
    A deployed bytecode shorter than the placeholder window yields a
    truncated address; the comparison downstream then fails as a mismatch.

    Args:
        compiled_bytecode: Unlinked artifact bytecode
        deployed_bytecode: On-chain runtime bytecode

    Returns:
        Compiled bytecode with every placeholder substituted
    """
    pos = 0
    while True:
        index = compiled_bytecode.find(PLACEHOLDER_START, pos)
        if index == -1:
            return compiled_bytecode

        # Window is always 40 chars, even when the $__ suffix is missing
        placeholder = compiled_bytecode[index : index + PLACEHOLDER_LENGTH]
        address = deployed_bytecode[index : index + PLACEHOLDER_LENGTH]
        if not placeholder.endswith(PLACEHOLDER_END):
            logger.warning("truncated link placeholder at offset %d: %s", index, placeholder)
        logger.debug("linking %s -> %s", placeholder, address)

        # str.replace is a literal match, "$" needs no escaping
        compiled_bytecode = compiled_bytecode.replace(placeholder, address)
        pos = index + len(address)
