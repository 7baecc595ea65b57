"""
Bytecode comparators.

Deployed-code match:
    normalize -> link (solidity) -> exact compare
    -> trim metadata on both sides (solidity) -> compare trimmed

Creation-code match:
    normalize -> link (solidity) -> trim compiled side only (solidity)
    -> prefix compare, since ABI-encoded constructor arguments follow
       the deployment bytecode in the transaction input
"""

from __future__ import annotations

import logging
from typing import Tuple

from bytecode_verifier.hexstr import normalize_hex
from bytecode_verifier.linking import resolve_solidity_links
from bytecode_verifier.metadata import trim_solidity_metadata
from bytecode_verifier.models import DeployedMatch, Dialect

logger = logging.getLogger(__name__)


def compare_deployed_bytecode(
    deployed_bytecode: str, compiled_bytecode: str, dialect: Dialect
) -> DeployedMatch:
    """
    Compare on-chain runtime code against compiled runtime code.

    Args:
        deployed_bytecode: eth_getCode result
        compiled_bytecode: Artifact runtime bytecode (possibly unlinked)
        dialect: "solidity" or "vyper"

    Returns:
        EXACT, METADATA_TOLERANT, or NO_MATCH

    Raises:
        MalformedHex: If either operand is not valid hex
    """
    solidity = dialect == "solidity"
    deployed = normalize_hex(deployed_bytecode)
    compiled = normalize_hex(compiled_bytecode, allow_link_placeholders=solidity)

    if solidity:
        compiled = resolve_solidity_links(compiled, deployed)

    if deployed == compiled:
        return DeployedMatch.EXACT

    if not solidity:
        return DeployedMatch.NO_MATCH

    # Each side carries its own trailer
    trimmed_deployed = trim_solidity_metadata(deployed)
    trimmed_compiled = trim_solidity_metadata(compiled)
    if len(trimmed_deployed) != len(trimmed_compiled):
        logger.debug(
            "trimmed runtime length differs: deployed=%d compiled=%d",
            len(trimmed_deployed),
            len(trimmed_compiled),
        )
        return DeployedMatch.NO_MATCH

    if trimmed_deployed == trimmed_compiled:
        return DeployedMatch.METADATA_TOLERANT
    return DeployedMatch.NO_MATCH


def prepare_creation_operands(
    input_data: str, compiled_bytecode: str, dialect: Dialect
) -> Tuple[str, str]:
    """
    Normalize creation-code operands the way compare_creation_bytecode sees them.

    Returns:
        (transaction input, compiled deployment bytecode)
    """
    solidity = dialect == "solidity"
    tx_input = normalize_hex(input_data)
    compiled = normalize_hex(compiled_bytecode, allow_link_placeholders=solidity)
    if solidity:
        compiled = resolve_solidity_links(compiled, tx_input)
        # Never trim the tx input: its tail is constructor arguments
        compiled = trim_solidity_metadata(compiled)
    return tx_input, compiled


def compare_creation_bytecode(input_data: str, compiled_bytecode: str, dialect: Dialect) -> bool:
    """True if the creation transaction input starts with the compiled bytecode."""
    tx_input, compiled = prepare_creation_operands(input_data, compiled_bytecode, dialect)
    # An empty prefix would match any transaction
    return bool(compiled) and tx_input.startswith(compiled)
