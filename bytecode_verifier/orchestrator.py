"""
Per-entry verification flow and batch execution.

    Trying-Runtime --match--> Matched
          |
       no match
          v
    Trying-Creation --prefix match--> Matched
          |
          +--> Mismatched

Any missing precondition goes straight to Errored. A NO_MATCH from the
deployed-code comparator always falls back to creation code, whatever the
reason (immutables, trimmed length mismatch, empty account).
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

from bytecode_verifier.artifacts import read_descriptor_artifact
from bytecode_verifier.diff import DEFAULT_MAX_CHARS, bytecode_diff
from bytecode_verifier.errors import (
    EmptyCreationData,
    MissingTxHash,
    TransactionNotFound,
    VerificationError,
    WrongDeploymentTransaction,
)
from bytecode_verifier.hexstr import is_empty_code
from bytecode_verifier.matchers import (
    compare_creation_bytecode,
    compare_deployed_bytecode,
    prepare_creation_operands,
)
from bytecode_verifier.models import (
    ArtifactDescriptor,
    CreationTransaction,
    DeployedMatch,
    MatchOutcome,
    MatchStatus,
    MatchVia,
)

logger = logging.getLogger(__name__)

_RUNTIME_VIA = {
    DeployedMatch.EXACT: MatchVia.RUNTIME_EXACT,
    DeployedMatch.METADATA_TOLERANT: MatchVia.RUNTIME_METADATA,
}


class ChainReader(Protocol):
    async def get_code(self, address: str) -> str: ...

    async def get_transaction(self, tx_hash: str) -> Optional[CreationTransaction]: ...


def _same_address(a: Optional[str], b: str) -> bool:
    return a is not None and a.lower() == b.lower()


async def fetch_creation_transaction(desc: ArtifactDescriptor, chain: ChainReader) -> CreationTransaction:
    """
    Fetch and validate the deployment transaction of a registry entry.

    Raises:
        MissingTxHash: No txHash in the registry entry
        TransactionNotFound: Node does not know the transaction
        WrongDeploymentTransaction: Transaction created a different address
        EmptyCreationData: Transaction carries no input data
    """
    if not desc.tx_hash:
        raise MissingTxHash(f"runtime bytecode mismatch and no txHash given for {desc.name}@{desc.address}")

    tx = await chain.get_transaction(desc.tx_hash)
    if tx is None:
        raise TransactionNotFound(f"unable to retrieve transaction {desc.tx_hash}")
    if not _same_address(tx.created_address, desc.address):
        raise WrongDeploymentTransaction(
            f"wrong deploy transaction for {desc.address}: "
            f"{desc.tx_hash} created {tx.created_address or 'no contract'}"
        )
    if is_empty_code(tx.input_data):
        raise EmptyCreationData(f"no creation bytecode at tx {desc.tx_hash}")
    return tx


async def verify_descriptor(
    desc: ArtifactDescriptor,
    chain: ChainReader,
    *,
    diff_max_chars: int = DEFAULT_MAX_CHARS,
    base_dir: Optional[Path] = None,
) -> MatchOutcome:
    """
    Verify one registry entry against the chain.

    Args:
        desc: Registry entry
        chain: Chain reader shared across the batch
        diff_max_chars: Diagnostic diff window; 0 disables diffs
        base_dir: Directory relative artifact paths resolve against

    Returns:
        MatchOutcome (MATCHED, MISMATCHED or ERRORED)
    """
    try:
        artifact = await asyncio.to_thread(read_descriptor_artifact, desc, base_dir)

        deployed = await chain.get_code(desc.address)
        if is_empty_code(deployed):
            logger.warning("no code at %s (%s)", desc.address, desc.name)

        runtime = compare_deployed_bytecode(deployed, artifact.runtime_bytecode, artifact.dialect)
        logger.debug("%s runtime comparison: %s", desc.name, runtime.value)
        if runtime is not DeployedMatch.NO_MATCH:
            return MatchOutcome(descriptor=desc, status=MatchStatus.MATCHED, via=_RUNTIME_VIA[runtime])

        # Immutables make runtime code differ from the artifact; check creation code
        tx = await fetch_creation_transaction(desc, chain)
        if compare_creation_bytecode(tx.input_data, artifact.deployment_bytecode, artifact.dialect):
            return MatchOutcome(descriptor=desc, status=MatchStatus.MATCHED, via=MatchVia.CREATION)

        tx_input, compiled = prepare_creation_operands(
            tx.input_data, artifact.deployment_bytecode, artifact.dialect
        )
        # CPU bound: must not run on the event loop shared with other entries
        diff = await asyncio.to_thread(
            bytecode_diff, compiled, tx_input[: len(compiled)], max_chars=diff_max_chars
        )
        return MatchOutcome(
            descriptor=desc,
            status=MatchStatus.MISMATCHED,
            reason="runtime and creation bytecode differ from artifact",
            diff=diff,
        )
    except VerificationError as e:
        logger.info("%s@%s errored: %s", desc.name, desc.address, e.reason)
        return MatchOutcome(descriptor=desc, status=MatchStatus.ERRORED, error_kind=e.kind, reason=e.reason)


async def verify_registry(
    descriptors: Sequence[ArtifactDescriptor],
    chain: ChainReader,
    *,
    diff_max_chars: int = DEFAULT_MAX_CHARS,
    base_dir: Optional[Path] = None,
) -> List[MatchOutcome]:
    """
    Verify every registry entry concurrently.

    Waits for all entries; one entry failing never stops the others.
    Returns exactly one outcome per entry, in registry order.
    """
    results = await asyncio.gather(
        *(
            verify_descriptor(desc, chain, diff_max_chars=diff_max_chars, base_dir=base_dir)
            for desc in descriptors
        ),
        return_exceptions=True,
    )

    outcomes: List[MatchOutcome] = []
    for desc, result in zip(descriptors, results):
        if isinstance(result, MatchOutcome):
            outcomes.append(result)
            continue
        if not isinstance(result, Exception):
            raise result
        logger.error("unexpected failure verifying %s", desc.name, exc_info=result)
        outcomes.append(
            MatchOutcome(
                descriptor=desc,
                status=MatchStatus.ERRORED,
                error_kind=type(result).__name__,
                reason=str(result) or repr(result),
            )
        )

    for outcome in outcomes:
        logger.info("%s@%s: %s", outcome.descriptor.name, outcome.descriptor.address, outcome.status.value)
    return outcomes
