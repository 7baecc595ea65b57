"""
Verification error kinds.

Every error is scoped to a single registry entry. The orchestrator turns
them into ERRORED outcomes; nothing here terminates the batch.
"""

from __future__ import annotations


class VerificationError(Exception):
    """Base class for per-entry verification failures."""

    kind = "VerificationError"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class MalformedHex(VerificationError, ValueError):
    """Odd-length or non-hex bytecode string."""

    kind = "MalformedHex"


class MissingBytecode(VerificationError):
    """Artifact lacks a resolvable runtime or deployment bytecode field."""

    kind = "MissingBytecode"


class ArtifactReadError(VerificationError):
    """No readable artifact at the given location / sub-path."""

    kind = "ArtifactReadError"


class MissingTxHash(VerificationError):
    """Creation fallback required but no deployment transaction supplied."""

    kind = "MissingTxHash"


class TransactionNotFound(VerificationError):
    kind = "TransactionNotFound"


class WrongDeploymentTransaction(VerificationError):
    """Transaction did not create the contract under verification."""

    kind = "WrongDeploymentTransaction"


class EmptyCreationData(VerificationError):
    kind = "EmptyCreationData"


class ChainReadError(VerificationError):
    """RPC call failed. No retries are attempted."""

    kind = "ChainReadError"
