from __future__ import annotations

from enum import Enum
from pathlib import PurePath
from typing import List, Literal, Optional, Union

from eth_utils import is_address
from pydantic import BaseModel, Field, field_validator

Dialect = Literal["solidity", "vyper"]


def dialect_for_source(source_path: str) -> Dialect:
    """Vyper for .vy sources, Solidity for anything else."""
    return "vyper" if PurePath(source_path).suffix.lower() == ".vy" else "solidity"


class ArtifactDescriptor(BaseModel):
    """One registry entry: which artifact should live at which address."""

    artifact_path: str = Field(alias="artifactPath")
    # JSON pointer ("/contracts/src~1Token.sol/Token") or explicit key list
    artifact_sub_path: Optional[Union[str, List[str]]] = Field(default=None, alias="artifactSubPath")
    source_path: str = Field(alias="sourcePath")
    name: str
    address: str
    tx_hash: Optional[str] = Field(default=None, alias="txHash")

    model_config = {"populate_by_name": True, "frozen": True}

    @field_validator("address")
    @classmethod
    def _check_address(cls, v: str) -> str:
        if not is_address(v):
            raise ValueError(f"not a 20-byte address: {v}")
        return v

    @field_validator("tx_hash")
    @classmethod
    def _blank_tx_hash(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @property
    def dialect(self) -> Dialect:
        return dialect_for_source(self.source_path)


class CompiledArtifact(BaseModel):
    runtime_bytecode: str
    deployment_bytecode: str
    dialect: Dialect = "solidity"

    model_config = {"frozen": True}


class CreationTransaction(BaseModel):
    """Contract-creation transaction as returned by the chain reader."""

    input_data: str
    created_address: Optional[str] = None

    model_config = {"frozen": True}


class DeployedMatch(str, Enum):
    EXACT = "exact"
    METADATA_TOLERANT = "metadata_tolerant"
    NO_MATCH = "no_match"


class MatchStatus(str, Enum):
    MATCHED = "matched"
    MISMATCHED = "mismatched"
    ERRORED = "errored"


class MatchVia(str, Enum):
    RUNTIME_EXACT = "runtime_exact"
    RUNTIME_METADATA = "runtime_metadata"
    CREATION = "creation"


class DiffSegment(BaseModel):
    tag: Literal["equal", "delete", "insert", "replace"]
    expected: str = ""
    actual: str = ""


class BytecodeDiff(BaseModel):
    """Diagnostic diff between compiled and on-chain creation code."""

    first_divergence: int
    window_start: int
    truncated: bool = False
    segments: List[DiffSegment] = Field(default_factory=list)


class MatchOutcome(BaseModel):
    """Terminal verdict for one registry entry."""

    descriptor: ArtifactDescriptor
    status: MatchStatus
    via: Optional[MatchVia] = None
    error_kind: Optional[str] = None
    reason: Optional[str] = None
    diff: Optional[BytecodeDiff] = None

    @property
    def ok(self) -> bool:
        return self.status is MatchStatus.MATCHED
