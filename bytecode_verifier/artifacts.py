"""
Artifact and registry readers.

Compiler toolchains disagree on where bytecode lives in their JSON output:

    Hardhat / Truffle   {"bytecode": "0x..", "deployedBytecode": "0x.."}
    Foundry             {"bytecode": {"object": ..}, "deployedBytecode": {"object": ..}}
    Ape / ethPM         {"deploymentBytecode": {"bytecode": ..}, "runtimeBytecode": {"bytecode": ..}}
    solc standard JSON  {"evm": {"bytecode": {"object": ..}, "deployedBytecode": {"object": ..}}}
    vyper combined JSON {"bytecode": "0x..", "bytecode_runtime": "0x.."}

Everything is folded into CompiledArtifact before the core sees it.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple, Union

from pydantic import TypeAdapter, ValidationError

from bytecode_verifier.errors import ArtifactReadError, MissingBytecode
from bytecode_verifier.hexstr import is_empty_code
from bytecode_verifier.models import ArtifactDescriptor, CompiledArtifact, Dialect

logger = logging.getLogger(__name__)

RUNTIME_FIELDS: Tuple[Tuple[str, ...], ...] = (
    ("deployedBytecode",),
    ("deployedBytecode", "object"),
    ("runtimeBytecode", "bytecode"),
    ("evm", "deployedBytecode", "object"),
    ("bytecode_runtime",),
)

DEPLOYMENT_FIELDS: Tuple[Tuple[str, ...], ...] = (
    ("bytecode",),
    ("bytecode", "object"),
    ("deploymentBytecode", "bytecode"),
    ("evm", "bytecode", "object"),
)

SubPath = Union[str, Sequence[str], None]

_registry_adapter = TypeAdapter(List[ArtifactDescriptor])


def pointer_keys(pointer: str) -> List[str]:
    """
    Split a JSON pointer (RFC 6901) into keys.

    The leading "/" is optional: "contracts/Token" == "/contracts/Token".
    """
    body = pointer[1:] if pointer.startswith("/") else pointer
    if not body:
        return []
    return [part.replace("~1", "/").replace("~0", "~") for part in body.split("/")]


def _descend(doc: Any, sub_path: SubPath) -> Any:
    if sub_path is None:
        return doc
    keys = pointer_keys(sub_path) if isinstance(sub_path, str) else list(sub_path)
    for key in keys:
        if isinstance(doc, dict) and key in doc:
            doc = doc[key]
        elif isinstance(doc, list) and key.isdigit() and int(key) < len(doc):
            doc = doc[int(key)]
        else:
            raise KeyError(key)
    return doc


def _lookup(doc: Any, path: Tuple[str, ...]) -> Optional[str]:
    for key in path:
        if not isinstance(doc, dict) or key not in doc:
            return None
        doc = doc[key]
    return doc if isinstance(doc, str) else None


def _first_bytecode(doc: Any, candidates: Tuple[Tuple[str, ...], ...]) -> Optional[str]:
    for path in candidates:
        value = _lookup(doc, path)
        if value is not None and not is_empty_code(value):
            return value
    return None


def read_artifact(
    location: Union[str, Path],
    sub_path: SubPath = None,
    *,
    dialect: Dialect = "solidity",
    base_dir: Optional[Path] = None,
) -> CompiledArtifact:
    """
    Read a compiled artifact and normalize its bytecode fields.

    Args:
        location: Artifact JSON file
        sub_path: JSON pointer (or key list) to the contract inside the file
        dialect: Compiler dialect, inferred from the source path by callers
        base_dir: Directory relative locations resolve against (default: cwd)

    Returns:
        CompiledArtifact with runtime and deployment bytecode

    Raises:
        ArtifactReadError: If the file, its JSON, or the sub-path is unreadable
        MissingBytecode: If runtime or deployment bytecode is absent or empty
    """
    path = Path(location)
    if base_dir is not None and not path.is_absolute():
        path = base_dir / path

    try:
        with open(path, "r", encoding="utf-8") as f:
            doc = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ArtifactReadError(f"no readable artifact at {path}: {e}") from e

    try:
        doc = _descend(doc, sub_path)
    except KeyError as e:
        raise ArtifactReadError(f"no readable artifact at {path} (sub-path {sub_path!r}, missing key {e})") from e

    runtime = _first_bytecode(doc, RUNTIME_FIELDS)
    if runtime is None:
        raise MissingBytecode(f"null runtime bytecode read from artifact {path}")
    deployment = _first_bytecode(doc, DEPLOYMENT_FIELDS)
    if deployment is None:
        raise MissingBytecode(f"null deployment bytecode read from artifact {path}")

    logger.debug("read %s artifact %s (runtime=%d, deployment=%d chars)", dialect, path, len(runtime), len(deployment))
    return CompiledArtifact(runtime_bytecode=runtime, deployment_bytecode=deployment, dialect=dialect)


def read_descriptor_artifact(desc: ArtifactDescriptor, base_dir: Optional[Path] = None) -> CompiledArtifact:
    return read_artifact(desc.artifact_path, desc.artifact_sub_path, dialect=desc.dialect, base_dir=base_dir)


def load_registry(path: Union[str, Path]) -> List[ArtifactDescriptor]:
    """
    Load the ordered registry of artifacts to verify.

    Raises:
        ValueError: If the file is not a JSON array of valid entries
        OSError: If the file cannot be read
    """
    raw = Path(path).read_text(encoding="utf-8")
    try:
        return _registry_adapter.validate_json(raw)
    except ValidationError as e:
        raise ValueError(f"invalid registry {path}: {e}") from e
