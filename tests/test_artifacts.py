"""
Test artifact and registry readers.

Verifies:
- Every supported toolchain layout yields both bytecode fields
- Sub-paths select a contract inside multi-contract outputs
- Missing bytecode and unreadable files raise the right error kind
- Registry entries accept camelCase keys and reject bad addresses
"""

from __future__ import annotations

import json

import pytest

from bytecode_verifier.artifacts import load_registry, pointer_keys, read_artifact, read_descriptor_artifact
from bytecode_verifier.errors import ArtifactReadError, MissingBytecode
from bytecode_verifier.models import ArtifactDescriptor, dialect_for_source

from conftest import ADDR, CODE, TX_HASH

RUNTIME = "0x" + CODE
DEPLOY = "0x60806040" + CODE


def _dump(tmp_path, doc, name="artifact.json"):
    path = tmp_path / name
    path.write_text(json.dumps(doc), encoding="utf-8")
    return path


@pytest.mark.parametrize(
    "doc",
    [
        {"bytecode": DEPLOY, "deployedBytecode": RUNTIME},
        {"bytecode": {"object": DEPLOY}, "deployedBytecode": {"object": RUNTIME}},
        {"deploymentBytecode": {"bytecode": DEPLOY}, "runtimeBytecode": {"bytecode": RUNTIME}},
        {"evm": {"bytecode": {"object": DEPLOY[2:]}, "deployedBytecode": {"object": RUNTIME[2:]}}},
        {"bytecode": DEPLOY, "bytecode_runtime": RUNTIME},
    ],
    ids=["hardhat", "foundry", "ethpm", "solc-standard-json", "vyper-combined"],
)
def test_layouts(tmp_path, doc):
    artifact = read_artifact(_dump(tmp_path, doc))
    assert artifact.runtime_bytecode.lower().endswith(CODE)
    assert artifact.deployment_bytecode.lower().endswith("60806040" + CODE)
    assert artifact.dialect == "solidity"


def test_dialect_passed_through(tmp_path):
    path = _dump(tmp_path, {"bytecode": DEPLOY, "deployedBytecode": RUNTIME})
    assert read_artifact(path, dialect="vyper").dialect == "vyper"


def test_sub_path_pointer(tmp_path):
    doc = {"contracts": {"src/Token.sol": {"Token": {"evm": {
        "bytecode": {"object": DEPLOY[2:]},
        "deployedBytecode": {"object": RUNTIME[2:]},
    }}}}}
    path = _dump(tmp_path, doc)
    artifact = read_artifact(path, "/contracts/src~1Token.sol/Token")
    assert artifact.runtime_bytecode == CODE


def test_sub_path_key_list(tmp_path):
    doc = {"contracts": {"src/Token.sol": {"Token": {"bytecode": DEPLOY, "deployedBytecode": RUNTIME}}}}
    artifact = read_artifact(_dump(tmp_path, doc), ["contracts", "src/Token.sol", "Token"])
    assert artifact.runtime_bytecode == RUNTIME


def test_sub_path_list_index(tmp_path):
    doc = {"items": [{"bytecode": DEPLOY, "deployedBytecode": RUNTIME}]}
    assert read_artifact(_dump(tmp_path, doc), "items/0").runtime_bytecode == RUNTIME


def test_bad_sub_path(tmp_path):
    path = _dump(tmp_path, {"contracts": {}})
    with pytest.raises(ArtifactReadError, match="sub-path"):
        read_artifact(path, "/contracts/Missing")


def test_pointer_keys():
    assert pointer_keys("/a/b~1c/d~0e") == ["a", "b/c", "d~e"]
    assert pointer_keys("a/b") == ["a", "b"]
    assert pointer_keys("/") == []
    assert pointer_keys("") == []


def test_missing_file(tmp_path):
    with pytest.raises(ArtifactReadError, match="no readable artifact"):
        read_artifact(tmp_path / "nope.json")


def test_invalid_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ArtifactReadError):
        read_artifact(path)


@pytest.mark.parametrize("runtime", [None, "", "0x"])
def test_missing_runtime_bytecode(tmp_path, runtime):
    doc = {"bytecode": DEPLOY}
    if runtime is not None:
        doc["deployedBytecode"] = runtime
    with pytest.raises(MissingBytecode, match="runtime"):
        read_artifact(_dump(tmp_path, doc))


def test_missing_deployment_bytecode(tmp_path):
    with pytest.raises(MissingBytecode, match="deployment"):
        read_artifact(_dump(tmp_path, {"bytecode": "0x", "deployedBytecode": RUNTIME}))


def test_relative_path_uses_base_dir(tmp_path):
    _dump(tmp_path, {"bytecode": DEPLOY, "deployedBytecode": RUNTIME}, "Rel.json")
    assert read_artifact("Rel.json", base_dir=tmp_path).runtime_bytecode == RUNTIME


def test_descriptor_artifact_dialect_from_source(tmp_path):
    path = _dump(tmp_path, {"bytecode": DEPLOY, "bytecode_runtime": RUNTIME})
    desc = ArtifactDescriptor(artifactPath=str(path), sourcePath="contracts/Vault.vy", name="Vault", address=ADDR)
    assert read_descriptor_artifact(desc).dialect == "vyper"


class TestRegistry:
    """Registry file parsing."""

    def test_load_registry(self, tmp_path):
        entries = [
            {"artifactPath": "a.json", "sourcePath": "A.sol", "name": "A", "address": ADDR, "txHash": TX_HASH},
            {"artifactPath": "b.json", "sourcePath": "B.vy", "name": "B", "address": ADDR},
        ]
        path = _dump(tmp_path, entries, "registry.json")
        descs = load_registry(path)
        assert [d.name for d in descs] == ["A", "B"]
        assert descs[0].tx_hash == TX_HASH
        assert descs[1].tx_hash is None
        assert descs[1].dialect == "vyper"

    def test_blank_tx_hash_is_none(self):
        desc = ArtifactDescriptor(artifactPath="a", sourcePath="A.sol", name="A", address=ADDR, txHash="")
        assert desc.tx_hash is None

    def test_snake_case_names_accepted(self):
        desc = ArtifactDescriptor(artifact_path="a", source_path="A.sol", name="A", address=ADDR)
        assert desc.artifact_path == "a"

    def test_bad_address_rejected(self, tmp_path):
        path = _dump(tmp_path, [{"artifactPath": "a", "sourcePath": "A.sol", "name": "A", "address": "0x1234"}])
        with pytest.raises(ValueError, match="invalid registry"):
            load_registry(path)

    def test_registry_must_be_a_list(self, tmp_path):
        with pytest.raises(ValueError):
            load_registry(_dump(tmp_path, {"artifactPath": "a"}))


@pytest.mark.parametrize(
    "source,dialect",
    [("contracts/Token.sol", "solidity"), ("Vault.vy", "vyper"), ("VAULT.VY", "vyper"), ("Token.yul", "solidity")],
)
def test_dialect_for_source(source, dialect):
    assert dialect_for_source(source) == dialect
