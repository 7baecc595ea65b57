"""
Shared fixtures and bytecode builders.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from bytecode_verifier.models import CreationTransaction

ADDR = "0x" + "11" * 20
OTHER_ADDR = "0x" + "22" * 20
TX_HASH = "0x" + "ab" * 32

# PUSH1 0x80 PUSH1 0x40 MSTORE PUSH1 0x00 DUP1 REVERT
CODE = "6080604052600080fd"


def with_metadata(code: str, payload: str) -> str:
    """Append a solc-style trailer: payload + uint16 payload byte length."""
    return code + payload + f"{len(payload) // 2:04x}"


def placeholder(tag: str) -> str:
    """40-char library link placeholder; tag is 2 hex chars."""
    return "__$" + tag * 17 + "$__"


class FakeChain:
    """In-memory chain reader."""

    def __init__(self, code: str = "0x", txs=None, fail_for=()):
        self._code = code
        self._txs = txs or {}
        self._fail_for = set(fail_for)
        self.tx_lookups = []

    async def get_code(self, address: str) -> str:
        if address in self._fail_for:
            raise RuntimeError(f"boom {address}")
        if isinstance(self._code, dict):
            return self._code.get(address, "0x")
        return self._code

    async def get_transaction(self, tx_hash: str):
        self.tx_lookups.append(tx_hash)
        return self._txs.get(tx_hash)


def creation_tx(input_data: str, created: str = ADDR) -> CreationTransaction:
    return CreationTransaction(input_data=input_data, created_address=created)


@pytest.fixture
def write_artifact(tmp_path: Path):
    """Write a Hardhat-style artifact and return its path."""

    def _write(runtime: str = "0x" + CODE, deployment: str = "0x" + CODE, name: str = "Token.json", **extra) -> str:
        doc = {"contractName": name, "bytecode": deployment, "deployedBytecode": runtime}
        doc.update(extra)
        path = tmp_path / name
        path.write_text(json.dumps(doc), encoding="utf-8")
        return str(path)

    return _write
