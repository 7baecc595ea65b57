"""
Ethereum access layer - chain reads, settings, RPC metrics.
"""

from bytecode_verifier.eth.chain_client import ChainClient
from bytecode_verifier.eth.metrics import Metrics
from bytecode_verifier.eth.settings import Settings

__all__ = [
    "ChainClient",
    "Metrics",
    "Settings",
]
