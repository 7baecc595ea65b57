"""
Bytecode Verifier - match compiled contract artifacts against on-chain code.

Deployed-code match first, creation-code match as fallback.
Each registry entry is verified independently and statelessly.
"""

__version__ = "0.3.0"
