"""
Runtime configuration.

Environment variables (a .env file is honoured by the CLI):
- REGISTRY_FILE / INPUT_FILE: Registry of artifacts to verify
- RPC_URL / INPUT_RPC-URL: JSON-RPC endpoint
- INFURA_PROJECT_ID / WEB3_INFURA_PROJECT_ID: Infura mainnet fallback
- RPC_TIMEOUT: Per-request timeout in seconds (default: 8)
- NON_INTERACTIVE: Skip diagnostic diffs (default: value of CI)
- DIFF_MAX_CHARS: Diff window per operand (default: 2000)
- LOG_LEVEL: Logging level (default: WARNING)

INPUT_* names are what GitHub Actions exports for action inputs.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Tuple

INFURA_MAINNET_URL = "https://mainnet.infura.io/v3/{project_id}"


def _opt(names: Tuple[str, ...], default: str = "") -> str:
    """First non-empty environment variable among names, else default."""
    for name in names:
        v = os.getenv(name)
        if v:
            return v
    return default


def _opt_bool(name: str, default: bool) -> bool:
    """Parse boolean environment variable."""
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "yes", "y", "on")


def _opt_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if not v:
        return default
    try:
        return int(v)
    except ValueError as e:
        raise RuntimeError(f"Invalid integer env var: {name}={v!r}") from e


@dataclass(frozen=True)
class Settings:
    """Verifier configuration."""

    REGISTRY_FILE: str = ""
    RPC_URL: str = ""
    INFURA_PROJECT_ID: str = ""
    RPC_TIMEOUT: int = 8

    # Diagnostics
    NON_INTERACTIVE: bool = False
    DIFF_MAX_CHARS: int = 2_000

    LOG_LEVEL: str = "WARNING"

    @staticmethod
    def load() -> Settings:
        """Load settings from environment variables."""
        return Settings(
            REGISTRY_FILE=_opt(("REGISTRY_FILE", "INPUT_FILE")),
            RPC_URL=_opt(("RPC_URL", "INPUT_RPC-URL")),
            INFURA_PROJECT_ID=_opt(("INFURA_PROJECT_ID", "WEB3_INFURA_PROJECT_ID")),
            RPC_TIMEOUT=_opt_int("RPC_TIMEOUT", 8),
            NON_INTERACTIVE=_opt_bool("NON_INTERACTIVE", _opt_bool("CI", False)),
            DIFF_MAX_CHARS=_opt_int("DIFF_MAX_CHARS", 2_000),
            LOG_LEVEL=_opt(("LOG_LEVEL",), "WARNING").upper(),
        )

    def rpc_endpoint(self) -> Optional[str]:
        """Explicit RPC URL, else the Infura endpoint, else None."""
        if self.RPC_URL:
            return self.RPC_URL
        if self.INFURA_PROJECT_ID:
            return INFURA_MAINNET_URL.format(project_id=self.INFURA_PROJECT_ID)
        return None
