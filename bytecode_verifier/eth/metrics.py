"""
RPC accounting for one verification run.

Tracks:
- Call and error totals
- Latency per RPC method (count / mean / max)
- Calls per target, where a target is the address or transaction hash
  a read was made for, so each registry entry's RPC work can be reported
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict


@dataclass
class Latency:
    count: int = 0
    total_ms: float = 0.0
    max_ms: float = 0.0

    def add(self, elapsed_ms: float) -> None:
        self.count += 1
        self.total_ms += elapsed_ms
        self.max_ms = max(self.max_ms, elapsed_ms)

    def as_dict(self) -> dict:
        mean = self.total_ms / self.count if self.count else 0.0
        return {"count": self.count, "mean_ms": round(mean, 3), "max_ms": round(self.max_ms, 3)}


@dataclass
class Metrics:
    """RPC counters, latencies and per-target call counts."""

    counters: Dict[str, int] = field(default_factory=dict)
    latency: Dict[str, Latency] = field(default_factory=dict)
    targets: Dict[str, Dict[str, int]] = field(default_factory=dict)

    def inc(self, name: str, by: int = 1) -> None:
        self.counters[name] = self.counters.get(name, 0) + by

    def record_call(self, method: str, target: str, elapsed_ms: float) -> None:
        """Record a completed RPC read."""
        self.inc("rpc_calls_total")
        self.latency.setdefault(method, Latency()).add(elapsed_ms)
        self._count(target, method)

    def record_error(self, method: str, target: str) -> None:
        """Record a failed RPC read (transport or node error)."""
        self.inc("rpc_errors_total")
        self._count(target, f"{method}:error")

    def _count(self, target: str, key: str) -> None:
        calls = self.targets.setdefault(target.lower(), {})
        calls[key] = calls.get(key, 0) + 1

    def calls_for(self, *targets: str) -> Dict[str, int]:
        """
        Merged call counts for one or more targets.

        Args:
            targets: Addresses and/or transaction hashes (case-insensitive)

        Returns:
            {method: count}, with failures counted under "<method>:error"
        """
        merged: Dict[str, int] = {}
        for target in targets:
            for key, n in self.targets.get(target.lower(), {}).items():
                merged[key] = merged.get(key, 0) + n
        return merged

    def snapshot(self) -> dict:
        return {
            "counters": dict(self.counters),
            "latency_ms": {method: lat.as_dict() for method, lat in self.latency.items()},
            "targets": {target: dict(calls) for target, calls in self.targets.items()},
        }
