"""
Command line entry point.

    bytecode-verifier --file registry.json --rpc-url https://...

Exit codes:
    0 - Every registry entry matched on-chain code
    1 - At least one entry mismatched or errored
    2 - Usage / configuration error (no registry, no RPC endpoint, bad registry,
        unreachable RPC endpoint)
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import List, Optional

import click
from dotenv import load_dotenv

from bytecode_verifier import __version__
from bytecode_verifier.artifacts import load_registry
from bytecode_verifier.eth.chain_client import ChainClient
from bytecode_verifier.eth.metrics import Metrics
from bytecode_verifier.eth.settings import Settings
from bytecode_verifier.models import ArtifactDescriptor, MatchOutcome
from bytecode_verifier.orchestrator import verify_registry
from bytecode_verifier.report import report

logger = logging.getLogger("bytecode_verifier")


class EndpointUnreachable(click.ClickException):
    """RPC endpoint failed the pre-flight health check."""

    exit_code = 2


def _log_level(settings: Settings, verbose: int) -> int:
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return getattr(logging, settings.LOG_LEVEL, logging.WARNING)


def _rpc_usage(descriptors: List[ArtifactDescriptor], metrics: Metrics) -> dict:
    """Metrics snapshot plus the RPC calls made for each registry entry."""
    usage = metrics.snapshot()
    entries = {}
    for desc in descriptors:
        targets = [desc.address] + ([desc.tx_hash] if desc.tx_hash else [])
        entries[f"{desc.name}@{desc.address}"] = metrics.calls_for(*targets)
    usage["entries"] = entries
    return usage


async def _verify_all(
    descriptors: List[ArtifactDescriptor],
    client: ChainClient,
    *,
    endpoint: str,
    diff_max_chars: int,
    base_dir: Optional[Path],
) -> List[MatchOutcome]:
    try:
        if not await client.ping():
            raise EndpointUnreachable(f"RPC endpoint unreachable: {endpoint}")
        return await verify_registry(descriptors, client, diff_max_chars=diff_max_chars, base_dir=base_dir)
    finally:
        await client.close()


@click.command()
@click.option("--file", "-f", "registry_file", help="Registry JSON (env: REGISTRY_FILE / INPUT_FILE)")
@click.option("--rpc-url", help="JSON-RPC endpoint (env: RPC_URL, or INFURA_PROJECT_ID for Infura mainnet)")
@click.option("--timeout", type=int, help="RPC request timeout in seconds (env: RPC_TIMEOUT)")
@click.option(
    "--non-interactive/--interactive",
    default=None,
    help="Skip diagnostic diffs of mismatched bytecode (env: NON_INTERACTIVE, CI)",
)
@click.option("--diff-max-chars", type=int, help="Diff window per operand (env: DIFF_MAX_CHARS)")
@click.option(
    "--base-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory relative artifact paths resolve against (default: cwd)",
)
@click.option("--verbose", "-v", count=True, help="-v for progress, -vv for matcher details")
@click.version_option(__version__, prog_name="bytecode-verifier")
def main(
    registry_file: Optional[str],
    rpc_url: Optional[str],
    timeout: Optional[int],
    non_interactive: Optional[bool],
    diff_max_chars: Optional[int],
    base_dir: Optional[Path],
    verbose: int,
) -> None:
    """
    Verify that compiled contract artifacts match deployed bytecode.

    Each registry entry is checked against the runtime code at its address;
    entries with immutables fall back to the creation transaction (txHash).

    Example:
        bytecode-verifier -f deployed.json --rpc-url https://eth.llamarpc.com
    """
    load_dotenv()
    settings = Settings.load()
    logging.basicConfig(level=_log_level(settings, verbose), format="%(levelname)s %(name)s: %(message)s")

    registry_file = registry_file or settings.REGISTRY_FILE
    if not registry_file:
        raise click.UsageError("no registry given: pass --file or set REGISTRY_FILE")

    endpoint = rpc_url or settings.rpc_endpoint()
    if not endpoint:
        raise click.UsageError("no RPC endpoint: pass --rpc-url or set RPC_URL / INFURA_PROJECT_ID")

    if non_interactive is None:
        non_interactive = settings.NON_INTERACTIVE
    window = 0 if non_interactive else (diff_max_chars if diff_max_chars is not None else settings.DIFF_MAX_CHARS)

    try:
        descriptors = load_registry(registry_file)
    except (OSError, ValueError) as e:
        raise click.BadParameter(f"cannot read registry {registry_file}: {e}", param_hint="--file") from e
    logger.info("verifying %d registry entries against %s", len(descriptors), endpoint)

    client = ChainClient.from_url(endpoint, timeout=timeout or settings.RPC_TIMEOUT)
    outcomes = asyncio.run(
        _verify_all(descriptors, client, endpoint=endpoint, diff_max_chars=window, base_dir=base_dir)
    )

    status = report(outcomes)
    if verbose:
        click.echo(json.dumps(_rpc_usage(descriptors, client.metrics), indent=2, sort_keys=True), err=True)
    raise SystemExit(status)


if __name__ == "__main__":
    main()
