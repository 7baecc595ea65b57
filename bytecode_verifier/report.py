"""
Result sink: ordering, terminal rendering and exit status.

Failures are listed before successes so they are not lost at the top of a
long CI log. The exit status is decided here, never in the core.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

import click

from bytecode_verifier.models import BytecodeDiff, MatchOutcome, MatchStatus

GREEN_CHECK = click.style("✓", fg="green")
RED_CROSS = click.style("×", fg="red")

_ORDER = {
    MatchStatus.MISMATCHED: 0,
    MatchStatus.ERRORED: 1,
    MatchStatus.MATCHED: 2,
}

# Unchanged runs longer than this are elided around their middle
EQUAL_CONTEXT = 16


def sort_outcomes(outcomes: Iterable[MatchOutcome]) -> List[MatchOutcome]:
    """Mismatched, then errored, then matched; registry order within each."""
    return sorted(outcomes, key=lambda o: _ORDER[o.status])


def headline(outcome: MatchOutcome) -> str:
    desc = outcome.descriptor
    mark = GREEN_CHECK if outcome.ok else RED_CROSS
    return "".join(
        [
            mark,
            " ",
            desc.name,
            click.style("@", fg="bright_black"),
            click.style(desc.address, fg="blue"),
        ]
    )


def _elide(text: str) -> str:
    if len(text) <= EQUAL_CONTEXT * 2:
        return text
    return f"{text[:EQUAL_CONTEXT]}...({len(text) - EQUAL_CONTEXT * 2} chars)...{text[-EQUAL_CONTEXT:]}"


def render_diff(diff: BytecodeDiff) -> str:
    """Colored inline diff: expected-only red, on-chain-only green."""
    parts = []
    for seg in diff.segments:
        if seg.tag == "equal":
            parts.append(click.style(_elide(seg.expected), fg="bright_black"))
            continue
        if seg.expected:
            parts.append(click.style(seg.expected, fg="red"))
        if seg.actual:
            parts.append(click.style(seg.actual, fg="green"))

    header = f"first difference at byte {diff.first_divergence // 2} (hex offset {diff.first_divergence})"
    if diff.truncated:
        header += ", diff window truncated"
    return header + "\n" + "".join(parts)


def render_outcome(outcome: MatchOutcome) -> str:
    lines = [headline(outcome)]
    if outcome.status is MatchStatus.ERRORED:
        lines.append(f"    {outcome.error_kind}: {outcome.reason}")
    elif outcome.status is MatchStatus.MISMATCHED:
        lines.append(f"    {outcome.reason}")
        if outcome.diff is not None:
            lines.extend("    " + line for line in render_diff(outcome.diff).splitlines())
    return "\n".join(lines)


def summary(outcomes: Sequence[MatchOutcome]) -> str:
    counts = {status: 0 for status in MatchStatus}
    for o in outcomes:
        counts[o.status] += 1
    return (
        f"{len(outcomes)} checked: {counts[MatchStatus.MATCHED]} matched, "
        f"{counts[MatchStatus.MISMATCHED]} mismatched, {counts[MatchStatus.ERRORED]} errored"
    )


def exit_code(outcomes: Sequence[MatchOutcome]) -> int:
    """0 if every entry matched, 1 otherwise."""
    return 0 if all(o.ok for o in outcomes) else 1


def report(outcomes: Sequence[MatchOutcome], *, color: Optional[bool] = None) -> int:
    """
    Print every outcome, failures first, and return the process exit status.

    Args:
        outcomes: One outcome per registry entry
        color: Force or strip ANSI colors (default: autodetect)
    """
    for outcome in sort_outcomes(outcomes):
        click.echo(render_outcome(outcome), color=color)
    click.echo(summary(outcomes), color=color)
    return exit_code(outcomes)
