"""
Readiness verdict: overall score -> per-role labels plus advisories.
"""

from __future__ import annotations
from typing import List, Tuple, Union

from ..core.interfaces import BenchmarkResults, Summary, Verdict

READY = "Ready"
MARGINAL = "Marginal"
UNSUITABLE = "Unsuitable"

# (minimum score, execution client label, consensus client label, baseline advisories)
TIERS: Tuple[Tuple[int, str, str, Tuple[str, ...]], ...] = (
    (80, READY, READY, (
        "Your hardware meets Ethereum node requirements.",
        "Both execution and consensus clients should run well on this system.",
    )),
    (60, MARGINAL, READY, (
        "Consensus client should work well.",
        "Execution client may struggle during high network activity.",
        "Consider using checkpoint sync to reduce initial sync time.",
    )),
    (40, MARGINAL, MARGINAL, (
        "Hardware is below recommended specifications.",
        "Initial sync will be slow (potentially weeks).",
        "Consider using an external execution client RPC.",
    )),
    (0, UNSUITABLE, MARGINAL, (
        "Hardware does not meet minimum requirements for execution client.",
        "Consider upgrading to NVMe storage.",
        "A more powerful single-board computer is recommended.",
    )),
)

# (domain, probe, rate, floor, advisory) -- triggered on raw values below the floor
CONDITIONAL_ADVISORIES: Tuple[Tuple[str, str, str, float, str], ...] = (
    ("disk", "random", "read_iops", 10_000,
     "Random I/O performance is low. NVMe SSD strongly recommended."),
    ("cpu", "ecdsa", "verifications_per_second", 500,
     "ECDSA verification is slow. This may cause transaction validation delays."),
    ("cpu", "bls", "verifications_per_second", 100,
     "BLS signature verification is slow. Consensus layer may lag."),
)


def classify(score: int) -> Tuple[str, str, Tuple[str, ...]]:
    """Tier lookup: (execution label, consensus label, baseline advisories)."""
    for minimum, execution, consensus, advisories in TIERS:
        if score >= minimum:
            return execution, consensus, advisories
    # negative scores fall through to the lowest tier
    _, execution, consensus, advisories = TIERS[-1]
    return execution, consensus, advisories


def conditional_advisories(results: BenchmarkResults) -> List[str]:
    return [
        message
        for domain, probe, rate, floor, message in CONDITIONAL_ADVISORIES
        if results.rate(domain, probe, rate) < floor
    ]


def determine_verdict(score: Union[int, Summary], results: BenchmarkResults) -> Verdict:
    """Build the verdict: tier baseline advisories first, then conditional ones."""
    overall = score.total_score if isinstance(score, Summary) else int(score)
    execution, consensus, baseline = classify(overall)
    return Verdict(
        overall_score=overall,
        execution_client=execution,
        consensus_client=consensus,
        recommendations=tuple(baseline) + tuple(conditional_advisories(results)),
    )
