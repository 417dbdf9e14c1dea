"""
Time budget allocation for probes and probe phases.

Durations are integer nanoseconds. Every share is computed independently as
``total * num // den``; the truncation residual is left unaccounted.
"""

from __future__ import annotations
from typing import Dict, Mapping, Tuple

NANOS_PER_SECOND = 1_000_000_000

Ratio = Tuple[int, int]

DOMAINS: Tuple[str, ...] = ("cpu", "memory", "disk")

CPU_WEIGHTS: Dict[str, Ratio] = {
    "keccak": (15, 60),
    "ecdsa": (20, 60),
    "bls": (15, 60),
    "bn256": (10, 60),
}

MEMORY_WEIGHTS: Dict[str, Ratio] = {
    "trie": (25, 60),
    "pool": (15, 60),
    "state_cache": (20, 60),
}

DISK_WEIGHTS: Dict[str, Ratio] = {
    "sequential": (20, 60),
    "random": (25, 60),
    "batch": (15, 60),
}

DOMAIN_WEIGHTS: Dict[str, Dict[str, Ratio]] = {
    "cpu": CPU_WEIGHTS,
    "memory": MEMORY_WEIGHTS,
    "disk": DISK_WEIGHTS,
}

# Seconds per domain for each run profile; sibling ratios never change.
PROFILE_SECONDS: Dict[str, float] = {
    "default": 60.0,
    "quick": 20.0,
}


def seconds_to_ns(seconds: float) -> int:
    return int(round(seconds * NANOS_PER_SECOND))


def ns_to_seconds(ns: int) -> float:
    return ns / NANOS_PER_SECOND


def allocate(total_ns: int, weights: Mapping[str, Ratio]) -> Dict[str, int]:
    """Split ``total_ns`` into named sub-durations.

    Args:
        total_ns: Total budget in nanoseconds.
        weights: Mapping of name -> (numerator, denominator).

    Returns:
        Mapping of name -> sub-duration in nanoseconds, in the order of ``weights``.
    """
    if total_ns < 0:
        raise ValueError(f"total duration must be non-negative, got {total_ns}")
    out: Dict[str, int] = {}
    for name, (num, den) in weights.items():
        if den <= 0 or num < 0:
            raise ValueError(f"invalid ratio for {name!r}: {num}/{den}")
        out[name] = total_ns * num // den
    return out


def unallocated(total_ns: int, weights: Mapping[str, Ratio]) -> int:
    """Nanoseconds of ``total_ns`` left over after :func:`allocate`."""
    return total_ns - sum(allocate(total_ns, weights).values())
