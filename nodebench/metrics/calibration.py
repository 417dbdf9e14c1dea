"""
Static scoring model: calibration curves, category weights and rating rules.

Everything the scorer, aggregator and probe ratings need lives here, so the
scoring model can be tested independently of the probes.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Mapping, Tuple


@dataclass(frozen=True)
class CalibrationCurve:
    """Four strictly increasing, positive breakpoints for one metric."""
    poor: float
    marginal: float
    good: float
    excellent: float

    def __post_init__(self):
        points = self.breakpoints()
        if points[0] <= 0:
            raise ValueError(f"poor breakpoint must be positive, got {points[0]}")
        if any(b <= a for a, b in zip(points, points[1:])):
            raise ValueError(f"breakpoints must be strictly increasing, got {points}")

    def breakpoints(self) -> Tuple[float, float, float, float]:
        return (self.poor, self.marginal, self.good, self.excellent)


@dataclass(frozen=True)
class MetricSource:
    """Where a metric value comes from: a linear combination of one probe's rates."""
    domain: str
    probe: str
    inputs: Tuple[Tuple[str, float], ...]


# ---------------------------------------------------------------------------
# Category metrics
# ---------------------------------------------------------------------------

CALIBRATION: Dict[str, CalibrationCurve] = {
    # cpu
    "keccak": CalibrationCurve(50_000, 100_000, 200_000, 500_000),
    "ecdsa_verify": CalibrationCurve(250, 500, 1_000, 2_000),
    "bls_verify": CalibrationCurve(50, 100, 200, 500),
    "bn256_pair": CalibrationCurve(10, 25, 50, 100),
    # memory
    "trie_insert": CalibrationCurve(5_000, 10_000, 20_000, 50_000),
    "pool_ops": CalibrationCurve(50_000, 100_000, 200_000, 500_000),
    "state_cache_hits": CalibrationCurve(50_000, 100_000, 200_000, 500_000),
    # disk
    "sequential_mbps": CalibrationCurve(50, 100, 200, 400),
    "random_iops": CalibrationCurve(5_000, 10_000, 20_000, 50_000),
    "batch_mbps": CalibrationCurve(10, 25, 50, 100),
}

CATEGORY_WEIGHTS: Dict[str, Dict[str, float]] = {
    "cpu": {
        "keccak": 0.25,
        "ecdsa_verify": 0.35,
        "bls_verify": 0.25,
        "bn256_pair": 0.15,
    },
    "memory": {
        "trie_insert": 0.40,
        "pool_ops": 0.30,
        "state_cache_hits": 0.30,
    },
    "disk": {
        "sequential_mbps": 0.30,
        "random_iops": 0.45,
        "batch_mbps": 0.25,
    },
}

# CPU and disk dominate real-world node bottlenecks.
OVERALL_WEIGHTS: Dict[str, float] = {
    "cpu": 0.40,
    "disk": 0.35,
    "memory": 0.25,
}

METRIC_SOURCES: Dict[str, MetricSource] = {
    "keccak": MetricSource("cpu", "keccak", (("hashes_per_second", 1.0),)),
    "ecdsa_verify": MetricSource("cpu", "ecdsa", (("verifications_per_second", 1.0),)),
    "bls_verify": MetricSource("cpu", "bls", (("verifications_per_second", 1.0),)),
    "bn256_pair": MetricSource("cpu", "bn256", (("pairings_per_second", 1.0),)),
    "trie_insert": MetricSource("memory", "trie", (("inserts_per_second", 1.0),)),
    "pool_ops": MetricSource("memory", "pool", (("allocations_per_second", 1.0), ("reuses_per_second", 1.0))),
    "state_cache_hits": MetricSource("memory", "state_cache", (("cache_hits_per_second", 1.0),)),
    "sequential_mbps": MetricSource("disk", "sequential", (("write_speed_mbps", 0.5), ("read_speed_mbps", 0.5))),
    "random_iops": MetricSource("disk", "random", (("read_iops", 0.5), ("write_iops", 0.5))),
    "batch_mbps": MetricSource("disk", "batch", (("throughput_mbps", 1.0),)),
}

# ---------------------------------------------------------------------------
# Per-probe rating labels
# ---------------------------------------------------------------------------

# probe -> (rate weights, curve). The rating value is sum(weight * rate).
RATING_RULES: Dict[str, Tuple[Tuple[Tuple[str, float], ...], CalibrationCurve]] = {
    "keccak": ((("hashes_per_second", 1.0),), CALIBRATION["keccak"]),
    "ecdsa": ((("verifications_per_second", 0.6), ("recoveries_per_second", 0.4)), CALIBRATION["ecdsa_verify"]),
    "bls": ((("verifications_per_second", 1.0),), CALIBRATION["bls_verify"]),
    "bn256": ((("pairings_per_second", 1.0),), CALIBRATION["bn256_pair"]),
    # lookups are scaled down, they run orders of magnitude faster than inserts
    "trie": ((("inserts_per_second", 0.4), ("lookups_per_second", 0.0006)), CALIBRATION["trie_insert"]),
    "pool": ((("allocations_per_second", 1.0), ("reuses_per_second", 1.0)), CALIBRATION["pool_ops"]),
    "state_cache": ((("cache_hits_per_second", 1.0),), CALIBRATION["state_cache_hits"]),
    "sequential": ((("write_speed_mbps", 0.6), ("read_speed_mbps", 0.4)), CALIBRATION["sequential_mbps"]),
    "random": ((("read_iops", 0.7), ("write_iops", 0.3)), CALIBRATION["random_iops"]),
    "batch": ((("throughput_mbps", 1.0),), CALIBRATION["batch_mbps"]),
}


def combine(rates: Mapping[str, float], inputs: Tuple[Tuple[str, float], ...]) -> float:
    """Weighted sum of named rates; missing rates read as 0."""
    return sum(coef * float(rates.get(key, 0.0)) for key, coef in inputs)
