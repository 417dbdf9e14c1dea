"""
Scoring: raw probe rates -> 0-100 metric scores -> category and overall scores.
"""

from __future__ import annotations
import math
from typing import Dict, Mapping, Optional, Union

import numpy as np

from ..core.interfaces import (
    ADEQUATE, ERROR, EXCELLENT, GOOD, MARGINAL, POOR,
    BenchmarkResults, CategoryResult, ProbeResult, Summary,
)
from .calibration import (
    CALIBRATION, CATEGORY_WEIGHTS, METRIC_SOURCES, OVERALL_WEIGHTS, RATING_RULES,
    CalibrationCurve, combine,
)

__all__ = [
    "score_metric", "score_curve", "rating_for", "rate_probe", "metric_values",
    "category_score", "overall_score", "calculate_summary", "category_results",
]

_SCORE_POINTS = (0.0, 25.0, 50.0, 75.0, 100.0)


def score_metric(value: float,
                 poor: Union[float, CalibrationCurve],
                 marginal: Optional[float] = None,
                 good: Optional[float] = None,
                 excellent: Optional[float] = None) -> float:
    """
    Piecewise-linear score of a raw metric value, clamped to [0, 100].

    Breakpoints 0, poor, marginal, good and excellent map to 0, 25, 50, 75
    and 100; values in between are interpolated linearly and anything at or
    above ``excellent`` scores 100. Requires ``0 < poor < marginal < good <
    excellent``. Negative and NaN values score 0.

    The breakpoints are either a CalibrationCurve or four floats.
    """
    if isinstance(poor, CalibrationCurve):
        points = poor.breakpoints()
    else:
        points = (poor, marginal, good, excellent)
        if any(p is None for p in points):
            raise TypeError("score_metric needs a CalibrationCurve or all four breakpoints")
    v = float(value)
    if math.isnan(v):
        return 0.0
    score = float(np.interp(v, (0.0, *points), _SCORE_POINTS))
    return min(100.0, max(0.0, score))


def score_curve(value: float, curve: CalibrationCurve) -> float:
    return score_metric(value, curve)


def rating_for(value: float, curve: CalibrationCurve) -> str:
    """Qualitative label for a value against a calibration curve."""
    if value >= curve.excellent:
        return EXCELLENT
    if value >= curve.good:
        return GOOD
    if value >= curve.marginal:
        return ADEQUATE
    if value >= curve.poor:
        return MARGINAL
    return POOR


def rate_probe(name: str, rates: Mapping[str, float], failed: bool = False) -> str:
    """Rating label for a finished probe, ``Error`` when ``failed``."""
    if failed:
        return ERROR
    inputs, curve = RATING_RULES[name]
    return rating_for(combine(rates, inputs), curve)


def metric_values(results: BenchmarkResults) -> Dict[str, float]:
    """Raw value of every calibrated metric, pulled from the probe results."""
    values: Dict[str, float] = {}
    for metric, source in METRIC_SOURCES.items():
        probe: Optional[ProbeResult] = results.get(source.domain, source.probe)
        values[metric] = combine(probe.rates, source.inputs) if probe is not None else 0.0
    return values


def _truncate(total: float) -> int:
    # round first so 79.99999999999999 truncates to 80, not 79
    return int(min(100.0, max(0.0, math.floor(round(total, 9)))))


def category_score(metrics: Mapping[str, float],
                   weights: Mapping[str, float],
                   curves: Mapping[str, CalibrationCurve] = CALIBRATION) -> int:
    """
    Weighted category score: floor(sum(weight_i * score_i)).

    Args:
        metrics: Raw metric values keyed by metric name (missing -> 0).
        weights: Metric weights for the category, summing to 1.
        curves: Calibration curve per metric.

    Returns:
        Integer score in [0, 100].
    """
    total = math.fsum(
        weight * score_curve(metrics.get(name, 0.0), curves[name])
        for name, weight in weights.items()
    )
    return _truncate(total)


def overall_score(cpu: int, memory: int, disk: int) -> int:
    """floor(0.40*cpu + 0.35*disk + 0.25*memory)."""
    total = math.fsum((
        OVERALL_WEIGHTS["cpu"] * cpu,
        OVERALL_WEIGHTS["disk"] * disk,
        OVERALL_WEIGHTS["memory"] * memory,
    ))
    return _truncate(total)


def category_results(results: BenchmarkResults) -> Dict[str, CategoryResult]:
    values = metric_values(results)
    return {
        domain: CategoryResult(
            domain=domain,
            probes=dict(results.domains.get(domain, {})),
            score=category_score(values, weights),
        )
        for domain, weights in CATEGORY_WEIGHTS.items()
    }


def calculate_summary(results: BenchmarkResults) -> Summary:
    categories = category_results(results)
    cpu = categories["cpu"].score
    memory = categories["memory"].score
    disk = categories["disk"].score
    return Summary(
        cpu_score=cpu,
        memory_score=memory,
        disk_score=disk,
        total_score=overall_score(cpu, memory, disk),
    )
