import pytest

from nodebench.core.interfaces import BenchmarkResults, ProbeResult, Summary
from nodebench.metrics.verdict import (
    CONDITIONAL_ADVISORIES, MARGINAL, READY, TIERS, UNSUITABLE,
    classify, conditional_advisories, determine_verdict,
)


def healthy_results():
    results = BenchmarkResults()
    results.add(ProbeResult("random", "disk", {"read_iops": 20_000, "write_iops": 5_000}, 1, "Good"))
    results.add(ProbeResult("ecdsa", "cpu", {"verifications_per_second": 900}, 1, "Good"))
    results.add(ProbeResult("bls", "cpu", {"verifications_per_second": 150}, 1, "Good"))
    return results


@pytest.mark.parametrize("score,execution,consensus", [
    (100, READY, READY),
    (80, READY, READY),
    (79, MARGINAL, READY),
    (60, MARGINAL, READY),
    (59, MARGINAL, MARGINAL),
    (40, MARGINAL, MARGINAL),
    (39, UNSUITABLE, MARGINAL),
    (0, UNSUITABLE, MARGINAL),
])
def test_tier_boundaries(score, execution, consensus):
    verdict = determine_verdict(score, healthy_results())
    assert verdict.overall_score == score
    assert verdict.execution_client == execution
    assert verdict.consensus_client == consensus


def test_healthy_system_gets_baseline_only():
    verdict = determine_verdict(85, healthy_results())
    assert verdict.recommendations == TIERS[0][3]
    assert len(verdict.recommendations) == 2


def test_negative_score_falls_to_lowest_tier():
    assert classify(-5)[0] == UNSUITABLE


def test_accepts_summary():
    verdict = determine_verdict(Summary(70, 70, 70, 70), healthy_results())
    assert verdict.overall_score == 70
    assert verdict.execution_client == MARGINAL


def test_conditional_advisories_follow_baseline_in_order():
    results = BenchmarkResults()
    results.add(ProbeResult("random", "disk", {"read_iops": 9_999}, 1, "Marginal"))
    results.add(ProbeResult("ecdsa", "cpu", {"verifications_per_second": 499}, 1, "Poor"))
    results.add(ProbeResult("bls", "cpu", {"verifications_per_second": 99}, 1, "Marginal"))

    verdict = determine_verdict(65, results)
    baseline = TIERS[1][3]
    assert verdict.recommendations[:len(baseline)] == baseline
    assert list(verdict.recommendations[len(baseline):]) == [msg for *_, msg in CONDITIONAL_ADVISORIES]


def test_thresholds_are_strict():
    results = BenchmarkResults()
    results.add(ProbeResult("random", "disk", {"read_iops": 10_000}, 1, "Adequate"))
    results.add(ProbeResult("ecdsa", "cpu", {"verifications_per_second": 500}, 1, "Adequate"))
    results.add(ProbeResult("bls", "cpu", {"verifications_per_second": 100}, 1, "Adequate"))
    assert conditional_advisories(results) == []


def test_missing_probes_trigger_every_advisory():
    assert len(conditional_advisories(BenchmarkResults())) == len(CONDITIONAL_ADVISORIES)


def test_verdict_to_dict():
    data = determine_verdict(10, BenchmarkResults()).to_dict()
    assert set(data) == {"overall_score", "execution_client", "consensus_client", "recommendations"}
    assert isinstance(data["recommendations"], list)
    assert len(data["recommendations"]) == 3 + 3
