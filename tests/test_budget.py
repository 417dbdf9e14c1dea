import pytest

from nodebench.core.budget import (
    CPU_WEIGHTS, DISK_WEIGHTS, DOMAIN_WEIGHTS, MEMORY_WEIGHTS, NANOS_PER_SECOND,
    allocate, ns_to_seconds, seconds_to_ns, unallocated,
)

S = NANOS_PER_SECOND


def test_default_profile_splits_exactly():
    assert allocate(60 * S, CPU_WEIGHTS) == {
        "keccak": 15 * S, "ecdsa": 20 * S, "bls": 15 * S, "bn256": 10 * S,
    }
    assert allocate(60 * S, MEMORY_WEIGHTS) == {"trie": 25 * S, "pool": 15 * S, "state_cache": 20 * S}
    assert allocate(60 * S, DISK_WEIGHTS) == {"sequential": 20 * S, "random": 25 * S, "batch": 15 * S}
    assert unallocated(60 * S, CPU_WEIGHTS) == 0


def test_quick_profile_truncates_and_keeps_residual():
    shares = allocate(20 * S, CPU_WEIGHTS)
    assert shares == {
        "keccak": 5 * S,
        "ecdsa": 6_666_666_666,
        "bls": 5 * S,
        "bn256": 3_333_333_333,
    }
    # the truncated nanosecond is not redistributed
    assert unallocated(20 * S, CPU_WEIGHTS) == 1


def test_allocation_preserves_order():
    assert list(allocate(10, {"b": (1, 2), "a": (1, 2)})) == ["b", "a"]


def test_zero_total():
    assert allocate(0, CPU_WEIGHTS) == {name: 0 for name in CPU_WEIGHTS}


def test_each_domain_weights_cover_the_whole_budget():
    for weights in DOMAIN_WEIGHTS.values():
        assert sum(num for num, _ in weights.values()) == 60
        assert {den for _, den in weights.values()} == {60}


@pytest.mark.parametrize("weights", [{"x": (1, 0)}, {"x": (-1, 2)}])
def test_invalid_ratio_rejected(weights):
    with pytest.raises(ValueError):
        allocate(S, weights)


def test_negative_total_rejected():
    with pytest.raises(ValueError):
        allocate(-1, CPU_WEIGHTS)


def test_second_conversions():
    assert seconds_to_ns(1.5) == 1_500_000_000
    assert seconds_to_ns(20 / 60) == 333_333_333
    assert ns_to_seconds(2 * S) == pytest.approx(2.0)
