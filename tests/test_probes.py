from unittest.mock import MagicMock, patch

import pytest

from nodebench.config.bench_config import BenchConfig
from nodebench.core.interfaces import ERROR, RATINGS
from nodebench.core.kernel import CancelToken
from nodebench.probes import (
    BatchProbe, BLSProbe, BN256Probe, BufferPool, ECDSAProbe, KeccakProbe, PoolProbe,
    RandomProbe, SequentialProbe, StateCacheProbe, TrieProbe, create_probe, default_registry,
)
from nodebench.probes.cpu import keccak256

MS = 1_000_000


class TestCpuProbes:
    def test_keccak256_known_vector(self):
        assert keccak256(b"").hex() == "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
        assert keccak256(b"ab", b"c") == keccak256(b"abc")

    def test_keccak(self):
        result = KeccakProbe().run(20 * MS)
        assert result.rate("hashes_per_second") > 0
        assert result.extras["total_hashes"] > 0
        assert result.extras["data_processed_mb"] > 0
        assert result.rating in RATINGS and result.rating != ERROR
        assert result.elapsed_ns >= 20 * MS

    def test_ecdsa(self):
        result = ECDSAProbe().run(30 * MS)
        for name in ECDSAProbe.rate_names:
            assert result.rate(name) > 0, name
        assert result.rating != ERROR

    def test_ecdsa_teardown_drops_run_state(self):
        ecdsa = ECDSAProbe()
        ecdsa.run(3 * MS)
        for attr in ("_key", "_public", "_public_bytes", "_message", "_signature", "_recoverable"):
            assert getattr(ecdsa, attr) is None, attr

    def test_bn256(self):
        # each phase runs at least one operation
        result = BN256Probe().run(3 * MS)
        for name in BN256Probe.rate_names:
            assert result.rate(name) > 0, name

    def test_bls_phases(self):
        fake = MagicMock()
        fake.curve_order = 2 ** 255
        with patch("nodebench.probes.cpu.bls", fake):
            result = BLSProbe().run(8 * MS)
        assert set(result.rates) == set(BLSProbe.rate_names)
        assert all(v > 0 for v in result.rates.values())
        assert fake.final_exponentiate.called
        assert fake.add.call_count % BLSProbe.COMMITTEE_SIZE == 0

    def test_cancelled_probe_returns_partial_stats(self):
        token = CancelToken()
        token.cancel()
        result = KeccakProbe().run(10 ** 12, token)
        assert result.rate("hashes_per_second") == 0.0
        assert result.elapsed_ns < 10 ** 12


class TestMemoryProbes:
    def test_buffer_pool_reuses_and_filters(self):
        pool = BufferPool(lambda: bytearray(8), accept=lambda b: len(b) <= 16)
        first = pool.get()
        pool.put(first)
        assert len(pool) == 1
        assert pool.get() is first
        pool.put(bytearray(32))
        assert len(pool) == 0

    def test_trie(self):
        result = TrieProbe().run(30 * MS)
        assert result.rate("inserts_per_second") > 0
        assert result.rate("lookups_per_second") > 0
        assert result.rate("hashes_per_second") > 0
        assert result.extras["peak_memory_mb"] >= 0

    def test_pool_allocates_and_reuses(self):
        result = PoolProbe().run(20 * MS)
        assert result.rate("allocations_per_second") > 0
        assert result.rate("reuses_per_second") > 0
        assert result.extras["memory_churn_mb"] > 0

    def test_state_cache_hit_mix(self):
        result = StateCacheProbe(accounts=50, slots_per_account=4).run(20 * MS)
        assert result.rate("cache_hits_per_second") > 0
        assert result.rate("cache_misses_per_second") > 0
        assert result.extras["hit_ratio"] == pytest.approx(0.8, abs=0.05)

    def test_state_cache_without_accounts_fails_setup(self):
        result = StateCacheProbe(accounts=0).run(10 * MS)
        assert result.rating == ERROR
        assert result.rates == {"cache_hits_per_second": 0.0, "cache_misses_per_second": 0.0}
        assert result.error

    def test_each_run_gets_a_fresh_pool(self):
        probe = PoolProbe()
        pools = []
        setup = probe.setup

        def recording_setup():
            setup()
            pools.append(probe._memory)

        probe.setup = recording_setup
        probe.run(2 * MS)
        probe.run(2 * MS)
        assert pools[0] is not pools[1]
        # released by teardown
        assert probe._memory is None


class TestDiskProbes:
    def test_sequential(self, tmp_path):
        probe = SequentialProbe(str(tmp_path))
        result = probe.run(40 * MS)
        assert result.rate("write_speed_mbps") > 0
        assert result.rate("read_speed_mbps") > 0
        assert not probe.path.exists()

    def test_random(self, tmp_path):
        probe = RandomProbe(str(tmp_path), file_size=1024 * 1024)
        result = probe.run(20 * MS)
        assert result.rate("read_iops") > 0
        assert result.rate("write_iops") > 0
        assert result.extras["avg_latency_us"] > 0
        assert not probe.path.exists()

    def test_random_rejects_tiny_file(self, tmp_path):
        with pytest.raises(ValueError):
            RandomProbe(str(tmp_path), file_size=100, block_size=4096)

    def test_batch(self, tmp_path):
        probe = BatchProbe(str(tmp_path), kv_size=10, batch_size=10)
        result = probe.run(20 * MS)
        assert result.rate("batches_per_second") > 0
        assert result.rate("throughput_mbps") > 0
        assert result.extras["avg_batch_latency_ms"] > 0
        assert not probe.path.exists()

    def test_unwritable_directory_is_an_error_result(self, tmp_path):
        result = SequentialProbe(str(tmp_path / "missing" / "dir")).run(10 * MS)
        assert result.rating == ERROR
        assert result.rate("write_speed_mbps") == 0.0
        assert "cannot open" in result.error


class TestRegistry:
    def test_default_registry_order(self, tmp_path):
        registry = default_registry(BenchConfig(test_dir=str(tmp_path)))
        assert list(registry) == ["cpu", "memory", "disk"]
        assert [p.name for p in registry["cpu"]] == ["keccak", "ecdsa", "bls", "bn256"]
        assert [p.name for p in registry["memory"]] == ["trie", "pool", "state_cache"]
        assert [p.name for p in registry["disk"]] == ["sequential", "random", "batch"]
        assert all(p.test_dir == tmp_path for p in registry["disk"])
        for domain, probes in registry.items():
            assert all(p.domain == domain for p in probes)

    def test_create_probe_aliases(self):
        assert isinstance(create_probe("secp256k1"), ECDSAProbe)
        assert isinstance(create_probe("alt_bn128"), BN256Probe)

    def test_create_probe_unknown(self):
        with pytest.raises(ValueError):
            create_probe("sha3-512")
