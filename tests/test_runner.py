import logging
import os
from unittest.mock import patch

import pytest

from nodebench.config.bench_config import BenchConfig
from nodebench.core.interfaces import BenchmarkCancelled, ERROR, GOOD, ProbeResult
from nodebench.core.runner import Runner
from nodebench.logs.benchmark_logger import ROOT_LOGGER_NAME, BenchmarkLogger
from nodebench.probes.base import BaseProbe
from nodebench.probes.disk import BatchProbe, SequentialProbe

S = 1_000_000_000


class RecordingProbe:
    def __init__(self, name, domain, log, on_run=None):
        self.name = name
        self.domain = domain
        self.log = log
        self.on_run = on_run

    def run(self, duration_ns, cancel=None):
        self.log.append((self.domain, self.name, duration_ns))
        if self.on_run:
            self.on_run()
        return ProbeResult(self.name, self.domain, {"ops_per_second": 1.0}, duration_ns, GOOD)


class BrokenSetupProbe(BaseProbe):
    name = "keccak"
    domain = "cpu"
    rate_names = ("hashes_per_second",)

    def setup(self):
        raise OSError("no entropy")


@pytest.fixture
def logger():
    lg = BenchmarkLogger(name="nodebench_test_runner", log_dir=None, console_level=logging.WARNING)
    yield lg
    lg.close()


WEIGHTS = {
    "cpu": {"a": (1, 2), "b": (1, 2)},
    "memory": {"c": (1, 1)},
}


def make_runner(registry, logger, **cfg):
    config = BenchConfig(cpu_duration_s=2.0, memory_duration_s=0.5, **cfg)
    return Runner(config, registry=registry, weights=WEIGHTS, logger=logger, progress=False)


def test_runs_in_declared_order_with_allocated_durations(logger):
    log = []
    registry = {
        "cpu": [RecordingProbe("a", "cpu", log), RecordingProbe("b", "cpu", log)],
        "memory": [RecordingProbe("c", "memory", log)],
    }
    runner = make_runner(registry, logger)
    results = runner.run_all()

    assert log == [("cpu", "a", S), ("cpu", "b", S), ("memory", "c", S // 2)]
    assert [r.name for r in results] == ["a", "b", "c"]
    assert not results.cancelled
    assert runner.duration() > 0


def test_budget_uses_profile_when_not_overridden(logger):
    registry = {"cpu": [RecordingProbe("a", "cpu", []), RecordingProbe("b", "cpu", [])]}
    runner = Runner(BenchConfig(profile="quick"), registry=registry, weights=WEIGHTS, logger=logger, progress=False)
    assert runner.budget("cpu") == {"a": 10 * S, "b": 10 * S}


def test_setup_failure_becomes_error_result(logger):
    log = []
    registry = {
        "cpu": [BrokenSetupProbe(), RecordingProbe("b", "cpu", log)],
    }
    weights = {"cpu": {"keccak": (1, 2), "b": (1, 2)}}
    runner = Runner(BenchConfig(cpu_duration_s=0.01), registry=registry, weights=weights, logger=logger, progress=False)
    results = runner.run_all()

    broken = results.get("cpu", "keccak")
    assert broken.rating == ERROR
    assert broken.rates == {"hashes_per_second": 0.0}
    assert broken.to_dict()["rating"] == "Error: no entropy"
    # the run continued
    assert [entry[1] for entry in log] == ["b"]


def test_cancel_stops_scheduling_and_carries_partial_results(logger):
    log = []
    runner = None

    def cancel():
        runner.cancel.cancel()

    registry = {
        "cpu": [RecordingProbe("a", "cpu", log, on_run=cancel), RecordingProbe("b", "cpu", log)],
        "memory": [RecordingProbe("c", "memory", log)],
    }
    runner = make_runner(registry, logger)
    with pytest.raises(BenchmarkCancelled) as info:
        runner.run_all()

    assert [entry[1] for entry in log] == ["a"]
    assert info.value.completed == ["cpu.a"]
    assert info.value.results.cancelled
    assert info.value.results.get("cpu", "a") is not None
    assert runner.duration() >= 0


def test_missing_weight_is_rejected(logger):
    registry = {"cpu": [RecordingProbe("zzz", "cpu", [])]}
    runner = make_runner(registry, logger)
    with pytest.raises(ValueError, match="zzz"):
        runner.run_all()


def test_library_logs_propagate_to_file(tmp_path):
    lg = BenchmarkLogger(name=ROOT_LOGGER_NAME, log_dir=str(tmp_path), console_level=logging.CRITICAL)
    logging.getLogger("nodebench.probes.base").warning("probe said hello")
    lg.close()
    assert lg.log_filepath is not None
    assert "probe said hello" in lg.log_filepath.read_text(encoding="utf-8")


def test_measurement_failure_becomes_error_result(logger, tmp_path):
    real_fsync = os.fsync
    calls = []

    def fsync(fd):
        calls.append(fd)
        if len(calls) == 1:
            raise OSError(28, "No space left on device")
        return real_fsync(fd)

    registry = {"disk": [SequentialProbe(str(tmp_path)), BatchProbe(str(tmp_path), batch_size=10)]}
    weights = {"disk": {"sequential": (1, 2), "batch": (1, 2)}}
    runner = Runner(BenchConfig(disk_duration_s=0.02), registry=registry, weights=weights,
                    logger=logger, progress=False)
    with patch("nodebench.probes.disk.os.fsync", side_effect=fsync):
        results = runner.run_all()

    sequential = results.get("disk", "sequential")
    assert sequential.rating == ERROR
    assert sequential.rates == {"write_speed_mbps": 0.0, "read_speed_mbps": 0.0}
    assert "No space left on device" in sequential.error
    # the run continued with the next probe
    batch = results.get("disk", "batch")
    assert batch is not None and batch.rating != ERROR
    assert list(tmp_path.glob("nodebench_*_test.dat")) == []
