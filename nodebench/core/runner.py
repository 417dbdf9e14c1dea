from __future__ import annotations
import time
from typing import Dict, List, Mapping, Optional, Sequence

from tqdm.auto import tqdm

from .budget import DOMAIN_WEIGHTS, Ratio, allocate, ns_to_seconds
from .interfaces import BenchmarkCancelled, BenchmarkResults, Probe
from .kernel import CancelToken
from ..config.bench_config import BenchConfig
from ..logs.benchmark_logger import BenchmarkLogger, get_logger


class Runner:
    """Runs every registered probe in order, one domain after another.

    Each domain's budget comes from the config and is split between its
    probes by ``weights``. Probes never run concurrently.
    """

    def __init__(self,
                 config: BenchConfig,
                 registry: Optional[Mapping[str, Sequence[Probe]]] = None,
                 weights: Mapping[str, Mapping[str, Ratio]] = DOMAIN_WEIGHTS,
                 logger: Optional[BenchmarkLogger] = None,
                 cancel: Optional[CancelToken] = None,
                 progress: Optional[bool] = None):
        if registry is None:
            from ..probes import default_registry
            registry = default_registry(config)
        self.config = config
        self.registry = registry
        self.weights = weights
        self.logger = logger or get_logger()
        self.cancel = cancel or CancelToken()
        self.progress = config.progress if progress is None else progress
        self.start_ns: Optional[int] = None
        self.end_ns: Optional[int] = None

    def budget(self, domain: str) -> Dict[str, int]:
        """Per-probe durations (ns) for ``domain``."""
        weights = self.weights[domain]
        missing = [p.name for p in self.registry[domain] if p.name not in weights]
        if missing:
            raise ValueError(f"no time weight for {domain} probe(s): {', '.join(missing)}")
        return allocate(self.config.duration_ns(domain), weights)

    def run_all(self) -> BenchmarkResults:
        """Run every domain; raises BenchmarkCancelled with the partial results on abort."""
        self.start_ns = time.perf_counter_ns()
        results = BenchmarkResults()
        completed: List[str] = []
        self.logger.log_benchmark_start(self.config.profile, self.config.durations_s())

        try:
            for domain, probes in self.registry.items():
                self.logger.info(f"Running {domain} benchmarks...")
                durations = self.budget(domain)
                pbar = tqdm(total=len(probes), desc=domain, unit="probe", disable=not self.progress)
                try:
                    for i, probe in enumerate(probes, start=1):
                        duration_ns = durations[probe.name]
                        self.logger.log_probe_start(domain, i, len(probes), probe.name, duration_ns)
                        result = probe.run(duration_ns, self.cancel)
                        results.add(result)
                        completed.append(f"{domain}.{probe.name}")
                        self.logger.log_probe_result(result)
                        pbar.update(1)
                        if self.cancel.is_cancelled():
                            results.cancelled = True
                            self.logger.warning(f"Benchmark cancelled after {probe.name}")
                            raise BenchmarkCancelled(results, completed)
                finally:
                    pbar.close()
        finally:
            self.end_ns = time.perf_counter_ns()

        return results

    def duration(self) -> float:
        """Seconds since ``run_all`` started (until it finished, once it has)."""
        if self.start_ns is None:
            return 0.0
        end = self.end_ns if self.end_ns is not None else time.perf_counter_ns()
        return ns_to_seconds(end - self.start_ns)
