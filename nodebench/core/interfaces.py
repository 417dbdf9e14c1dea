from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Protocol, Tuple

from .kernel import CancelToken

__all__ = [
    "RATINGS", "ProbeResult", "Probe", "CategoryResult", "BenchmarkResults",
    "Summary", "Verdict", "BenchmarkCancelled",
]

EXCELLENT = "Excellent"
GOOD = "Good"
ADEQUATE = "Adequate"
MARGINAL = "Marginal"
POOR = "Poor"
ERROR = "Error"

RATINGS: Tuple[str, ...] = (EXCELLENT, GOOD, ADEQUATE, MARGINAL, POOR, ERROR)


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of one probe.

    Args:
        name: Probe name (e.g. "keccak").
        domain: "cpu" | "memory" | "disk".
        rates: Named throughputs (per second).
        elapsed_ns: Actual wall time consumed by all phases.
        rating: One of RATINGS.
        extras: Non-rate figures (latency, data processed, hit ratio, ...).
        error: Setup or measurement failure message, if any.
    """
    name: str
    domain: str
    rates: Dict[str, float]
    elapsed_ns: int
    rating: str
    extras: Dict[str, float] = field(default_factory=dict)
    error: Optional[str] = None

    @classmethod
    def failed(cls, name: str, domain: str, message: str, rate_names: Tuple[str, ...] = ()) -> "ProbeResult":
        """Zero-rate result for a probe that could not be set up or measured."""
        return cls(
            name=name,
            domain=domain,
            rates={r: 0.0 for r in rate_names},
            elapsed_ns=0,
            rating=ERROR,
            error=message,
        )

    def rate(self, key: str) -> float:
        return float(self.rates.get(key, 0.0))

    def to_dict(self) -> Dict:
        return {
            **self.rates,
            **self.extras,
            "duration_ns": self.elapsed_ns,
            "rating": self.rating if self.error is None else f"{ERROR}: {self.error}",
        }


class Probe(Protocol):
    """Minimal protocol for probes: run for a given duration, return rates."""
    name: str
    domain: str

    def run(self, duration_ns: int, cancel: Optional[CancelToken] = None) -> ProbeResult: ...


@dataclass(frozen=True)
class CategoryResult:
    domain: str
    probes: Dict[str, ProbeResult]
    score: int


@dataclass
class BenchmarkResults:
    """Probe results grouped by domain, in execution order."""
    domains: Dict[str, Dict[str, ProbeResult]] = field(default_factory=dict)
    cancelled: bool = False

    def add(self, result: ProbeResult) -> None:
        self.domains.setdefault(result.domain, {})[result.name] = result

    def get(self, domain: str, name: str) -> Optional[ProbeResult]:
        return self.domains.get(domain, {}).get(name)

    def rate(self, domain: str, name: str, key: str) -> float:
        """Raw rate lookup; a missing probe or rate reads as 0."""
        result = self.get(domain, name)
        return result.rate(key) if result is not None else 0.0

    def __iter__(self) -> Iterator[ProbeResult]:
        for probes in self.domains.values():
            yield from probes.values()

    def to_dict(self) -> Dict[str, Dict[str, Dict]]:
        return {
            domain: {name: r.to_dict() for name, r in probes.items()}
            for domain, probes in self.domains.items()
        }


@dataclass(frozen=True)
class Summary:
    cpu_score: int
    memory_score: int
    disk_score: int
    total_score: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "cpu_score": self.cpu_score,
            "memory_score": self.memory_score,
            "disk_score": self.disk_score,
            "total_score": self.total_score,
        }


@dataclass(frozen=True)
class Verdict:
    """Readiness labels for both node roles plus ordered advisories."""
    overall_score: int
    execution_client: str
    consensus_client: str
    recommendations: Tuple[str, ...]

    def to_dict(self) -> Dict:
        return {
            "overall_score": self.overall_score,
            "execution_client": self.execution_client,
            "consensus_client": self.consensus_client,
            "recommendations": list(self.recommendations),
        }


class BenchmarkCancelled(Exception):
    """Raised by the runner after an operator abort; carries partial results."""

    def __init__(self, results: BenchmarkResults, completed: List[str]):
        super().__init__(f"benchmark cancelled after {len(completed)} probe(s)")
        self.results = results
        self.completed = completed
