from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional

from ..core.budget import DOMAINS
from ..core.interfaces import BenchmarkResults, Summary, Verdict
from ..metrics.scoring import calculate_summary
from ..metrics.verdict import determine_verdict
from ..system.detect import SystemInfo


@dataclass
class Metadata:
    version: str
    timestamp: datetime
    duration_seconds: float
    profile: str = "default"
    cancelled: bool = False

    def to_dict(self) -> Dict:
        return {
            "version": self.version,
            "timestamp": self.timestamp.isoformat(timespec="seconds"),
            "duration_seconds": self.duration_seconds,
            "profile": self.profile,
            "cancelled": self.cancelled,
        }


@dataclass
class Report:
    """Everything one run produced, ready for the text and JSON renderers."""
    metadata: Metadata
    system: SystemInfo
    results: BenchmarkResults
    summary: Summary
    verdict: Verdict

    def to_dict(self) -> Dict:
        per_domain = self.results.to_dict()
        out: Dict = {
            "metadata": self.metadata.to_dict(),
            "system": self.system.to_dict(),
        }
        for domain in DOMAINS:
            out[domain] = per_domain.get(domain, {})
        out["summary"] = self.summary.to_dict()
        out["verdict"] = self.verdict.to_dict()
        return out


def build_report(version: str,
                 system: SystemInfo,
                 results: BenchmarkResults,
                 duration_seconds: float,
                 profile: str = "default",
                 timestamp: Optional[datetime] = None) -> Report:
    """Score ``results`` and wrap them, with host and run details, in a Report."""
    summary = calculate_summary(results)
    return Report(
        metadata=Metadata(
            version=version,
            timestamp=timestamp or datetime.now(),
            duration_seconds=duration_seconds,
            profile=profile,
            cancelled=results.cancelled,
        ),
        system=system,
        results=results,
        summary=summary,
        verdict=determine_verdict(summary, results),
    )
