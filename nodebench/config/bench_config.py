from __future__ import annotations
from dataclasses import dataclass, fields, replace
from typing import Dict, Optional
import pathlib, yaml

from ..core.budget import DOMAINS, PROFILE_SECONDS, seconds_to_ns


class ConfigError(ValueError):
    """Raised for a malformed or inconsistent configuration file."""


@dataclass
class BenchConfig:
    profile: str = "default"
    # Per-domain budgets in seconds; None means "take it from the profile"
    cpu_duration_s: Optional[float] = None
    memory_duration_s: Optional[float] = None
    disk_duration_s: Optional[float] = None
    test_dir: str = "."          # where disk probes create their scratch files
    output_dir: str = "."        # where the JSON report is saved
    log_dir: Optional[str] = "logs"
    verbose: bool = False
    progress: bool = True

    def __post_init__(self):
        if self.profile not in PROFILE_SECONDS:
            raise ConfigError(f"Unknown profile {self.profile!r}; expected one of {sorted(PROFILE_SECONDS)}")
        for domain in DOMAINS:
            value = getattr(self, f"{domain}_duration_s")
            if value is not None and value < 0:
                raise ConfigError(f"{domain}_duration_s must be non-negative, got {value}")

    def duration_s(self, domain: str) -> float:
        value = getattr(self, f"{domain}_duration_s")
        return float(value) if value is not None else PROFILE_SECONDS[self.profile]

    def duration_ns(self, domain: str) -> int:
        return seconds_to_ns(self.duration_s(domain))

    def durations_s(self) -> Dict[str, float]:
        return {d: self.duration_s(d) for d in DOMAINS}


def default_config() -> BenchConfig:
    """Full run: about one minute per domain."""
    return BenchConfig(profile="default")


def quick_config() -> BenchConfig:
    """Quick run: about twenty seconds per domain."""
    return BenchConfig(profile="quick")


def _dict_to_dataclass(cls, d):
    # simple helper for flat dataclasses; unknown keys are ignored
    names = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in d.items() if k in names})


def load_bench_config(path: str | pathlib.Path) -> BenchConfig:
    """Load a YAML configuration file.

    Example::

        profile: quick
        disk_duration_s: 30
        test_dir: /mnt/nvme
    """
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at top level, got {type(data).__name__}")
    try:
        return _dict_to_dataclass(BenchConfig, data)
    except TypeError as e:
        raise ConfigError(f"{path}: {e}") from e


def apply_overrides(cfg: BenchConfig, **overrides) -> BenchConfig:
    """Return a copy of ``cfg`` with every non-None override applied."""
    return replace(cfg, **{k: v for k, v in overrides.items() if v is not None})
