from __future__ import annotations
from typing import Dict, List, Optional

from ..config.bench_config import BenchConfig
from .base import BaseProbe, ProbeSetupError
from .cpu import BLSProbe, BN256Probe, ECDSAProbe, KeccakProbe
from .memory import BufferPool, PoolProbe, StateCacheProbe, TrieProbe
from .disk import BatchProbe, RandomProbe, SequentialProbe

__all__ = [
    "BaseProbe", "ProbeSetupError", "BufferPool",
    "KeccakProbe", "ECDSAProbe", "BLSProbe", "BN256Probe",
    "TrieProbe", "PoolProbe", "StateCacheProbe",
    "SequentialProbe", "RandomProbe", "BatchProbe",
    "create_probe", "default_registry",
]


def create_probe(probe_name: str, *, test_dir: str = ".") -> BaseProbe:
    name = (probe_name or "").lower()
    if name == "keccak":
        return KeccakProbe()
    if name in ("ecdsa", "secp256k1"):
        return ECDSAProbe()
    if name == "bls":
        return BLSProbe()
    if name in ("bn256", "bn254", "alt_bn128"):
        return BN256Probe()
    if name == "trie":
        return TrieProbe()
    if name == "pool":
        return PoolProbe()
    if name == "state_cache":
        return StateCacheProbe()
    if name == "sequential":
        return SequentialProbe(test_dir)
    if name == "random":
        return RandomProbe(test_dir)
    if name == "batch":
        return BatchProbe(test_dir)
    raise ValueError(f"Unknown probe: {probe_name}")


def default_registry(config: Optional[BenchConfig] = None) -> Dict[str, List[BaseProbe]]:
    """Every probe, grouped by domain, in execution order."""
    test_dir = config.test_dir if config is not None else "."
    return {
        "cpu": [create_probe(n) for n in ("keccak", "ecdsa", "bls", "bn256")],
        "memory": [create_probe(n) for n in ("trie", "pool", "state_cache")],
        "disk": [create_probe(n, test_dir=test_dir) for n in ("sequential", "random", "batch")],
    }
