"""
Memory probes: access patterns of a node's in-memory state.

- trie: Merkle Patricia Trie style inserts, lookups and root re-hashing
- pool: EVM style scratch memory handed out and recycled by an object pool
- state_cache: account/storage cache lookups with a fixed hit/miss mix
"""

from __future__ import annotations
import itertools
import os
from typing import Callable, Dict, Generic, List, Optional, TypeVar

import psutil

from ..core.interfaces import ProbeResult
from ..core.kernel import BYTES_PER_MB, CancelToken, LoopStats, run_timed
from ..core.budget import allocate
from .base import BaseProbe
from .cpu import keccak256

T = TypeVar("T")


class BufferPool(Generic[T]):
    """Free list of reusable scratch objects.

    A pool belongs to one probe invocation and is dropped with it; it is
    never shared across probes or runs.
    """

    def __init__(self, factory: Callable[[], T], accept: Optional[Callable[[T], bool]] = None):
        self._factory = factory
        self._accept = accept
        self._free: List[T] = []

    def get(self) -> T:
        return self._free.pop() if self._free else self._factory()

    def put(self, item: T) -> None:
        if self._accept is None or self._accept(item):
            self._free.append(item)

    def __len__(self) -> int:
        return len(self._free)


class _TrieNode:
    __slots__ = ("hash", "children", "key", "value", "dirty")

    def __init__(self, key: bytes, value: bytes):
        self.key = key
        self.value = value
        self.hash = b""
        self.children = ()
        self.dirty = True


class TrieProbe(BaseProbe):
    name = "trie"
    domain = "memory"
    rate_names = ("inserts_per_second", "lookups_per_second", "hashes_per_second")

    PHASES = {"insert": (2, 5), "lookup": (2, 5), "hash": (1, 5)}
    KEY_SIZE = 20      # account address
    VALUE_SIZE = 100   # typical account RLP

    def setup(self) -> None:
        self._nodes: Dict[bytes, _TrieNode] = {}
        self._keys: List[bytes] = []

    def teardown(self) -> None:
        self._nodes = {}
        self._keys = []

    def _insert(self):
        key = os.urandom(self.KEY_SIZE)
        node = _TrieNode(key, os.urandom(self.VALUE_SIZE))
        node.hash = keccak256(key, node.value)
        self._nodes[key] = node
        self._keys.append(key)

    def _hash_root(self):
        # one pass over every dirty node and its children
        for node in self._nodes.values():
            if node.dirty:
                keccak256(node.hash, *(child.hash for child in node.children))

    def measure(self, duration_ns: int, cancel: Optional[CancelToken]) -> ProbeResult:
        durations = allocate(duration_ns, self.PHASES)
        process = psutil.Process()
        rss_before = process.memory_info().rss

        insert = run_timed(durations["insert"], self._insert, cancel)

        if self._keys:
            counter = itertools.count()
            keys, nodes = self._keys, self._nodes

            def lookup():
                return keys[next(counter) % len(keys)] in nodes

            lookups = run_timed(durations["lookup"], lookup, cancel)
        else:
            lookups = LoopStats()

        hashes = run_timed(durations["hash"], self._hash_root, cancel)

        rss_after = process.memory_info().rss
        return self.result(
            {
                "inserts_per_second": insert.rate(),
                "lookups_per_second": lookups.rate(),
                "hashes_per_second": hashes.rate(),
            },
            [insert, lookups, hashes],
            extras={"peak_memory_mb": max(0, rss_after - rss_before) / BYTES_PER_MB},
        )


class PoolProbe(BaseProbe):
    """Expands and recycles scratch memory the way an EVM frame does."""
    name = "pool"
    domain = "memory"
    rate_names = ("allocations_per_second", "reuses_per_second")

    MIN_SIZE = 1024
    SIZE_SPREAD = 15 * 1024          # target sizes between 1KB and 16KB
    INITIAL_CAPACITY = 4096
    MAX_POOLED = 16 * 1024           # larger buffers are dropped, not pooled
    STACK_DEPTH = 16
    WORD = bytes(32)

    def setup(self) -> None:
        self._memory = BufferPool(lambda: bytearray(self.INITIAL_CAPACITY),
                                  accept=lambda buf: len(buf) <= self.MAX_POOLED)
        self._stacks = BufferPool(list)
        self._zeros = memoryview(bytes(self.MAX_POOLED + self.MIN_SIZE))
        self._allocs = 0
        self._reuses = 0
        self._churn = 0

    def teardown(self) -> None:
        self._memory = self._stacks = None

    def _cycle(self):
        mem = self._memory.get()
        stack = self._stacks.get()

        # deterministic but varied expansion target
        target = self.MIN_SIZE + self._churn % self.SIZE_SPREAD
        if len(mem) < target:
            mem = bytearray(target)
            self._allocs += 1
        else:
            self._reuses += 1
        self._churn += target

        # sparse MSTOREs, one byte per word
        words = len(range(0, target, 32))
        mem[0:target:32] = os.urandom(words)

        stack.clear()
        for _ in range(self.STACK_DEPTH):
            stack.append(self.WORD)

        mem[:target] = self._zeros[:target]
        self._memory.put(mem)
        self._stacks.put(stack)
        return target

    def measure(self, duration_ns: int, cancel: Optional[CancelToken]) -> ProbeResult:
        stats = run_timed(duration_ns, self._cycle, cancel)
        return self.result(
            {
                "allocations_per_second": stats.count_rate(self._allocs),
                "reuses_per_second": stats.count_rate(self._reuses),
            },
            [stats],
            extras={"memory_churn_mb": stats.bytes_processed / BYTES_PER_MB},
        )


class _StateObject:
    __slots__ = ("address", "data", "origin", "dirty", "pending", "keys")

    def __init__(self, address: bytes, data: bytes):
        self.address = address
        self.data = data
        self.origin: Dict[bytes, bytes] = {}
        self.dirty: Dict[bytes, bytes] = {}
        self.pending: Dict[bytes, bytes] = {}
        self.keys: List[bytes] = []


class StateCacheProbe(BaseProbe):
    """Account and storage slot reads; four in five hit the cache."""
    name = "state_cache"
    domain = "memory"
    rate_names = ("cache_hits_per_second", "cache_misses_per_second")

    SLOT_BYTES = 32
    ACCOUNT_BYTES = 100

    def __init__(self, accounts: int = 10_000, slots_per_account: int = 50):
        self.accounts = accounts
        self.slots_per_account = slots_per_account

    def setup(self) -> None:
        self._cache: Dict[bytes, _StateObject] = {}
        self._addresses: List[bytes] = []
        for _ in range(self.accounts):
            address = os.urandom(20)
            obj = _StateObject(address, os.urandom(self.ACCOUNT_BYTES))
            blob = os.urandom(64 * self.slots_per_account)
            for j in range(0, len(blob), 64):
                key, value = blob[j:j + 32], blob[j + 32:j + 64]
                obj.origin[key] = value
                obj.keys.append(key)
            self._cache[address] = obj
            self._addresses.append(address)
        if not self._addresses:
            raise ValueError("state cache needs at least one account")
        self._hits = 0
        self._misses = 0

    def teardown(self) -> None:
        self._cache = {}
        self._addresses = []

    def _access(self):
        op = self._hits + self._misses
        if op % 5 < 4:
            obj = self._cache[self._addresses[op % len(self._addresses)]]
            if not obj.keys:
                self._misses += 1
                return self.SLOT_BYTES
            key = obj.keys[op % len(obj.keys)]
            # dirty, then pending, then origin (caching the read as dirty)
            if key in obj.dirty or key in obj.pending:
                self._hits += 1
            elif key in obj.origin:
                obj.dirty[key] = obj.origin[key]
                self._hits += 1
            else:
                self._misses += 1
            return self.SLOT_BYTES
        if os.urandom(20) in self._cache:
            self._hits += 1
        else:
            self._misses += 1
        return self.ACCOUNT_BYTES

    def measure(self, duration_ns: int, cancel: Optional[CancelToken]) -> ProbeResult:
        stats = run_timed(duration_ns, self._access, cancel)
        total = self._hits + self._misses
        return self.result(
            {
                "cache_hits_per_second": stats.count_rate(self._hits),
                "cache_misses_per_second": stats.count_rate(self._misses),
            },
            [stats],
            extras={
                "hit_ratio": self._hits / total if total else 0.0,
                "throughput_mb_per_sec": stats.mb_per_second(),
            },
        )
