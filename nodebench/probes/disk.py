"""
Disk probes: the I/O patterns of a node's database.

- sequential: snapshot/sync style streaming writes and cold reads
- random: 4 KiB trie node reads and dirty node flushes
- batch: durable key-value batch commits
"""

from __future__ import annotations
import os
import time
from pathlib import Path
from typing import Optional

import numpy as np

from ..core.budget import allocate
from ..core.interfaces import ProbeResult
from ..core.kernel import CancelToken, run_timed
from .base import BaseProbe, ProbeSetupError

FILE_PREFIX = "nodebench"


def _drop_cache(fd: int) -> None:
    """Ask the kernel to evict the file from the page cache, where supported."""
    if hasattr(os, "posix_fadvise"):
        os.posix_fadvise(fd, 0, 0, os.POSIX_FADV_DONTNEED)


class _FileProbe(BaseProbe):
    """Disk probe that owns one scratch file under ``test_dir``."""

    def __init__(self, test_dir: str = "."):
        self.test_dir = Path(test_dir)
        self.path = self.test_dir / f"{FILE_PREFIX}_{self.name}_test.dat"
        self._fd: Optional[int] = None

    def _open(self, flags: int) -> int:
        try:
            self._fd = os.open(self.path, flags, 0o644)
        except OSError as e:
            raise ProbeSetupError(f"cannot open {self.path}: {e.strerror or e}") from e
        return self._fd

    def _close(self) -> None:
        if self._fd is not None:
            os.close(self._fd)
            self._fd = None

    def teardown(self) -> None:
        self._close()
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, test_dir={str(self.test_dir)!r})"


class SequentialProbe(_FileProbe):
    """Streams 128 KiB and 1 MiB blocks to a file, then reads it back cold.

    The closing fsync of the write phase counts towards the write time.
    """
    name = "sequential"
    domain = "disk"
    rate_names = ("write_speed_mbps", "read_speed_mbps")

    PHASES = {"write": (1, 2), "read": (1, 2)}
    BLOCK_SIZES = (128 * 1024, 1024 * 1024)  # SST file writes, snapshot chunks
    READ_SIZE = 1024 * 1024

    def setup(self) -> None:
        self._open(os.O_CREAT | os.O_WRONLY | os.O_TRUNC)
        self._buffer = memoryview(os.urandom(max(self.BLOCK_SIZES)))

    def _write(self):
        written = 0
        for size in self.BLOCK_SIZES:
            written += os.write(self._fd, self._buffer[:size])
        return written

    def _read(self):
        data = os.read(self._fd, self.READ_SIZE)
        if not data:
            # wrap around and drop the cache again
            os.lseek(self._fd, 0, os.SEEK_SET)
            _drop_cache(self._fd)
        return len(data)

    def measure(self, duration_ns: int, cancel: Optional[CancelToken]) -> ProbeResult:
        durations = allocate(duration_ns, self.PHASES)

        write = run_timed(durations["write"], self._write, cancel)
        t0 = time.perf_counter_ns()
        os.fsync(self._fd)
        write.elapsed_ns += time.perf_counter_ns() - t0
        self._close()

        self._open(os.O_RDONLY)
        _drop_cache(self._fd)
        read = run_timed(durations["read"], self._read, cancel)

        return self.result(
            {
                "write_speed_mbps": write.mb_per_second(),
                "read_speed_mbps": read.mb_per_second(),
            },
            [write, read],
        )


class RandomProbe(_FileProbe):
    """4 KiB reads and writes at random block offsets of a preallocated file."""
    name = "random"
    domain = "disk"
    rate_names = ("read_iops", "write_iops")

    PHASES = {"read": (3, 5), "write": (2, 5)}
    FILL_STRIDE = 1024 * 1024

    def __init__(self, test_dir: str = ".", file_size: int = 256 * 1024 * 1024, block_size: int = 4096):
        super().__init__(test_dir)
        if file_size < block_size or block_size <= 0:
            raise ValueError(f"file_size ({file_size}) must hold at least one block of {block_size} bytes")
        self.file_size = file_size
        self.block_size = block_size

    def setup(self) -> None:
        fd = self._open(os.O_CREAT | os.O_RDWR)
        os.ftruncate(fd, self.file_size)
        # touch one block per MiB so the file is not entirely sparse
        for offset in range(0, self.file_size - self.block_size + 1, self.FILL_STRIDE):
            os.pwrite(fd, os.urandom(self.block_size), offset)
        os.fsync(fd)
        self._rng = np.random.default_rng()
        self._blocks = self.file_size // self.block_size
        self._data = os.urandom(self.block_size)

    def _offset(self) -> int:
        return int(self._rng.integers(self._blocks)) * self.block_size

    def _read(self):
        return len(os.pread(self._fd, self.block_size, self._offset()))

    def _write(self):
        return os.pwrite(self._fd, self._data, self._offset())

    def measure(self, duration_ns: int, cancel: Optional[CancelToken]) -> ProbeResult:
        durations = allocate(duration_ns, self.PHASES)
        read = run_timed(durations["read"], self._read, cancel)
        write = run_timed(durations["write"], self._write, cancel)
        os.fsync(self._fd)

        ops = read.iterations + write.iterations
        latency_us = (read.busy_ns + write.busy_ns) / ops / 1e3 if ops else 0.0
        return self.result(
            {"read_iops": read.rate(), "write_iops": write.rate()},
            [read, write],
            extras={"avg_latency_us": latency_us},
        )


class BatchProbe(_FileProbe):
    """Durable batch commits: each batch is one synchronous write plus fsync."""
    name = "batch"
    domain = "disk"
    rate_names = ("batches_per_second", "throughput_mbps")

    BUFFERS = 4

    def __init__(self, test_dir: str = ".", kv_size: int = 100, batch_size: int = 2000):
        super().__init__(test_dir)
        self.kv_size = kv_size          # 32 byte key + 68 byte value
        self.batch_size = batch_size

    def setup(self) -> None:
        self._open(os.O_CREAT | os.O_WRONLY | os.O_TRUNC | getattr(os, "O_SYNC", 0))
        self._batches = [os.urandom(self.kv_size * self.batch_size) for _ in range(self.BUFFERS)]
        self._next = 0

    def _commit(self):
        batch = self._batches[self._next % self.BUFFERS]
        self._next += 1
        written = os.write(self._fd, batch)
        os.fsync(self._fd)
        return written

    def measure(self, duration_ns: int, cancel: Optional[CancelToken]) -> ProbeResult:
        stats = run_timed(duration_ns, self._commit, cancel)
        return self.result(
            {
                "batches_per_second": stats.rate(),
                "throughput_mbps": stats.mb_per_second(),
            },
            [stats],
            extras={"avg_batch_latency_ms": stats.avg_latency_ns() / 1e6},
        )
