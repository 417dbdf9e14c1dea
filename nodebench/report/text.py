"""
Human-readable report rendering.

Sections are table-driven: each probe lists (label, field, format) rows. A
probe that did not run (cancelled run) is left out of its section.
"""

from __future__ import annotations
from typing import List, Tuple

from .report import Report

WIDE = "=" * 80
NARROW = "-" * 40

# (domain, heading, [(probe, title, [(label, field, template)])])
Row = Tuple[str, str, str]
SECTIONS: Tuple[Tuple[str, str, Tuple[Tuple[str, str, Tuple[Row, ...]], ...]], ...] = (
    ("cpu", "CPU BENCHMARKS (Execution Layer Critical)", (
        ("keccak", "Keccak256 Hashing (state trie, tx hashing)", (
            ("Throughput", "hashes_per_second", "{:.2f} hashes/sec"),
            ("Data Processed", "data_processed_mb", "{:.2f} MB"),
        )),
        ("ecdsa", "ECDSA/secp256k1 (transaction signatures)", (
            ("Sign", "signatures_per_second", "{:.2f} sig/sec"),
            ("Verify", "verifications_per_second", "{:.2f} verify/sec"),
            ("ECRECOVER", "recoveries_per_second", "{:.2f} recover/sec"),
        )),
        ("bls", "BLS12-381 (consensus layer signatures)", (
            ("Sign", "signatures_per_second", "{:.2f} sig/sec"),
            ("Verify", "verifications_per_second", "{:.2f} verify/sec"),
            ("Aggregate", "aggregations_per_second", "{:.2f} agg/sec"),
            ("Batch Verify", "batch_verifications_per_second", "{:.2f} batch/sec"),
        )),
        ("bn256", "BN256 Pairing (zkSNARK precompiles)", (
            ("G1 Add", "g1_adds_per_second", "{:.2f} ops/sec"),
            ("G1 ScalarMul", "g1_scalar_muls_per_second", "{:.2f} ops/sec"),
            ("Pairing", "pairings_per_second", "{:.2f} ops/sec"),
        )),
    )),
    ("memory", "MEMORY BENCHMARKS", (
        ("trie", "Merkle Patricia Trie (state storage)", (
            ("Insert", "inserts_per_second", "{:.2f} ops/sec"),
            ("Lookup", "lookups_per_second", "{:.2f} ops/sec"),
            ("Hash", "hashes_per_second", "{:.2f} ops/sec"),
            ("Peak Memory", "peak_memory_mb", "{:.2f} MB"),
        )),
        ("pool", "Object Pool Allocation (EVM memory)", (
            ("Allocations", "allocations_per_second", "{:.2f} alloc/sec"),
            ("Reuses", "reuses_per_second", "{:.2f} reuse/sec"),
            ("Memory Churn", "memory_churn_mb", "{:.2f} MB"),
        )),
        ("state_cache", "State Cache (account/storage)", (
            ("Cache Hits", "cache_hits_per_second", "{:.2f} ops/sec"),
            ("Cache Misses", "cache_misses_per_second", "{:.2f} ops/sec"),
            ("Hit Ratio", "hit_ratio", "{:.2%}"),
        )),
    )),
    ("disk", "DISK I/O BENCHMARKS", (
        ("sequential", "Sequential I/O (state sync, snapshots)", (
            ("Write Speed", "write_speed_mbps", "{:.2f} MB/s"),
            ("Read Speed", "read_speed_mbps", "{:.2f} MB/s"),
        )),
        ("random", "Random 4K I/O (trie node access)", (
            ("Read IOPS", "read_iops", "{:.0f}"),
            ("Write IOPS", "write_iops", "{:.0f}"),
            ("Avg Latency", "avg_latency_us", "{:.2f} us"),
        )),
        ("batch", "Batch Write (block commitment)", (
            ("Batch Rate", "batches_per_second", "{:.2f} batch/sec"),
            ("Throughput", "throughput_mbps", "{:.2f} MB/s"),
            ("Avg Latency", "avg_batch_latency_ms", "{:.2f} ms"),
        )),
    )),
)


def _line(label: str, value: str, width: int = 16) -> str:
    return f"  {label + ':':<{width}}{value}"


def _heading(title: str) -> List[str]:
    return ["", WIDE, title, WIDE]


def format_text(report: Report) -> str:
    """Render the full report as plain text."""
    meta, system = report.metadata, report.system
    lines: List[str] = [
        "",
        WIDE,
        "                    Ethereum Node Benchmark Report",
        f"                    Generated: {meta.timestamp.strftime('%Y-%m-%d %H:%M:%S')}",
        WIDE,
        "",
        "SYSTEM INFORMATION",
        NARROW,
        _line("Hostname", system.hostname, 15),
        _line("Serial", system.serial_number, 15),
        _line("OS", f"{system.os} {system.os_version}".rstrip(), 15),
        _line("Architecture", system.architecture, 15),
        _line("CPU", f"{system.cpu_model} ({system.cpu_cores} cores)", 15),
        _line("RAM", f"{system.ram_total_mb} MB", 15),
        _line("Storage", system.disk_model, 15),
    ]
    if system.board_model:
        lines.append(_line("Board", system.board_model, 15))

    for domain, heading, probes in SECTIONS:
        lines += _heading(heading)
        for probe, title, rows in probes:
            result = report.results.get(domain, probe)
            if result is None:
                continue
            values = result.to_dict()
            lines += ["", title]
            for label, key, template in rows:
                lines.append(_line(label, template.format(float(values.get(key, 0.0)))))
            lines.append(_line("Rating", values["rating"]))

    summary, verdict = report.summary, report.verdict
    lines += _heading("SUMMARY")
    lines += [
        "",
        _line("CPU Score", f"{summary.cpu_score}/100"),
        _line("Memory Score", f"{summary.memory_score}/100"),
        _line("Disk Score", f"{summary.disk_score}/100"),
        "  " + "-" * 21,
        _line("Overall Score", f"{summary.total_score}/100"),
    ]

    lines += _heading("VERDICT")
    lines += [
        "",
        _line("Overall Score", f"{verdict.overall_score}/100", 22),
        "",
        _line("Execution Client", verdict.execution_client, 22),
        _line("Consensus Client", verdict.consensus_client, 22),
        "",
        "Recommendations:",
    ]
    lines += [f"  - {rec}" for rec in verdict.recommendations]

    lines += ["", WIDE]
    if meta.cancelled:
        lines.append("Benchmark cancelled; scores cover the probes that completed")
    lines.append(f"Benchmark completed in {meta.duration_seconds:.1f} seconds")
    lines.append(WIDE)
    return "\n".join(lines) + "\n"
