from __future__ import annotations
import argparse, signal, sys
from typing import List, Optional

from .. import __version__
from ..config.bench_config import ConfigError, BenchConfig, apply_overrides, default_config, load_bench_config
from ..core.interfaces import BenchmarkCancelled
from ..core.kernel import CancelToken
from ..core.runner import Runner
from ..logs.benchmark_logger import setup_logging
from ..report import build_report, format_text, save_json
from ..system.detect import PrerequisiteError, check_prerequisites, detect

EXIT_OK = 0
EXIT_PREREQUISITE = 1
EXIT_USAGE = 2
EXIT_CANCELLED = 130

BANNER = f"""
 _   _           _      ____                  _
| \\ | | ___   __| | ___| __ )  ___ _ __   ___| |__
|  \\| |/ _ \\ / _` |/ _ \\  _ \\ / _ \\ '_ \\ / __| '_ \\
| |\\  | (_) | (_| |  __/ |_) |  __/ | | | (__| | | |
|_| \\_|\\___/ \\__,_|\\___|____/ \\___|_| |_|\\___|_| |_|

Ethereum Node Benchmark Tool v{__version__}
"""


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="nodebench",
        description="Benchmark CPU, memory and disk against Ethereum node requirements",
        epilog=(
            "examples:\n"
            "  nodebench                        run the full benchmark\n"
            "  nodebench --test-dir /mnt/nvme   run disk tests on a specific drive\n"
            "  nodebench --quick                shorter run, about a minute\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    ap.add_argument("--test-dir", default=None, help="Directory for disk I/O tests (default: current directory)")
    ap.add_argument("--output", default=None, help="Directory for the JSON report (default: current directory)")
    ap.add_argument("--quick", action="store_true", help="Quick mode: 20s per domain instead of 60s")
    ap.add_argument("--config", default=None, help="Path to YAML config")
    ap.add_argument("--log-dir", default=None, help="Directory for log files (default: logs)")
    ap.add_argument("--verbose", action="store_true", help="Show debug messages")
    ap.add_argument("--no-progress", action="store_true", help="Disable progress bars")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return ap


def resolve_config(args: argparse.Namespace) -> BenchConfig:
    """Config file (or defaults) with command line flags applied on top."""
    cfg = load_bench_config(args.config) if args.config else default_config()
    return apply_overrides(
        cfg,
        profile="quick" if args.quick else None,
        test_dir=args.test_dir,
        output_dir=args.output,
        log_dir=args.log_dir,
        verbose=True if args.verbose else None,
        progress=False if args.no_progress else None,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        cfg = resolve_config(args)
    except (ConfigError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE

    logger = setup_logging(log_dir=cfg.log_dir, verbose=cfg.verbose)
    print(BANNER)

    logger.info("Detecting system information...")
    system = detect()
    print(f"  System: {system.os} {system.os_version} ({system.architecture})")
    print(f"  CPU: {system.cpu_model} ({system.cpu_cores} cores)")
    print(f"  RAM: {system.ram_total_mb} MB")
    print(f"  Storage: {system.disk_model}")
    print(f"  Serial: {system.serial_number}")
    print()

    logger.info(f"Testing write access to {cfg.test_dir}...")
    try:
        check_prerequisites(cfg.test_dir)
    except PrerequisiteError as e:
        logger.log_error(str(e))
        logger.close()
        return EXIT_PREREQUISITE

    total_s = sum(cfg.durations_s().values())
    logger.info(f"{cfg.profile.capitalize()} mode - benchmark will take approximately {total_s / 60:.0f} minute(s)")

    cancel = CancelToken()
    runner = Runner(cfg, logger=logger, cancel=cancel)

    def on_interrupt(signum, frame):
        logger.warning("Interrupt received, stopping after the current probe")
        cancel.cancel()

    previous = signal.signal(signal.SIGINT, on_interrupt)
    try:
        results = runner.run_all()
    except BenchmarkCancelled as e:
        results = e.results
    finally:
        signal.signal(signal.SIGINT, previous)

    logger.info("Generating report...")
    report = build_report(__version__, system, results, runner.duration(), profile=cfg.profile)
    print(format_text(report))
    logger.log_summary(report.summary, report.verdict)

    try:
        path = save_json(report, cfg.output_dir)
        print(f"JSON report saved to: {path}")
    except OSError as e:
        logger.warning(f"Could not save JSON report: {e}")

    logger.close()
    return EXIT_CANCELLED if results.cancelled else EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
