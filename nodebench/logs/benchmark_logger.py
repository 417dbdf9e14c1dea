"""
Centralized logging module for nodebench.

This module provides a unified logging interface that:
- Logs to the console and, optionally, to a timestamped file
- Maintains consistent log formatting
- Gives library modules a single parent logger to propagate into
- Provides helpers for the benchmark lifecycle (probe start/result, summary)
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "nodebench"


class BenchmarkLogger:
    """
    Centralized logger for benchmark runs.

    Features:
    - Console output, compact format
    - Optional file output with timestamped file naming
    - Library modules use ``logging.getLogger(__name__)`` and propagate here
    """

    def __init__(self,
                 name: str = ROOT_LOGGER_NAME,
                 log_dir: Optional[str] = "logs",
                 log_level: int = logging.INFO,
                 console_level: int = logging.INFO,
                 file_level: int = logging.DEBUG):
        """
        Initialize the benchmark logger.

        Args:
            name: Logger name (also used in log file naming)
            log_dir: Directory to store log files; ``None`` disables the file handler
            log_level: Overall logging level
            console_level: Console output level
            file_level: File output level
        """
        self.name = name
        self.log_dir = Path(log_dir) if log_dir else None
        self.log_level = log_level
        self.console_level = console_level
        self.file_level = file_level
        self.log_filepath: Optional[Path] = None

        self.logger = logging.getLogger(name)
        self.logger.setLevel(min(log_level, file_level) if self.log_dir else log_level)

        # Prevent propagation to the root logger to avoid duplicate output
        self.logger.propagate = False

        # Clear any existing handlers
        for handler in list(self.logger.handlers):
            handler.close()
        self.logger.handlers.clear()

        self._setup_formatters()
        self._setup_console_handler()
        if self.log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            self._setup_file_handler()

        self.logger.debug(f"Benchmark logger initialized: {name}")
        self.logger.debug(f"Console level: {logging.getLevelName(console_level)}")

    def _setup_formatters(self):
        """Setup log formatters for different outputs."""
        self.console_formatter = logging.Formatter(
            fmt='%(asctime)s | %(levelname)-8s | %(message)s',
            datefmt='%H:%M:%S'
        )
        self.file_formatter = logging.Formatter(
            fmt='%(asctime)s | %(name)-30s | %(levelname)-8s | %(funcName)-20s:%(lineno)-4d | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    def _setup_console_handler(self):
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(self.console_level)
        console_handler.setFormatter(self.console_formatter)
        self.logger.addHandler(console_handler)

    def _setup_file_handler(self):
        """Setup file handler with timestamped filename."""
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        log_filepath = self.log_dir / f"{self.name}_{timestamp}.log"

        file_handler = logging.FileHandler(log_filepath, encoding='utf-8')
        file_handler.setLevel(self.file_level)
        file_handler.setFormatter(self.file_formatter)
        self.logger.addHandler(file_handler)

        self.log_filepath = log_filepath
        self.logger.debug(f"Log file created: {log_filepath}")

    def get_logger(self) -> logging.Logger:
        """Get the underlying logger instance."""
        return self.logger

    def info(self, message: str):
        self.logger.info(message)

    def debug(self, message: str):
        self.logger.debug(message)

    def warning(self, message: str):
        self.logger.warning(message)

    def error(self, message: str):
        self.logger.error(message)

    def log_benchmark_start(self, profile: str, durations_s: dict):
        """Log benchmark start with the per-domain budget."""
        self.logger.info("=" * 60)
        self.logger.info("STARTING BENCHMARK")
        self.logger.info(f"Profile: {profile}")
        for domain, seconds in durations_s.items():
            self.logger.info(f"  {domain:<8} {seconds:.1f}s")
        self.logger.info("=" * 60)

    def log_probe_start(self, domain: str, index: int, total: int, name: str, duration_ns: int):
        self.logger.info(f"[{domain} {index}/{total}] {name} ({duration_ns / 1e9:.2f}s budget)")

    def log_probe_result(self, result):
        """Log a finished probe: rates, elapsed time and rating."""
        rates = ", ".join(f"{k}={v:.2f}" for k, v in result.rates.items())
        self.logger.info(f"  {result.name}: {rates} [{result.rating}] in {result.elapsed_ns / 1e9:.2f}s")
        if result.error:
            self.logger.warning(f"  {result.name} failed: {result.error}")

    def log_summary(self, summary, verdict):
        self.logger.info("=" * 60)
        self.logger.info("BENCHMARK COMPLETED")
        self.logger.info(
            f"Scores: cpu={summary.cpu_score} memory={summary.memory_score} "
            f"disk={summary.disk_score} total={summary.total_score}"
        )
        self.logger.info(
            f"Verdict: execution={verdict.execution_client} consensus={verdict.consensus_client}"
        )
        self.logger.info("=" * 60)

    def log_error(self, error_msg: str, exception: Optional[Exception] = None):
        """Log error with optional exception details."""
        self.logger.error(f"ERROR: {error_msg}")
        if exception:
            self.logger.exception(f"Exception details: {exception}")

    def close(self):
        """Close the logger and all handlers."""
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)


# Global logger instance
_global_logger: Optional[BenchmarkLogger] = None


def get_logger(name: str = ROOT_LOGGER_NAME, **kwargs) -> BenchmarkLogger:
    """
    Get or create a global logger instance.

    Args:
        name: Logger name
        **kwargs: Additional arguments for BenchmarkLogger

    Returns:
        BenchmarkLogger instance
    """
    global _global_logger

    if _global_logger is None:
        _global_logger = BenchmarkLogger(name=name, **kwargs)

    return _global_logger


def setup_logging(name: str = ROOT_LOGGER_NAME,
                  log_dir: Optional[str] = "logs",
                  verbose: bool = False) -> BenchmarkLogger:
    """
    Setup logging for the application, replacing any previous global logger.

    Args:
        name: Logger name
        log_dir: Directory to store log files (``None`` for console only)
        verbose: Show debug messages on the console

    Returns:
        Configured BenchmarkLogger instance
    """
    global _global_logger

    if _global_logger is not None:
        _global_logger.close()
    _global_logger = BenchmarkLogger(
        name=name,
        log_dir=log_dir,
        log_level=logging.DEBUG if verbose else logging.INFO,
        console_level=logging.DEBUG if verbose else logging.INFO,
    )
    return _global_logger
