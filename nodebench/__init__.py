"""Hardware readiness benchmark for Ethereum execution and consensus nodes."""

__version__ = "0.1.0"
