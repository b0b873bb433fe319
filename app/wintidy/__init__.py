"""wintidy - Baseline-driven bloatware, telemetry, and upgrade maintenance for Windows."""

__version__ = "0.1.0"
