"""Bundled default baselines (bloatware.json, telemetry.json, upgrade.json)."""
