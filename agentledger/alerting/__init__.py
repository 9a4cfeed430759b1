"""Alert delivery: providers, per-channel cascades, test alerts."""
