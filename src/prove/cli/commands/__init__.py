"""Top-level Prove commands (no domain prefix)."""
