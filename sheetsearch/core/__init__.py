"""Core pipeline: extraction, inventory store, refresh, reconciliation, search."""
