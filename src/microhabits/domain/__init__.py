"""Domain-layer contracts."""
