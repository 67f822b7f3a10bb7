"""Infrastructure adapters (credential storage)."""
