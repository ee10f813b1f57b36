"""HTTP lint service."""
