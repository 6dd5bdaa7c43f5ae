"""Strategy model providers."""
