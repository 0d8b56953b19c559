"""Infrastructure adapters for communities feeds."""
