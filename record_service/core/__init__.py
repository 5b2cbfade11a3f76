"""Infrastructure helpers shared across layers."""
