"""Application layer: use cases built on the domain models and engine."""
