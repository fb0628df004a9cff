"""Infrastructure layer: stores and backend adapters."""
