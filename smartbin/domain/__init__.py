"""Domain layer: errors, push signal types and pure services."""
