"""Domain layer: enums and value objects shared across services."""
