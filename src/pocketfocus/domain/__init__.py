"""Domain layer: repository contracts and errors."""
