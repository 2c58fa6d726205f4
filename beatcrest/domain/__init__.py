"""Domain layer: enums and exceptions. No infrastructure imports."""
