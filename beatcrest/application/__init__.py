"""Application layer: DTOs exchanged between repositories and callers."""
