"""API schemas (request/response models)."""
