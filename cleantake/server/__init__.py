"""HTTP API package: FastAPI app and its request/response models."""
