"""HTTP surface: FastAPI app, response filter, request service."""
