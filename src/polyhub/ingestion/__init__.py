"""Upstream ingestion: Gamma API client, normalization, errors."""
