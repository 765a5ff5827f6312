"""Polymarket Gamma API client and record normalization."""
