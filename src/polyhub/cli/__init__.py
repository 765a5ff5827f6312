"""Typer CLI (`polyhub`)."""
