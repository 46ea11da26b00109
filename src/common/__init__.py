"""Helpers shared across the registry client and the CLI."""
