"""Shared utilities: configuration, errors, logging and console access."""
