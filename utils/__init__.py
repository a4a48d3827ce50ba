"""Shared utilities: logging setup and environment-driven settings."""
