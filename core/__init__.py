"""Shared plumbing: working directory, settings, logging and SQLite helpers."""
