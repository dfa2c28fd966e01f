"""Shared infrastructure: configuration, logging, storage and pacing."""
