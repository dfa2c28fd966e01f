"""Pydantic schemas for API payloads and provider responses."""
