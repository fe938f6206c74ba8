"""Pydantic models for transit data, map state and actions."""
