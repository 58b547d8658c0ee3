"""Pydantic models for persisted boards."""
