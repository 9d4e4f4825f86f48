"""Pydantic models for stored documents and API payloads."""
