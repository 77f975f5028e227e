"""Pydantic schemas for extraction output and the HTTP API."""
