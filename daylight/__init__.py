"""Daylight journal extraction service."""
