"""Drapicorn Studio API."""
