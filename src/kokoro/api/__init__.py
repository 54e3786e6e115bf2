"""Kokoro HTTP API."""
