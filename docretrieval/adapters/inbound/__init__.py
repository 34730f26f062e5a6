"""Inbound adapters (driving side)."""
