"""Core of the retrieval engine: domain models, ports and services."""
