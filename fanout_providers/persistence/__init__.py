"""Persistence layer: store contracts and the SQLite implementation."""
