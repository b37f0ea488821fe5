"""Ingestion layer.

Helpers that turn adapter results into normalized store updates.
"""

__all__: list[str] = []
