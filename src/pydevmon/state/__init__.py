"""State/store layer.

This package is the single source of truth for how values from one-shot
fetches and push subscriptions are merged into the live telemetry snapshot.
"""
