"""State/store layer.

This package owns the persisted live/offline mapping that makes
notifications idempotent across restarts.
"""
