"""Utility helpers for the forum API."""

from src.utils.dates import ensure_utc_aware, utcnow


__all__ = ["ensure_utc_aware", "utcnow"]
