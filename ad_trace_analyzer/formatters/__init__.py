"""Formatting utilities for output."""

from .display import abbreviate_url, format_seconds, format_time, format_unitless

__all__ = ["format_time", "format_seconds", "format_unitless", "abbreviate_url"]
