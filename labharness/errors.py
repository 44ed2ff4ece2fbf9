"""Shared exception types for the labharness CLI."""

from __future__ import annotations


class HarnessError(RuntimeError):
    """Base error for labharness operations."""
