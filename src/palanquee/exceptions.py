"""Custom exception hierarchy for the palanquee package."""

from __future__ import annotations


class PalanqueeError(Exception):
    """Base error for all dive planning exceptions."""


class ValidationError(PalanqueeError):
    """Raised when input data cannot be validated."""
