"""Cancellation building blocks; import from ``base.cancellation``."""
