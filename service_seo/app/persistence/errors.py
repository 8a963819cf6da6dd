"""
Store-specific errors.

These never reach a transport: the controller classifies them into the
domain vocabulary in ``shared.errors``.
"""


class StoreError(Exception):
    """Base class for store failures."""


class RecordNotFoundError(StoreError):
    """No record with the requested identity."""


class DuplicateRecordError(StoreError):
    """A record with the same identity already exists."""
