"""Exceptions raised by the decision store and its backends."""
from __future__ import annotations


class StoreError(Exception):
    """Base class for decision persistence failures."""


class StoreLoadError(StoreError):
    """The persisted decisions could not be read or parsed."""


class StoreSaveError(StoreError):
    """The decisions could not be written to the backing store."""
