"""
Errors raised by the AVL index and the layers built on top of it.

The tree itself reports duplicate/missing keys on insert/delete with the
FAILURE sentinel; these exceptions are used where a sentinel does not fit
(split/join preconditions) and by the storage and HTTP layers.
"""


class AVLIndexError(Exception):
    """Base class for every error raised by avlindex."""


class DuplicateKeyError(AVLIndexError):
    """Insert on a key that is already present."""

    def __init__(self, key):
        super().__init__(f"key {key} already exists")
        self.key = key


class KeyNotFoundError(AVLIndexError, KeyError):
    """Delete, split or lookup on a key that is not present."""

    def __init__(self, key):
        super().__init__(f"key {key} not found")
        self.key = key

    def __str__(self):
        return self.args[0]


class PreconditionViolationError(AVLIndexError, ValueError):
    """Join called with overlapping or improperly ordered key ranges."""
