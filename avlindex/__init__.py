from avlindex.errors import (
    AVLIndexError,
    DuplicateKeyError,
    KeyNotFoundError,
    PreconditionViolationError,
)
from avlindex.indexing import FAILURE, KEY_MAX, KEY_MIN, AVLNode, AVLTree
from avlindex.storage import IndexStore

__all__ = [
    "AVLIndexError",
    "DuplicateKeyError",
    "KeyNotFoundError",
    "PreconditionViolationError",
    "FAILURE",
    "KEY_MAX",
    "KEY_MIN",
    "AVLNode",
    "AVLTree",
    "IndexStore",
]
