import csv
import os
from typing import Any, Dict, Iterable, List, Optional, Tuple

from avlindex.errors import DuplicateKeyError, KeyNotFoundError
from avlindex.indexing import FAILURE, AVLNode, AVLTree


class IndexStore:
    # ------------------ Initialization ------------------

    def __init__(self):
        """Initializes the store with an empty AVL key index."""
        self.key_index: AVLTree = AVLTree()
        self.rebalance_steps: int = 0

    # ------------------ Accessors ------------------
    def __len__(self) -> int:
        """Return the total number of records in the store."""
        return len(self.key_index)

    def stats(self) -> Dict[str, Any]:
        root = self.key_index.get_root()
        return {
            "size": len(self.key_index),
            "height": root.get_height() if root is not None else -1,
            "min_key": self.key_index.min_key(),
            "max_key": self.key_index.max_key(),
            "rebalance_steps": self.rebalance_steps,
        }

    # ------------------ Core mutations ------------------
    def insert_record(self, key: int, value: str) -> int:
        """Insert a single record. Returns the rebalance step count."""
        steps = self.key_index.insert(key, value)
        if steps == FAILURE:
            raise DuplicateKeyError(key)
        self.rebalance_steps += steps
        return steps

    def delete_record(self, key: int) -> int:
        """Delete the record stored under key. Returns the rebalance step count."""
        steps = self.key_index.delete(key)
        if steps == FAILURE:
            raise KeyNotFoundError(key)
        self.rebalance_steps += steps
        return steps

    def partition(self, key: int) -> Dict[str, Any]:
        """
        Split the index around key, report both halves, then join them back.

        The record under key is carried by a fresh pivot node, so the index
        ends up holding exactly the records it held before.
        """
        value = self.key_index.search(key)
        if value is None:
            raise KeyNotFoundError(key)

        left, right = self.key_index.split(key)
        result = {
            "pivot": key,
            "left_keys": left.keys_to_array(),
            "right_keys": right.keys_to_array(),
        }
        result["join_cost"] = left.join(AVLNode(key, value), right)
        self.key_index = left
        return result

    # ------------------ Data ingestion ------------------
    def _parse_key(self, raw_key: Any) -> int:
        """Convert a key value (int or numeric string) to an int."""
        if raw_key is None:
            raise ValueError("Missing key")
        if isinstance(raw_key, int):
            return raw_key
        raw_str = str(raw_key).strip()
        try:
            return int(raw_str)
        except ValueError:
            as_float = float(raw_str)
        if not as_float.is_integer():
            raise ValueError(f"key {raw_str!r} is not integral")
        return int(as_float)

    def ingest_data(self, file_path: str, key_column: str = 'key',
                    value_column: str = 'value') -> int:
        """
        Reads records from a CSV file and inserts them into the AVL index.
        Rows with a bad key or a key that is already present are skipped.
        Returns the number of records ingested.
        """
        if not os.path.exists(file_path):
            raise FileNotFoundError(f"CSV not found: {file_path}")

        print(f"[ingest] Ingesting data from: {file_path}")
        total_records = 0
        skipped = 0

        with open(file_path, mode='r', newline='', encoding='utf-8') as csvfile:
            reader = csv.DictReader(csvfile)

            fieldnames = reader.fieldnames or []
            if key_column not in fieldnames:
                print(f"[ingest] Warning: key column '{key_column}' not found; available columns: {fieldnames}")

            for row in reader:
                try:
                    key = self._parse_key(row.get(key_column))
                    value = row.get(value_column) or ""
                    self.insert_record(key, value)
                except (ValueError, OverflowError, DuplicateKeyError):
                    skipped += 1
                    continue

                total_records += 1
                if total_records % 100000 == 0:
                    print(f"[ingest] Progress: {total_records:,} records ingested...")

        print(f"[ingest] Total records ingested: {total_records:,} (skipped {skipped:,})")
        print(f"[ingest] AVL index size: {len(self.key_index)}")
        return total_records

    # ------------------ Core queries ------------------
    def get_record(self, key: int) -> Optional[str]:
        """Retrieves a single record by searching the AVL index."""
        return self.key_index.search(key)

    def range_query(self, start: int, end: int) -> Iterable[Tuple[int, str]]:
        """Yields (key, value) for keys k such that start <= k < end."""
        yield from self.key_index.sub_map(start, end)

    def rank(self, key: int) -> int:
        return self.key_index.rank(key)

    def select(self, index: int) -> Tuple[int, str]:
        return self.key_index.select(index)

    def keys(self, limit: Optional[int] = None) -> List[int]:
        keys: List[int] = []
        for key in self.key_index:
            if limit is not None and len(keys) >= limit:
                break
            keys.append(key)
        return keys
