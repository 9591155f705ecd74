"""
Nullifier store: the filled fraction of every (maker, offer_id).

Values only ever move up, never past SCALE. ``set`` is the sole write path.
Savepoints (``begin``/``commit``/``rollback``) nest so that a settlement
re-entered from a flash callback runs inside its caller's unit.
"""

import json
import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Union

from ..exceptions import StateError
from ..offer.hashing import nullifier_key
from ..offer.utils import SCALE


logger = logging.getLogger(__name__)


class NullifierStore:
    """In-memory nullifier store with nested savepoints."""

    def __init__(self):
        self._fractions: Dict[str, int] = {}
        # One undo journal per open savepoint: key -> value before the savepoint
        self._journals: List[Dict[str, Optional[int]]] = []

    def get(self, maker: str, offer_id: int) -> int:
        """Filled fraction of an offer, 0 if it was never touched."""
        return self._fractions.get(nullifier_key(maker, offer_id), 0)

    def set(self, maker: str, offer_id: int, new_fraction: int) -> None:
        """Raise the filled fraction of an offer.

        Raises:
            StateError: If the value is not an integer, would decrease
                (resurrection) or would exceed SCALE
        """
        key = nullifier_key(maker, offer_id)
        current = self._fractions.get(key, 0)
        details = {"maker": maker, "offer_id": offer_id, "current": current, "new": new_fraction}
        if not isinstance(new_fraction, int) or isinstance(new_fraction, bool):
            raise StateError("Nullifier value must be an integer", details)
        if new_fraction < current:
            raise StateError("Nullifier resurrection", details)
        if new_fraction > SCALE:
            raise StateError("Nullifier over-nullification", details)

        if not self._journals:
            # Outside a unit the write is durable before it is visible
            self._flush({**self._fractions, key: new_fraction})
        elif key not in self._journals[-1]:
            self._journals[-1][key] = self._fractions.get(key)
        self._fractions[key] = new_fraction

    def begin(self) -> None:
        self._journals.append({})

    def commit(self) -> None:
        if not self._journals:
            raise StateError("Commit without an open savepoint")
        if len(self._journals) == 1 and self._journals[0]:
            # A failed write leaves the savepoint open for rollback
            self._flush(self._fractions)
        journal = self._journals.pop()
        if self._journals:
            parent = self._journals[-1]
            for key, before in journal.items():
                parent.setdefault(key, before)

    def rollback(self) -> None:
        if not self._journals:
            raise StateError("Rollback without an open savepoint")
        journal = self._journals.pop()
        for key, before in journal.items():
            if before is None:
                del self._fractions[key]
            else:
                self._fractions[key] = before

    def __len__(self) -> int:
        return len(self._fractions)

    def _flush(self, fractions: Dict[str, int]) -> None:
        """Persist ``fractions`` as the committed state. No-op for the in-memory store."""


class FileNullifierStore(NullifierStore):
    """
    Durable nullifier store backed by a JSON file.

    The file is rewritten atomically whenever the outermost savepoint commits.
    """

    def __init__(self, path: Union[str, Path]):
        super().__init__()
        self.path = Path(path)

        if self.path.exists():
            self._load()

    def _load(self) -> None:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StateError(f"Cannot read nullifier file: {e}", {"path": str(self.path)})

        if not isinstance(data, dict):
            raise StateError("Nullifier file must hold an object", {"path": str(self.path)})

        for key, value in data.items():
            if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= SCALE:
                raise StateError(
                    "Corrupt nullifier value",
                    {"path": str(self.path), "key": key, "value": value},
                )
            self._fractions[key] = value

    def _flush(self, fractions: Dict[str, int]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(fractions, f, sort_keys=True)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, self.path)
        logger.debug(f"Flushed {len(fractions)} nullifiers to {self.path}")


def open_nullifier_store(path: Optional[Union[str, Path]] = None) -> NullifierStore:
    """File-backed store for ``path``, in-memory store when ``path`` is None."""
    if path is None:
        return NullifierStore()
    return FileNullifierStore(path)
