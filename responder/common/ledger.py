"""
Processed Comment Ledger

Durable record of comment ids that already received a reply, so a restart or
a later polling cycle never answers the same comment twice.

The ledger is persisted to ~/.figma-responder/processed_comments.json as a
JSON list in insertion order. Only the most recent MAX_ENTRIES ids are kept.
"""

import json
import logging
import os
from pathlib import Path
from typing import List, Optional

from .config import LEDGER_PATH

logger = logging.getLogger("responder.common.ledger")

MAX_ENTRIES = 1000


class ProcessedLedger:
    """
    Bounded, append-only set of processed comment ids.

    Workflow:
    1. The comment selector skips ids for which is_processed() is True
    2. The document processor calls mark_processed() after a reply is posted
    3. Once MAX_ENTRIES is exceeded the oldest ids are evicted
    """

    def __init__(self, ledger_path: Optional[Path] = None, max_entries: int = MAX_ENTRIES):
        """
        Initialize ledger.

        Args:
            ledger_path: Path to ledger file (default: ~/.figma-responder/processed_comments.json)
            max_entries: Retention cap, oldest ids are dropped first
        """
        self._ledger_path = ledger_path or LEDGER_PATH
        self._max_entries = max_entries
        self._ids: List[str] = []
        self._index: set = set()
        self._load()

    def _load(self) -> None:
        """Load ledger from disk"""
        if not self._ledger_path.exists():
            return

        try:
            with open(self._ledger_path) as f:
                data = json.load(f)
            if not isinstance(data, list):
                raise ValueError(f"expected a JSON list, got {type(data).__name__}")
        except (json.JSONDecodeError, IOError, ValueError) as e:
            logger.warning("Failed to load ledger %s: %s", self._ledger_path, e)
            return

        for comment_id in data:
            comment_id = str(comment_id)
            if comment_id not in self._index:
                self._ids.append(comment_id)
                self._index.add(comment_id)
        self._trim()

    def _save(self) -> None:
        """Save ledger to disk"""
        self._ledger_path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._ledger_path.with_suffix(self._ledger_path.suffix + ".tmp")
        with open(tmp, "w") as f:
            json.dump(self._ids, f)
        os.replace(tmp, self._ledger_path)

    def _trim(self) -> None:
        overflow = len(self._ids) - self._max_entries
        if overflow > 0:
            for evicted in self._ids[:overflow]:
                self._index.discard(evicted)
            self._ids = self._ids[overflow:]

    def is_processed(self, comment_id: str) -> bool:
        return comment_id in self._index

    def mark_processed(self, comment_id: str) -> None:
        """Record a comment as answered. Already-recorded ids are left in place."""
        if comment_id in self._index:
            return
        self._ids.append(comment_id)
        self._index.add(comment_id)
        self._trim()
        self._save()

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, comment_id: str) -> bool:
        return self.is_processed(comment_id)

    @property
    def ids(self) -> List[str]:
        """Processed ids, oldest first"""
        return list(self._ids)
