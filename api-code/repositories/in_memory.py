from __future__ import annotations

import threading
from typing import Dict, Optional

from models.deploy import AuthorEntry, utc_now


class InMemoryAuthorRegistry:
    """Process-wide author registry used when MongoDB is not configured or unavailable."""

    backend = "memory"

    def __init__(self) -> None:
        self._entries: Dict[str, AuthorEntry] = {}
        self._lock = threading.Lock()

    async def ensure_indexes(self) -> None:  # pragma: no cover - no-op
        return

    async def ping(self) -> bool:
        return True

    async def record_author(self, branch: str, author: str) -> AuthorEntry:
        entry = AuthorEntry(_id=branch, author=author, updated_at=utc_now())
        with self._lock:
            self._entries[branch] = entry
        return entry

    async def get_author(self, branch: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(branch)
        return entry.author if entry else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
