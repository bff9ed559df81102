"""In-memory decision cache with lazy TTL expiry."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import hashlib
import json
import threading
import time

from formshield.domain.models import Decision, Submission


def fingerprint_submission(submission: Submission) -> str:
    """Stable sha256 over the raw email, message and name."""
    canonical = json.dumps(
        {
            "email": submission.email,
            "message": submission.message,
            "name": submission.name,
        },
        sort_keys=True,
        ensure_ascii=True,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class CacheEntry:
    decision: Decision
    created_at: float


class DecisionCache:
    def __init__(self, ttl_s: float, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl_s = float(ttl_s)
        self._clock = clock
        self._lock = threading.Lock()
        self._store: dict[str, CacheEntry] = {}

    @property
    def ttl_s(self) -> float:
        return self._ttl_s

    def get(self, key: str) -> Decision | None:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            if self._clock() - entry.created_at > self._ttl_s:
                del self._store[key]
                return None
            return entry.decision.model_copy(deep=True)

    def set(self, key: str, decision: Decision) -> None:
        entry = CacheEntry(decision=decision.model_copy(deep=True), created_at=self._clock())
        with self._lock:
            self._store[key] = entry

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def stats(self) -> dict[str, object]:
        with self._lock:
            return {"size": len(self._store), "keys": list(self._store)}
