"""In-memory cache of merged domains."""

from __future__ import annotations

import copy
import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..domains.types import Domain


logger = logging.getLogger(__name__)


class DomainCache:
    """
    Thread-safe cache of fully merged domains, keyed by domain ID.

    Entries are only dropped by explicit invalidation: the repository
    invalidates an ID on every write to it and everything on flush or
    reload. Values are copied in and out so callers cannot mutate a
    cached domain.
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._domains: dict[str, Domain] = {}
        self._lock = threading.RLock()

        # Stats
        self._hits = 0
        self._misses = 0

    def get(self, domain_id: str) -> Domain | None:
        """
        Get a copy of a cached domain.

        Returns:
            The domain if cached, None otherwise
        """
        with self._lock:
            domain = self._domains.get(domain_id)
            if domain is None:
                self._misses += 1
                return None
            self._hits += 1
            return copy.deepcopy(domain)

    def put(self, domain_id: str, domain: Domain) -> None:
        """Cache a copy of a merged domain."""
        if not self.enabled:
            return
        with self._lock:
            self._domains[domain_id] = copy.deepcopy(domain)

    def invalidate(self, domain_id: str) -> bool:
        """
        Drop one domain from the cache.

        Returns:
            True if the domain was cached
        """
        with self._lock:
            if domain_id in self._domains:
                del self._domains[domain_id]
                logger.debug(f"Invalidated cached domain {domain_id}")
                return True
            return False

    def invalidate_all(self) -> None:
        """Drop every cached domain."""
        with self._lock:
            count = len(self._domains)
            self._domains.clear()
        if count:
            logger.debug(f"Invalidated {count} cached domains")

    def __contains__(self, domain_id: str) -> bool:
        with self._lock:
            return domain_id in self._domains

    def __len__(self) -> int:
        return self.size

    @property
    def size(self) -> int:
        """Current number of entries."""
        with self._lock:
            return len(self._domains)

    @property
    def stats(self) -> dict:
        """Cache statistics."""
        with self._lock:
            total = self._hits + self._misses
            hit_rate = (self._hits / total * 100) if total > 0 else 0

            return {
                "size": len(self._domains),
                "enabled": self.enabled,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate_percent": round(hit_rate, 2),
            }
