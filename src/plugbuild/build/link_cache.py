"""Link result cache.

Linking is the most expensive step after the plugins themselves, and most
rebuilds leave most units untouched. The cache keeps linked output keyed by
everything that affects it, bounded by the total bytes of output held.

Cache Key:
    SHA256 over JSON of the link options plus (serve path, hash, bare)
    for each code file, in order. File contents are represented by their
    hash only, so computing a key never touches the code itself.

The cache is shared by every build in the process (build daemons keep it
across rebuilds) and is safe to use from several threads.
"""

import hashlib
import json
import logging
import threading
from collections import OrderedDict
from typing import Any, Dict, Optional, Sequence, Tuple

from ..config.build_config import BuildConfig
from .resources import OutputResource

logger = logging.getLogger(__name__)

LinkResult = Tuple[OutputResource, ...]


def compute_cache_key(link_options: Dict[str, Any], files: Sequence[OutputResource]) -> str:
    """
    Compute the cache key for linking ``files`` with ``link_options``.

    Args:
        link_options: Link options as a JSON-serializable dict
        files: Code resources to be linked, in order

    Returns:
        Hex digest identifying the link inputs
    """
    payload = json.dumps(
        {
            "linkerOptions": link_options,
            "files": [
                {"servePath": f.serve_path, "hash": f.hash, "bare": bool(f.bare)}
                for f in files
            ],
        },
        sort_keys=True,
        separators=(",", ":"),
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def result_size(value: Sequence[OutputResource]) -> int:
    """Bytes held by a cached link result (code plus source maps)."""
    return sum(resource.byte_size for resource in value)


class LinkCache:
    """Least-recently-used cache of link results, bounded in bytes.

    Values are tuples of frozen OutputResources and may be handed to many
    builds at once; callers must not try to modify them.
    """

    def __init__(self, max_bytes: int):
        """
        Initialize an empty cache.

        Args:
            max_bytes: Total bytes of cached output to keep
        """
        self.max_bytes = max_bytes
        self._lock = threading.Lock()
        self._entries: "OrderedDict[str, Tuple[LinkResult, int]]" = OrderedDict()
        self._current_size = 0
        self.hits = 0
        self.misses = 0

    @property
    def current_size(self) -> int:
        """Bytes currently held."""
        with self._lock:
            return self._current_size

    def get(self, key: str) -> Optional[LinkResult]:
        """
        Look up a link result and mark it most recently used.

        Args:
            key: Key from compute_cache_key

        Returns:
            The cached result, or None on a miss
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            return entry[0]

    def set(self, key: str, value: Sequence[OutputResource]) -> LinkResult:
        """
        Store a link result, evicting least recently used entries to fit.

        A result larger than the whole budget is not stored.

        Args:
            key: Key from compute_cache_key
            value: Linked output resources

        Returns:
            The stored (immutable) result
        """
        value = tuple(value)
        size = result_size(value)

        with self._lock:
            previous = self._entries.pop(key, None)
            if previous is not None:
                self._current_size -= previous[1]

            if size > self.max_bytes:
                logger.debug(f"Link result of {size} bytes exceeds cache budget of {self.max_bytes}, not cached")
                return value

            while self._entries and self._current_size + size > self.max_bytes:
                evicted_key, (_, evicted_size) = self._entries.popitem(last=False)
                self._current_size -= evicted_size
                logger.debug(f"Evicted link result {evicted_key[:12]} ({evicted_size} bytes)")

            self._entries[key] = (value, size)
            self._current_size += size

        return value

    def clear(self) -> None:
        """Remove all entries and reset statistics."""
        with self._lock:
            self._entries.clear()
            self._current_size = 0
            self.hits = 0
            self.misses = 0

    def stats(self) -> Dict[str, int]:
        """Entry count, byte usage and hit statistics."""
        with self._lock:
            return {
                "entries": len(self._entries),
                "bytes": self._current_size,
                "max_bytes": self.max_bytes,
                "hits": self.hits,
                "misses": self.misses,
            }

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


_default_cache: Optional[LinkCache] = None
_default_cache_lock = threading.Lock()


def get_default_link_cache() -> LinkCache:
    """
    Get the process-wide link cache, creating it on first use.

    Its size comes from BuildConfig.from_env().
    """
    global _default_cache
    with _default_cache_lock:
        if _default_cache is None:
            config = BuildConfig.from_env()
            _default_cache = LinkCache(config.linker_cache_size)
            logger.debug(f"Created link cache with a budget of {config.linker_cache_size} bytes")
        return _default_cache
