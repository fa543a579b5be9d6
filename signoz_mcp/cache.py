"""Per-credential cache of backend clients.

In HTTP mode every caller brings its own SigNoz API key. A client is created
the first time a key is seen and reused for every later call with that key.
"""

import logging
import threading
from collections.abc import Callable
from typing import Generic, TypeVar

from cachetools import LRUCache

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ClientCache(Generic[T]):
    """Map credentials to lazily created client handles.

    With ``max_size`` of 0 the cache is a plain dict that grows for the life
    of the process. Lookups on it do not take the lock; ``dict.get`` is atomic,
    so only the first request per credential is serialized. With a positive
    ``max_size`` entries live in an ``LRUCache`` and every access is locked,
    because an LRU lookup reorders the entries.

    Args:
        factory: Builds a handle for one credential. Must not fail.
        default: Handle used when a call carries no credential.
        max_size: Bound on cached credentials; 0 means unbounded.
    """

    def __init__(self, factory: Callable[[str], T], default: T | None = None, max_size: int = 0):
        self._factory = factory
        self._default = default
        self._lock = threading.Lock()
        self._bounded = max_size > 0
        self._clients: dict[str, T] | LRUCache = LRUCache(maxsize=max_size) if self._bounded else {}

    @property
    def default(self) -> T | None:
        return self._default

    def __len__(self) -> int:
        with self._lock:
            return len(self._clients)

    def __contains__(self, credential: str) -> bool:
        with self._lock:
            return credential in self._clients

    def resolve(self, credential: str | None = None) -> T | None:
        """Return the handle for ``credential``, creating it on first use.

        An empty or missing credential yields the default handle.
        """
        if not credential:
            return self._default

        if not self._bounded:
            client = self._clients.get(credential)
            if client is not None:
                return client

        with self._lock:
            client = self._clients.get(credential)
            if client is None:
                logger.info("Creating client for new credential")
                client = self._factory(credential)
                self._clients[credential] = client
            return client
