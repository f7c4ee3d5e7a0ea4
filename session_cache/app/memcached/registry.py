"""
Region registry mapping cache names to live memcached clients.
"""

import threading
from typing import Any, Callable, Dict, List, Optional

from cache_shared.logging import get_logger


class ClientRegistry:
    """
    Thread-safe mapping of region name to memcached client.

    Entries are created on first request and live until the whole registry
    is closed. Lookups of existing regions never take the lock; creation is
    serialized so concurrent first callers for a name share one client.
    """

    def __init__(self, clients: Optional[Dict[str, Any]] = None):
        self._clients: Dict[str, Any] = dict(clients or {})
        self._lock = threading.Lock()
        self.logger = get_logger("session_cache.memcached.registry")

    def get(self, name: str) -> Optional[Any]:
        return self._clients.get(name)

    def get_or_create(self, name: str, factory: Callable[[str], Any]) -> Any:
        """Return the client for name, building it with factory(name) if missing."""
        client = self._clients.get(name)
        if client is not None:
            self.logger.debug("Using existing memcached client", region=name)
            return client

        with self._lock:
            client = self._clients.get(name)
            if client is None:
                self.logger.info("Cache does not yet exist, creating now", region=name)
                client = factory(name)
                self._clients[name] = client
                self.logger.info("Added memcached client", region=name)
            return client

    def names(self) -> List[str]:
        return sorted(self._clients)

    def close(self) -> None:
        """Close every client and empty the registry. Close failures are logged."""
        with self._lock:
            clients, self._clients = self._clients, {}

        for name, client in clients.items():
            try:
                client.close()
            except Exception as e:
                self.logger.warning("Unable to close memcached client", region=name, error=str(e))

    def __contains__(self, name: object) -> bool:
        return name in self._clients

    def __len__(self) -> int:
        return len(self._clients)
