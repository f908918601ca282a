"""
Peer Registry

Holds the peers currently known to this node as a mapping of
service fullname -> host identifier (e.g. "192.168.1.20.local.").

Design Decision: Locking
========================

The discovery loop is the only writer; the CLI reporter and the REST API
read. One exclusive lock is enough at this contention level, and every
access goes through a `with` block so the lock is released on every exit path.
"""

import threading
from typing import Dict, Optional


class Registry:
    """Thread-safe store of discovered peers."""

    def __init__(self):
        self._lock = threading.Lock()
        self._peers: Dict[str, str] = {}

    def insert(self, name: str, host: str):
        """Insert or overwrite the entry for `name` (last write wins)."""
        with self._lock:
            self._peers[name] = host

    def remove(self, name: str) -> bool:
        """Remove the entry for `name`. Returns True if one was present."""
        with self._lock:
            return self._peers.pop(name, None) is not None

    def get(self, name: str) -> Optional[str]:
        with self._lock:
            return self._peers.get(name)

    def snapshot(self) -> Dict[str, str]:
        """Return a point-in-time copy of the registry."""
        with self._lock:
            return dict(self._peers)

    def clear(self):
        with self._lock:
            self._peers.clear()

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._peers

    def __len__(self) -> int:
        with self._lock:
            return len(self._peers)
