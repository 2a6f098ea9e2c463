"""
Volatile in-memory storage.

Documents are kept encoded, so a document read back is always a fresh copy.
Instances given the same namespace and the same NamespaceRegistry share their
documents:

    registry = NamespaceRegistry()
    a = MemoryStorage(namespace="books", registry=registry)
    b = MemoryStorage(namespace="books", registry=registry)
    a.write("x", {"title": "X"})
    b.read("x")   # {"title": "X"}
"""

import logging
from typing import Dict, List, Optional

from ..errors import NotFoundError
from .base import Document, Storage

logger = logging.getLogger(__name__)


class NamespaceRegistry:
    """Owns the shared key/value maps of named memory namespaces."""

    def __init__(self):
        self._namespaces: Dict[str, Dict[str, str]] = {}

    def acquire(self, namespace: str) -> Dict[str, str]:
        """Return the map for a namespace, creating it on first use."""
        if namespace not in self._namespaces:
            logger.debug(f"Creating memory namespace {namespace!r}")
            self._namespaces[namespace] = {}
        return self._namespaces[namespace]

    def drop(self, namespace: str) -> bool:
        """Forget a namespace. Returns False if it did not exist."""
        return self._namespaces.pop(namespace, None) is not None

    def namespaces(self) -> List[str]:
        return sorted(self._namespaces)

    def __contains__(self, namespace: str) -> bool:
        return namespace in self._namespaces

    def __len__(self) -> int:
        return len(self._namespaces)


class MemoryStorage(Storage):
    """Storage backed by a dict, private or shared through a registry."""

    name = "memory"

    def __init__(self, namespace: Optional[str] = None,
                 registry: Optional[NamespaceRegistry] = None):
        if namespace and registry is None:
            raise ValueError("a memory namespace requires a NamespaceRegistry")
        self.namespace = namespace
        self._store: Dict[str, str] = registry.acquire(namespace) if namespace else {}

    def read(self, identifier: str) -> Document:
        key = self.escape(identifier)
        if key not in self._store:
            raise NotFoundError(identifier)
        return self.decode(self._store[key])

    def write(self, identifier: str, document: Document) -> None:
        key = self.escape(identifier)
        self._store[key] = self.encode(document)

    def erase(self, identifier: str) -> None:
        key = self.escape(identifier)
        if key not in self._store:
            raise NotFoundError(identifier)
        del self._store[key]

    def exist(self, identifier: str) -> bool:
        return self.escape(identifier) in self._store

    def index(self) -> List[str]:
        return [self.unescape(key) for key in self._store]
