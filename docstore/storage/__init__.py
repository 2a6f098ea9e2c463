"""
Storage backends.

    storage = create_storage("json", path="~/data/books")
    storage = create_storage("memory", namespace="books", registry=registry)
"""

from pathlib import Path
from typing import Dict, Optional, Type, Union

from .base import Storage
from .deny import DenyStorage
from .file import FileStorage, escape_identifier, unescape_identifier
from .json_storage import JSONStorage
from .memory import MemoryStorage, NamespaceRegistry
from .yaml_storage import YAMLStorage

STORAGE_BACKENDS: Dict[str, Type[Storage]] = {
    "memory": MemoryStorage,
    "json": JSONStorage,
    "yaml": YAMLStorage,
}


def create_storage(backend: str = "memory",
                   path: Optional[Union[str, Path]] = None,
                   namespace: Optional[str] = None,
                   registry: Optional[NamespaceRegistry] = None,
                   create: bool = True) -> Storage:
    """
    Build a storage backend by name.

    Args:
        backend: one of STORAGE_BACKENDS
        path: directory for file backends
        namespace: shared namespace for the memory backend
        registry: registry owning memory namespaces
        create: let file backends create a missing directory

    Raises:
        ValueError: unknown backend, or a file backend without a path
    """
    if backend not in STORAGE_BACKENDS:
        raise ValueError(
            f"Unknown storage backend: {backend} "
            f"(choose from {', '.join(sorted(STORAGE_BACKENDS))})"
        )

    cls = STORAGE_BACKENDS[backend]
    if issubclass(cls, FileStorage):
        if path is None:
            raise ValueError(f"Storage backend {backend} requires a path")
        return cls(Path(path).expanduser(), create=create)
    return cls(namespace=namespace, registry=registry)


__all__ = [
    "Storage",
    "MemoryStorage",
    "NamespaceRegistry",
    "FileStorage",
    "JSONStorage",
    "YAMLStorage",
    "DenyStorage",
    "STORAGE_BACKENDS",
    "create_storage",
    "escape_identifier",
    "unescape_identifier",
]
