"""
Storage wrapper refusing selected methods.

    readonly = DenyStorage(JSONStorage("data"), ["write", "erase"])
    readonly.write("x", {})   # MethodDeniedError: method denied: write
"""

import functools
from typing import Callable, Iterable, List

from ..errors import MethodDeniedError
from .base import Document, Storage

DENIABLE = ("read", "write", "erase", "exist", "index")


def denied(method: Callable) -> Callable:
    """Wrap a storage method so it raises unless the method is allowed."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        if method.__name__ in self.denied:
            raise MethodDeniedError(method.__name__)
        return method(self, *args, **kwargs)

    return wrapper


class DenyStorage(Storage):
    """Delegates to another storage, except for the denied methods."""

    def __init__(self, storage: Storage, methods: Iterable[str]):
        methods = set(methods)
        unknown = methods.difference(DENIABLE)
        if unknown:
            raise ValueError(f"Unknown storage methods: {', '.join(sorted(unknown))}")
        self.storage = storage
        self.denied = frozenset(methods)
        self.name = f"deny({storage.name})"

    @denied
    def read(self, identifier: str) -> Document:
        return self.storage.read(identifier)

    @denied
    def write(self, identifier: str, document: Document) -> None:
        self.storage.write(identifier, document)

    @denied
    def erase(self, identifier: str) -> None:
        self.storage.erase(identifier)

    @denied
    def exist(self, identifier: str) -> bool:
        return self.storage.exist(identifier)

    @denied
    def index(self) -> List[str]:
        return self.storage.index()

    def escape(self, identifier: str) -> str:
        return self.storage.escape(identifier)

    def unescape(self, key: str) -> str:
        return self.storage.unescape(key)
