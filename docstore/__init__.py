"""
docstore - pluggable document storage with a MongoDB-style query pipeline.

Main API:
    from docstore import Collection, JSONStorage

    books = Collection(JSONStorage("data/books"))

    # Store documents under identifiers
    books.write("sicp", {"title": "SICP", "year": 1985, "language": "en"})

    # Lazy, chainable queries
    results = (books.find({"language": "en"}, {"title": 1})
                    .sort({"year": -1, "title": 1})
                    .offset(20)
                    .limit(10)
                    .to_array())

    # Update operators: $set, $unset, $rename, $push, $pull, $inc
    books.update({"language": "en"}, {"$inc": {"reads": 1}})
"""

from .collection import Collection
from .cursor import Cursor
from .errors import (
    CompileError,
    DecodeError,
    DocStoreError,
    EncodeError,
    InvalidConditionError,
    InvalidKeyError,
    InvalidOrderError,
    InvalidProjectionError,
    InvalidUpdateOperatorError,
    MethodDeniedError,
    NotFoundError,
    StorageError,
)
from .storage import (
    DenyStorage,
    JSONStorage,
    MemoryStorage,
    NamespaceRegistry,
    Storage,
    YAMLStorage,
    create_storage,
)

__version__ = "0.1.0"
__all__ = [
    "Collection",
    "Cursor",
    "Storage",
    "MemoryStorage",
    "NamespaceRegistry",
    "JSONStorage",
    "YAMLStorage",
    "DenyStorage",
    "create_storage",
    "DocStoreError",
    "CompileError",
    "InvalidConditionError",
    "InvalidProjectionError",
    "InvalidOrderError",
    "InvalidUpdateOperatorError",
    "NotFoundError",
    "StorageError",
    "EncodeError",
    "DecodeError",
    "InvalidKeyError",
    "MethodDeniedError",
]
