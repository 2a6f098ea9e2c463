"""Exception hierarchy for docstore."""

from typing import Any, Optional


class DocStoreError(Exception):
    """Base class for docstore errors."""
    pass


class CompileError(DocStoreError):
    """Raised when a condition, projection, order or update can't be compiled."""

    kind = "query"

    def __init__(self, value: Any, message: Optional[str] = None):
        self.value = value
        super().__init__(message or f"invalid {self.kind}: {value!r}")


class InvalidConditionError(CompileError):
    kind = "condition"


class InvalidProjectionError(CompileError):
    kind = "projection"


class InvalidOrderError(CompileError):
    kind = "order"


class InvalidUpdateOperatorError(CompileError):
    """Raised for an unsupported update operator or a non-mapping argument."""

    kind = "update operator"

    def __init__(self, key: Any, value: Any = None):
        self.key = key
        super().__init__(value, f"invalid update operator: {key!r}")


class NotFoundError(DocStoreError):
    """Raised when an identifier (or a query result) does not exist."""

    def __init__(self, identifier: Optional[str] = None, message: Optional[str] = None):
        self.identifier = identifier
        super().__init__(message or f"Item not found: {identifier!r}")


class StorageError(DocStoreError):
    """Opaque failure reported by a storage backend."""
    pass


class EncodeError(StorageError):
    """Raised when a document can't be serialized by the backend."""
    pass


class DecodeError(StorageError):
    """Raised when stored data can't be turned back into a document."""
    pass


class InvalidKeyError(DecodeError):
    """Raised when a storage key does not unescape to an identifier."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"invalid storage key: {key!r}")


class MethodDeniedError(StorageError):
    """Raised by a storage method that has been denied."""

    def __init__(self, method: str):
        self.method = method
        super().__init__(f"method denied: {method}")
