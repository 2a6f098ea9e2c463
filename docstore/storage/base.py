"""
Abstract storage contract.

A backend stores documents under string identifiers. The query layer only
ever calls the methods defined here, so any class implementing them can sit
under a Collection.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, List

from ..errors import DecodeError, EncodeError

Document = Dict[str, Any]


class Storage(ABC):
    """Base class all storage backends must inherit from."""

    name: str = "storage"

    @abstractmethod
    def read(self, identifier: str) -> Document:
        """
        Read a document.

        Raises:
            NotFoundError: no document is stored under the identifier
        """

    @abstractmethod
    def write(self, identifier: str, document: Document) -> None:
        """
        Store a document, replacing any previous one.

        Raises:
            EncodeError: the document can't be serialized
        """

    @abstractmethod
    def erase(self, identifier: str) -> None:
        """
        Delete a document.

        Raises:
            NotFoundError: no document is stored under the identifier
        """

    @abstractmethod
    def exist(self, identifier: str) -> bool:
        """Whether a document is stored under the identifier."""

    @abstractmethod
    def index(self) -> List[str]:
        """All identifiers currently stored, in no particular order."""

    def escape(self, identifier: str) -> str:
        """Map an identifier to a storage key."""
        return identifier

    def unescape(self, key: str) -> str:
        """Map a storage key back to its identifier."""
        return key

    def encode(self, document: Document) -> str:
        """Serialize a document (JSON by default)."""
        try:
            return json.dumps(document, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise EncodeError(f"{self.name}: can't encode document: {e}") from e

    def decode(self, raw: str) -> Document:
        """Deserialize a document (JSON by default)."""
        try:
            document = json.loads(raw)
        except ValueError as e:
            raise DecodeError(f"{self.name}: can't decode document: {e}") from e
        if not isinstance(document, dict):
            raise DecodeError(f"{self.name}: stored value is not a document")
        return document
