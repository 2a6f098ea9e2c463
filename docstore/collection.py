"""
Collection: a storage plus the query and update operations.

Example usage:
    books = Collection(JSONStorage("data/books"))

    books.insert({"_id": "sicp", "title": "SICP", "year": 1985})

    recent = (books.find({"language": "en"}, {"title": 1, "year": 1})
                   .sort({"year": -1})
                   .limit(10)
                   .to_array())

    books.update({"language": "en"}, {"$push": {"tags": "english"}})
    books.find_and_modify({"status": "queued"}, {"added": 1},
                          {"$set": {"status": "reading"}})
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from .cursor import Cursor
from .errors import NotFoundError
from .operators import update as compile_update
from .storage.base import Storage

logger = logging.getLogger(__name__)

Document = Dict[str, Any]


class Collection:
    """
    Query and update operations over a Storage.

    Args:
        storage: backend holding the documents
        id_field: document field insert() and save() take identifiers from
    """

    def __init__(self, storage: Storage, id_field: str = "_id"):
        self.storage = storage
        self.id_field = id_field

    def __repr__(self):
        return f"<Collection storage={self.storage.name}>"

    # Storage contract

    def read(self, identifier: str) -> Document:
        return self.storage.read(identifier)

    def write(self, identifier: str, document: Document) -> None:
        self.storage.write(identifier, document)

    def erase(self, identifier: str) -> None:
        self.storage.erase(identifier)

    def exist(self, identifier: str) -> bool:
        return self.storage.exist(identifier)

    def index(self) -> List[str]:
        return self.storage.index()

    def __len__(self) -> int:
        return len(self.index())

    def __contains__(self, identifier: str) -> bool:
        return self.exist(identifier)

    # Queries

    def find(self, condition: Any = None, projection: Any = None,
             id_field: Optional[str] = None) -> Cursor:
        """
        Start a query.

        Args:
            condition: mapping of field -> value, or a predicate
            projection: projection mapping, or a transform
            id_field: embed each identifier into its document under this key

        Returns:
            A lazy Cursor; nothing is read until it is drained
        """
        return Cursor(self, condition, projection, id_field=id_field)

    def find_one(self, condition: Any = None, projection: Any = None) -> Document:
        """
        First document matching the condition.

        Raises:
            NotFoundError: nothing matches
        """
        documents = self.find(condition, projection).limit(1).to_array()
        if not documents:
            raise NotFoundError(message=f"No document matches {condition!r}")
        return documents[0]

    def count(self, condition: Any = None) -> int:
        """Number of documents matching the condition."""
        return self.find(condition).count()

    # Writes

    def insert(self, document: Document) -> str:
        """Store a document under its id field, or a new id. Returns the id."""
        identifier = document.get(self.id_field)
        if identifier is None:
            identifier = uuid.uuid4().hex
        identifier = str(identifier)
        self.write(identifier, document)
        logger.debug(f"Inserted {identifier}")
        return identifier

    def save(self, document: Document) -> str:
        """Store a document under its id field. Returns the id."""
        if document.get(self.id_field) is None:
            raise ValueError(f"Document has no {self.id_field!r} field to save under")
        return self.insert(document)

    def update(self, condition: Any, update: Any,
               options: Optional[Dict[str, Any]] = None) -> int:
        """
        Apply update operators to the matching documents and write them back.

        Args:
            condition: which documents to update
            update: update operators (see ``operators.update``) or a mutator
            options: ``multi`` (default True); False updates the first match only

        Returns:
            Number of documents written

        Raises:
            InvalidUpdateOperatorError: before any document is touched
        """
        options = options or {}
        mutate = compile_update(update)

        cursor = self.find(condition)
        if not options.get("multi", True):
            cursor.limit(1)

        count = 0
        for item in cursor.items():
            document = mutate(item.document) if mutate else item.document
            self.write(item.id, document)
            count += 1

        logger.info(f"Updated {count} document(s) in {self.storage.name}")
        return count

    def find_and_modify(self, condition: Any, sort: Any, update: Any,
                        options: Optional[Dict[str, Any]] = None) -> Optional[Document]:
        """
        Update (or remove) the first document by condition and sort order.

        Args:
            condition: which documents qualify
            sort: order deciding which qualifying document comes first
            update: update operators or a mutator
            options: ``new`` (default True) returns the updated document rather
                than the original; ``remove`` erases the document instead

        Returns:
            The document, or None when nothing matches
        """
        options = options or {}
        remove = options.get("remove", False)
        mutate = None if remove else compile_update(update)

        cursor = self.find(condition)
        if sort is not None:
            cursor.sort(sort)
        items = cursor.limit(1).items()
        if not items:
            return None

        identifier, document = items[0]
        if remove:
            self.erase(identifier)
            logger.info(f"Removed {identifier} from {self.storage.name}")
            return document

        original = cursor.items()[0].document
        if mutate:
            document = mutate(document)
        self.write(identifier, document)
        logger.info(f"Modified {identifier} in {self.storage.name}")
        return document if options.get("new", True) else original

    def remove(self, condition: Any = None,
               options: Optional[Dict[str, Any]] = None) -> int:
        """
        Erase the matching documents.

        Args:
            condition: which documents to erase; None erases everything
            options: ``single`` (or ``justOne``) erases the first match only

        Returns:
            Number of documents erased
        """
        options = options or {}
        cursor = self.find(condition)
        if options.get("single") or options.get("justOne"):
            cursor.limit(1)

        count = 0
        for item in cursor.items():
            self.erase(item.id)
            count += 1

        logger.info(f"Removed {count} document(s) from {self.storage.name}")
        return count
