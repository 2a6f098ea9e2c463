"""
Lazy, chainable query cursor.

A cursor is a chain of stages. Each stage pulls items one at a time from the
stage it wraps, so the chain reads documents from storage only as far as the
caller drains it:

    cursor = (collection.find({"language": "en"}, {"title": 1})
              .sort({"year": -1, "title": 1})
              .offset(10)
              .limit(10))
    for document in cursor:
        print(document["title"])

``sort``, ``offset`` and ``limit`` wrap whatever the chain head is at the time
they are called, so ``.offset(2).limit(1)`` and ``.limit(1).offset(2)`` are
different queries.
"""

import logging
from collections import deque
from copy import deepcopy
from functools import cmp_to_key
from typing import Any, Callable, Deque, Dict, Iterator, List, NamedTuple, Optional

from .errors import (
    CompileError,
    InvalidConditionError,
    InvalidProjectionError,
)
from .operators import order, view, where

logger = logging.getLogger(__name__)

Document = Dict[str, Any]


class Item(NamedTuple):
    """A document travelling through the stage chain, with its identifier."""
    id: str
    document: Document


class Stage:
    """One link of the chain. ``next_item`` returns None at EOF."""

    source: Optional["Stage"] = None

    def next_item(self) -> Optional[Item]:
        raise NotImplementedError

    def rewind(self) -> None:
        if self.source is not None:
            self.source.rewind()


class Source(Stage):
    """Reads the identifier list once, then one document per pull."""

    def __init__(self, storage, id_field: Optional[str] = None):
        self.storage = storage
        self.id_field = id_field
        self.list: Optional[Deque[str]] = None

    def next_item(self) -> Optional[Item]:
        if self.list is None:
            # read all keys at first
            self.list = deque(self.storage.index() or [])
            logger.debug(f"Source indexed {len(self.list)} identifiers")

        if not self.list:
            return None

        identifier = self.list.popleft()
        document = self.storage.read(identifier)
        if self.id_field:
            document[self.id_field] = identifier
        return Item(identifier, document)

    def rewind(self) -> None:
        self.list = None


class Condition(Stage):
    """Passes through only the documents accepted by the predicate."""

    def __init__(self, source: Stage, predicate: Callable[[Document], bool]):
        self.source = source
        self.predicate = predicate

    def next_item(self) -> Optional[Item]:
        predicate = self.predicate
        if not callable(predicate):
            raise InvalidConditionError(predicate)

        while True:
            item = self.source.next_item()
            if item is None or predicate(item.document):
                return item


class Projection(Stage):
    """Applies a transform to every document."""

    def __init__(self, source: Stage, transform: Callable[[Document], Document]):
        self.source = source
        self.transform = transform

    def next_item(self) -> Optional[Item]:
        transform = self.transform
        if not callable(transform):
            raise InvalidProjectionError(transform)

        item = self.source.next_item()
        if item is None:
            return None
        return Item(item.id, transform(item.document))


class Sort(Stage):
    """Buffers the whole upstream on first pull and serves it sorted."""

    def __init__(self, source: Stage, comparator: Callable[[Document, Document], int]):
        self.source = source
        self.comparator = comparator
        self.list: Optional[Deque[Item]] = None

    def next_item(self) -> Optional[Item]:
        if self.list is None:
            comparator = self.comparator
            items = drain(self.source)
            items.sort(key=cmp_to_key(lambda a, b: comparator(a.document, b.document)))
            self.list = deque(items)
            logger.debug(f"Sort buffered {len(items)} documents")

        if not self.list:
            return None
        return self.list.popleft()

    def rewind(self) -> None:
        self.list = None
        super().rewind()


class Offset(Stage):
    """Skips the first ``offset`` items."""

    def __init__(self, source: Stage, offset: int):
        self.source = source
        self.offset = offset
        self.ready = False

    def next_item(self) -> Optional[Item]:
        if not self.ready:
            for _ in range(self.offset):
                if self.source.next_item() is None:
                    return None
            self.ready = True
        return self.source.next_item()

    def rewind(self) -> None:
        self.ready = False
        super().rewind()


class Limit(Stage):
    """Serves at most ``limit`` items and never pulls past them."""

    def __init__(self, source: Stage, limit: int):
        self.source = source
        self.limit = limit
        self.rest = limit

    def next_item(self) -> Optional[Item]:
        if self.rest <= 0:
            return None
        self.rest -= 1
        return self.source.next_item()

    def rewind(self) -> None:
        self.rest = self.limit
        super().rewind()


def drain(stage: Stage) -> List[Item]:
    """Pull every remaining item from a stage."""
    items = []
    while True:
        item = stage.next_item()
        if item is None:
            return items
        items.append(item)


class Cursor:
    """
    Query handle over a storage.

    A condition or projection that fails to compile doesn't raise here: the
    error is latched and raised by every terminal operation instead, before
    storage is touched.

    Args:
        storage: object providing ``index()`` and ``read(id)``
        condition: condition mapping or predicate (see ``operators.where``)
        projection: projection mapping or transform (see ``operators.view``)
        id_field: when set, embed each document's identifier under this key
    """

    def __init__(self, storage, condition: Any = None, projection: Any = None,
                 id_field: Optional[str] = None):
        self.storage = storage
        self._error: Optional[CompileError] = None
        self._index: Optional[List[str]] = None
        self._to_array: Optional[List[Item]] = None
        self._source = Source(storage, id_field)
        self.source: Stage = self._source

        if condition is not None:
            try:
                predicate = where(condition)
            except CompileError as e:
                self._latch(e)
            else:
                self.source = Condition(self.source, predicate)

        if projection is not None:
            try:
                transform = view(projection)
            except CompileError as e:
                self._latch(e)
            else:
                self.source = Projection(self.source, transform)

    def _latch(self, error: CompileError) -> None:
        logger.debug(f"Cursor latched error: {error}")
        if self._error is None:
            self._error = error

    def _check(self) -> None:
        if self._error is not None:
            raise self._error

    # Chain builders

    def sort(self, sort: Any) -> "Cursor":
        """Sort by a mapping of field -> 1/-1 or a comparator (chainable)."""
        try:
            comparator = order(sort)
        except CompileError as e:
            self._latch(e)
        else:
            self.source = Sort(self.source, comparator)
        return self

    def offset(self, offset: int) -> "Cursor":
        """Skip the first ``offset`` results (chainable)."""
        self.source = Offset(self.source, int(offset))
        return self

    def limit(self, limit: int) -> "Cursor":
        """Return at most ``limit`` results (chainable)."""
        self.source = Limit(self.source, int(limit))
        return self

    # Iteration

    def next_object(self) -> Optional[Document]:
        """Return the next document, or None when the cursor is exhausted."""
        self._check()
        item = self.source.next_item()
        return None if item is None else item.document

    def rewind(self) -> "Cursor":
        """Reset the cursor position and forget memoized results."""
        self.source.rewind()
        self._index = None
        self._to_array = None
        return self

    def __iter__(self) -> Iterator[Document]:
        while True:
            document = self.next_object()
            if document is None:
                return
            yield document

    # Terminal operations

    def index(self) -> List[str]:
        """All identifiers in the storage, whatever the condition."""
        self._check()
        if self._index is None:
            self._index = list(self.storage.index() or [])
        else:
            logger.debug("Cursor index served from memo")
        return list(self._index)

    def items(self) -> List[Item]:
        """All results paired with their identifiers (memoized)."""
        self._check()
        if self._to_array is None:
            self._to_array = drain(self.source)
        else:
            logger.debug("Cursor results served from memo")
        return [Item(item.id, deepcopy(item.document)) for item in self._to_array]

    def to_array(self) -> List[Document]:
        """All results as a list of documents (memoized)."""
        return [item.document for item in self.items()]

    def each(self, callback: Callable[[Document], Any]) -> "Cursor":
        """
        Call ``callback(document)`` for every result.

        Results are pulled one at a time and memoized as they go, so a later
        ``each``, ``to_array`` or ``count`` sees the same result set.
        """
        self._check()
        if self._to_array is not None:
            logger.debug("Cursor results served from memo")
            for item in self._to_array:
                callback(deepcopy(item.document))
            return self

        buffer: List[Item] = []
        try:
            while True:
                item = self.source.next_item()
                if item is None:
                    break
                buffer.append(item)
                callback(deepcopy(item.document))
        except BaseException:
            # partial pull: start over next time
            self.source.rewind()
            raise
        self._to_array = buffer
        return self

    def count(self) -> int:
        """Number of results."""
        self._check()
        if self.source is self._source:
            return len(self.index())
        return len(self.items())
