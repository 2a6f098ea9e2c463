"""
Update operator compiler.

Supports the MongoDB-style update operators ``$set``, ``$unset``, ``$rename``,
``$push``, ``$pull`` and ``$inc``:

    mutate = update({"$set": {"status": "read"}, "$inc": {"reads": 1}})
    mutate(document)

The mutator changes the document passed in and returns it. Values taken from
the update mapping are copied, so a mutator can be reused across documents.
Operators always run in the order listed above, whatever their order in the
mapping.
"""

import math
import re
from collections.abc import Mapping
from copy import deepcopy
from typing import Any, Callable, Dict, Optional, Union

from ..errors import InvalidUpdateOperatorError

Document = Dict[str, Any]
Mutator = Callable[[Optional[Document]], Optional[Document]]

OPERATORS = ("$set", "$unset", "$rename", "$push", "$pull", "$inc")

# leading numeric prefix, e.g. "2.5kg" -> "2.5"
_NUMBER_PREFIX = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def to_number(value: Any) -> Union[int, float]:
    """
    Read a number out of a field value.

    Strings are parsed from their leading numeric prefix. Anything that does not
    yield a finite number counts as 0.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else 0
    if isinstance(value, str):
        match = _NUMBER_PREFIX.match(value)
        if not match:
            return 0
        text = match.group(1)
        if re.fullmatch(r"[+-]?\d+", text):
            return int(text)
        number = float(text)
        return number if math.isfinite(number) else 0
    return 0


def _set(document: Document, args: Mapping) -> None:
    for key, value in args.items():
        document[key] = deepcopy(value)


def _unset(document: Document, args: Mapping) -> None:
    for key in args:
        document.pop(key, None)


def _rename(document: Document, args: Mapping) -> None:
    for key, new_key in args.items():
        # absent source: nothing to rename
        if key not in document:
            continue
        document[new_key] = document.pop(key)


def _push(document: Document, args: Mapping) -> None:
    for key, value in args.items():
        if key not in document:
            document[key] = []
        elif not isinstance(document[key], list):
            document[key] = [document[key]]
        document[key].append(deepcopy(value))


def _pull(document: Document, args: Mapping) -> None:
    for key, value in args.items():
        if key not in document:
            continue
        current = document[key]
        if isinstance(current, list):
            document[key] = [item for item in current if item != value]
        elif current == value:
            document[key] = []


def _inc(document: Document, args: Mapping) -> None:
    for key, amount in args.items():
        document[key] = to_number(document.get(key)) + to_number(amount)


_APPLY = {
    "$set": _set,
    "$unset": _unset,
    "$rename": _rename,
    "$push": _push,
    "$pull": _pull,
    "$inc": _inc,
}


def update(spec: Any = None) -> Optional[Mutator]:
    """
    Compile an update mapping into a mutator.

    Args:
        spec: mapping of operator -> {field: argument}, a mutator function, or None

    Returns:
        The mutator, or None when there is nothing to apply

    Raises:
        InvalidUpdateOperatorError: unknown operator or non-mapping argument
    """
    if callable(spec):
        return spec

    if spec is None:
        return None

    if not isinstance(spec, Mapping):
        raise InvalidUpdateOperatorError(spec, spec)

    if not spec:
        return None

    for key, args in spec.items():
        if key not in _APPLY or not isinstance(args, Mapping):
            raise InvalidUpdateOperatorError(key, spec)

    steps = [(_APPLY[op], dict(spec[op])) for op in OPERATORS if op in spec]

    def mutate(document: Optional[Document]) -> Optional[Document]:
        if document is None:
            return document
        for apply, args in steps:
            apply(document, args)
        return document

    return mutate
