"""
Order compiler.

Sort specifications follow the MongoDB convention: ``{"price": 1, "stock": -1}``
sorts by price ascending and breaks ties by stock descending. A sequence of
``(field, direction)`` pairs is accepted as well, and a comparator function
``(a, b) -> int`` is passed through untouched.
"""

import json
import numbers
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Tuple

from ..errors import InvalidOrderError

Comparator = Callable[[Dict[str, Any], Dict[str, Any]], int]

ASCENDING = 1
DESCENDING = -1


def _rank(value: Any) -> int:
    # None < numbers < strings < mappings < sequences < booleans
    if value is None:
        return 0
    if isinstance(value, bool):
        return 5
    if isinstance(value, numbers.Number):
        return 1
    if isinstance(value, str):
        return 2
    if isinstance(value, Mapping):
        return 3
    if isinstance(value, (list, tuple)):
        return 4
    return 6


def compare_values(a: Any, b: Any) -> int:
    """
    Compare two document values, returning -1, 0 or 1.

    Values of different kinds never raise: they are ordered by kind first.
    """
    rank_a, rank_b = _rank(a), _rank(b)
    if rank_a != rank_b:
        return -1 if rank_a < rank_b else 1

    if rank_a == 0:
        return 0

    if rank_a == 4:
        for x, y in zip(a, b):
            result = compare_values(x, y)
            if result:
                return result
        return (len(a) > len(b)) - (len(a) < len(b))

    if rank_a in (3, 6):
        a = json.dumps(a, sort_keys=True, default=str)
        b = json.dumps(b, sort_keys=True, default=str)

    if a == b:
        return 0
    return -1 if a < b else 1


def _keep_order(a: Dict[str, Any], b: Dict[str, Any]) -> int:
    return 0


def _parse_keys(sort: Any) -> List[Tuple[str, int]]:
    if isinstance(sort, Mapping):
        pairs = list(sort.items())
    elif isinstance(sort, (list, tuple)):
        pairs = []
        for pair in sort:
            if not isinstance(pair, (list, tuple)) or len(pair) != 2:
                raise InvalidOrderError(sort)
            pairs.append(tuple(pair))
    else:
        raise InvalidOrderError(sort)

    keys = []
    for field, direction in pairs:
        if not isinstance(field, str):
            raise InvalidOrderError(sort, f"invalid sort field: {field!r}")
        if isinstance(direction, bool) or direction not in (ASCENDING, DESCENDING):
            raise InvalidOrderError(sort, f"invalid sort direction for {field!r}: {direction!r}")
        keys.append((field, int(direction)))
    return keys


def order(sort: Any = None) -> Comparator:
    """
    Compile a sort mapping into a comparator.

    Args:
        sort: None, a mapping or pair sequence of field -> 1/-1, or a comparator

    Returns:
        Comparator usable with functools.cmp_to_key

    Raises:
        InvalidOrderError: unsupported sort, field or direction
    """
    if sort is None:
        return _keep_order

    if callable(sort):
        return sort

    keys = _parse_keys(sort)
    if not keys:
        return _keep_order

    def compare(a: Dict[str, Any], b: Dict[str, Any]) -> int:
        for field, direction in keys:
            result = compare_values(a.get(field), b.get(field))
            if result:
                return result * direction
        return 0

    return compare
