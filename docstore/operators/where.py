"""
Condition compiler.

Turns a condition into a predicate ``document -> bool``:

    where(None)                      # every document matches
    where({})                        # every document matches
    where({"lang": "en"})            # document["lang"] == "en"
    where({"lang": "en", "year": 2020})
    where(lambda doc: doc.get("year", 0) > 2020)
"""

from collections.abc import Mapping
from typing import Any, Callable, Dict, Union

from ..errors import InvalidConditionError

Predicate = Callable[[Dict[str, Any]], bool]
Condition = Union[None, Mapping, Predicate]


def _always(document: Dict[str, Any]) -> bool:
    return True


def where(condition: Condition = None) -> Predicate:
    """
    Compile a condition into a predicate.

    Args:
        condition: None, a mapping of field -> expected value, or a predicate

    Returns:
        A pure predicate function

    Raises:
        InvalidConditionError: condition is neither a mapping nor callable
    """
    if condition is None:
        return _always

    if callable(condition):
        return condition

    if not isinstance(condition, Mapping):
        raise InvalidConditionError(condition)

    expected = dict(condition)
    if not expected:
        return _always

    if len(expected) == 1:
        # one condition: faster
        (key, value), = expected.items()

        def match_one(document: Dict[str, Any]) -> bool:
            return document.get(key) == value

        return match_one

    def match_all(document: Dict[str, Any]) -> bool:
        for key, value in expected.items():
            if document.get(key) != value:
                return False
        return True

    return match_all
