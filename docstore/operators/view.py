"""
Projection compiler.

A projection mapping either keeps fields or drops them:

    view({"title": 1, "year": 1})       # keep title and year
    view({"description": 0})            # everything but description
    view({"name": "$title"})            # name copied from title
    view({"first": {"$expr": "creators[0]"}})   # computed with JMESPath

Keep-style entries (include, copy, compute) can't be mixed with drop entries.
"""

from collections.abc import Mapping
from copy import deepcopy
from typing import Any, Callable, Dict, List, Tuple

import jmespath
from jmespath.exceptions import JMESPathError

from ..errors import InvalidProjectionError

Document = Dict[str, Any]
Transform = Callable[[Document], Document]

EXPR_KEY = "$expr"


def _identity(document: Document) -> Document:
    return document


def _compile_entry(field: str, spec: Any, projection: Any) -> Tuple[str, Callable[[Document], Any]]:
    """Return ("include"|"exclude"|"compute", getter) for one projection entry."""
    # bool is a subclass of int, so True/False land here too
    if isinstance(spec, (int, float)):
        if spec:
            return "include", lambda doc: doc.get(field)
        return "exclude", None

    if isinstance(spec, str) and spec.startswith("$") and len(spec) > 1:
        source = spec[1:]
        return "compute", lambda doc: doc.get(source)

    if isinstance(spec, Mapping) and set(spec) == {EXPR_KEY} and isinstance(spec[EXPR_KEY], str):
        try:
            expression = jmespath.compile(spec[EXPR_KEY])
        except JMESPathError as e:
            raise InvalidProjectionError(
                projection, f"invalid projection expression for {field!r}: {e}"
            ) from e
        return "compute", expression.search

    raise InvalidProjectionError(projection, f"invalid projection for {field!r}: {spec!r}")


def view(projection: Any = None) -> Transform:
    """
    Compile a projection into a transform ``document -> document``.

    Raises:
        InvalidProjectionError: unsupported projection type or entry
    """
    if projection is None:
        return _identity

    if callable(projection):
        return projection

    if not isinstance(projection, Mapping):
        raise InvalidProjectionError(projection)

    if not projection:
        return _identity

    keep: List[Tuple[str, str, Callable]] = []
    drop: List[str] = []
    for field, spec in projection.items():
        if not isinstance(field, str):
            raise InvalidProjectionError(projection, f"invalid projection field: {field!r}")
        mode, getter = _compile_entry(field, spec, projection)
        if mode == "exclude":
            drop.append(field)
        else:
            keep.append((field, mode, getter))

    if keep and drop:
        raise InvalidProjectionError(
            projection, "projection can't mix included and excluded fields"
        )

    if drop:
        def exclude(document: Document) -> Document:
            out = deepcopy(document)
            for field in drop:
                out.pop(field, None)
            return out

        return exclude

    def include(document: Document) -> Document:
        out: Document = {}
        for field, mode, getter in keep:
            if mode == "include":
                if field in document:
                    out[field] = deepcopy(document[field])
            else:
                out[field] = deepcopy(getter(document))
        return out

    return include
