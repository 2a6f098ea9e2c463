"""
Compilers for the query and update operator language.

Each compiler accepts either a declarative mapping or a function and
returns a plain function, raising a CompileError subclass for anything else.
"""

from .order import compare_values, order
from .update import OPERATORS, update
from .view import view
from .where import where

__all__ = ["where", "view", "order", "update", "compare_values", "OPERATORS"]
