"""Configuration value model.

Purpose
-------
Define the common intermediate representation every source adapter produces
and every reader consumes. A value tree is built from plain Python objects so
it stays cheap to copy, compare, and serialise:

========  =======================
Kind      Python representation
========  =======================
null      ``None``
boolean   ``bool``
integer   ``int``
float     ``float``
string    ``str``
array     ``list`` of values
table     ``dict`` of ``str`` to values
========  =======================

Contents
--------
* :class:`ValueKind` – enumeration of the kinds above.
* :func:`kind_of` – report the kind of a value.
* :func:`values_equal` – structural, kind-aware equality.
* :func:`to_value` – normalise parser output into the model.
* :func:`clone_value` – deep copy of a value tree.

System Role
-----------
The model carries no coercion rules. Coercion belongs to the typed extractor;
the merge engine and path resolver only look at kinds.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Union

from .errors import FormatError

Value = Union[None, bool, int, float, str, list, dict]
"""Type alias for any node of a configuration tree."""

Table = dict
"""Type alias for table nodes (``dict[str, Value]``)."""


class ValueKind(str, Enum):
    """Kinds a configuration node can take; values double as display names."""

    NULL = "null"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    ARRAY = "array"
    TABLE = "table"


def kind_of(value: Any) -> ValueKind:
    """Return the :class:`ValueKind` of *value*.

    ``bool`` is checked before ``int`` because Python treats booleans as
    integers.

    Examples
    --------
    >>> kind_of(True).value, kind_of(3).value, kind_of({}).value
    ('boolean', 'integer', 'table')
    """

    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, int):
        return ValueKind.INTEGER
    if isinstance(value, float):
        return ValueKind.FLOAT
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, list):
        return ValueKind.ARRAY
    if isinstance(value, dict):
        return ValueKind.TABLE
    raise TypeError(f"{type(value).__name__} is not a configuration value")


def is_table(value: Any) -> bool:
    """Return ``True`` when *value* is a table node."""

    return isinstance(value, dict)


def values_equal(left: Any, right: Any) -> bool:
    """Compare two value trees structurally, taking kinds into account.

    Python's ``==`` treats ``1``, ``1.0`` and ``True`` as equal; configuration
    values of different kinds never are.

    Examples
    --------
    >>> values_equal({"a": [1, 2]}, {"a": [1, 2]})
    True
    >>> values_equal(1, 1.0), values_equal(True, 1)
    (False, False)
    """

    kind = kind_of(left)
    if kind is not kind_of(right):
        return False
    if kind is ValueKind.TABLE:
        if left.keys() != right.keys():
            return False
        return all(values_equal(left[key], right[key]) for key in left)
    if kind is ValueKind.ARRAY:
        if len(left) != len(right):
            return False
        return all(values_equal(a, b) for a, b in zip(left, right))
    if kind is ValueKind.FLOAT and left != left and right != right:
        return True  # NaN is structurally equal to itself
    return left == right


def to_value(obj: Any) -> Any:
    """Normalise *obj* (typically parser output) into a fresh value tree.

    Why
    ----
    Parsers hand back richer shapes than the model admits: tuples, mapping
    proxies, TOML datetimes, YAML integer keys. Normalising once at the
    adapter boundary keeps the merge engine and extractor simple.

    What
    ----
    Mappings become ``dict`` with ``str`` keys, lists and tuples become
    ``list``, dates and times become ISO 8601 strings. The result never
    shares containers with *obj*.

    Raises
    ------
    FormatError
        When *obj* contains something with no counterpart in the model.

    Examples
    --------
    >>> to_value({"ports": (80, 443), 1: None})
    {'ports': [80, 443], '1': None}
    >>> from datetime import date
    >>> to_value({"since": date(2024, 1, 2)})
    {'since': '2024-01-02'}
    """

    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, Mapping):
        return {_table_key(key): to_value(item) for key, item in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_value(item) for item in obj]
    if isinstance(obj, (datetime, date, time)):
        return obj.isoformat()
    raise FormatError(f"Unsupported configuration value of type {type(obj).__name__}")


def clone_value(value: Any) -> Any:
    """Return a deep copy of *value* that shares no containers with it.

    Examples
    --------
    >>> tree = {"a": {"b": [1]}}
    >>> copy = clone_value(tree)
    >>> copy["a"]["b"].append(2)
    >>> tree
    {'a': {'b': [1]}}
    """

    if isinstance(value, Mapping):
        return {key: clone_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [clone_value(item) for item in value]
    return value


def _table_key(key: Any) -> str:
    """Render a parser-supplied mapping key as a table key."""

    if isinstance(key, str):
        return key
    if key is None:
        return "null"
    if isinstance(key, bool):
        return "true" if key else "false"
    if isinstance(key, (int, float)):
        return str(key)
    if isinstance(key, (datetime, date, time)):
        return key.isoformat()
    raise FormatError(f"Unsupported table key of type {type(key).__name__}")
