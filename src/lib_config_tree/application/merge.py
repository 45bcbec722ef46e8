"""Application-layer merge policy.

Purpose
-------
Combine an ordered sequence of value trees into one, and remember which
source supplied each leaf. The module is free of I/O so alternative
composition roots can reuse it.

Contents
    - ``merge``: overlay one tree on another (pure; inputs are not touched).
    - ``merge_values``: left fold of ``merge`` over a sequence.
    - ``merge_into``: in-place variant of ``merge`` for trees the caller owns.
    - ``merge_layers``: the fold used by the composition root, returning the
      merged tree plus provenance.
    - ``_record_provenance`` / ``_set_leaf`` / ``_clear_branch``: helpers that
      narrate how provenance is updated when values change.

Merge Rules
-----------
* table + table: union of keys, shared keys merged recursively.
* array + array: the overlay replaces the base wholesale.
* anything else: the overlay wins, whatever the kinds. A null overlay
  replaces the base value and leaves a null leaf.

Last write wins at the leaf; tables always merge, arrays and scalars never
partially merge. The engine cannot fail: type safety is checked when values
are extracted, not when they are combined.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterable, Sequence

from ..domain.config import SourceInfo
from ..domain.path import MISSING, Segment, format_path
from ..domain.value import clone_value


def merge(base: Any, overlay: Any) -> Any:
    """Return *overlay* laid over *base* as a new tree.

    Examples
    --------
    >>> merge({"server": {"port": 8080, "host": "a"}}, {"server": {"port": 9090}})
    {'server': {'port': 9090, 'host': 'a'}}
    >>> merge({"tags": ["a", "b"]}, {"tags": ["c"]})
    {'tags': ['c']}
    >>> merge({"db": {"host": "a"}}, {"db": None})
    {'db': None}
    """

    if isinstance(base, Mapping) and isinstance(overlay, Mapping):
        result = {key: clone_value(value) for key, value in base.items()}
        for key, value in overlay.items():
            result[key] = merge(base[key], value) if key in base else clone_value(value)
        return result
    return clone_value(overlay)


def merge_values(values: Sequence[Any]) -> Any:
    """Fold *values* left to right with :func:`merge`.

    An empty sequence yields an empty table.

    Examples
    --------
    >>> merge_values([{"a": 1}, {"b": 2}, {"a": 3}])
    {'a': 3, 'b': 2}
    """

    if not values:
        return {}
    result = clone_value(values[0])
    for value in values[1:]:
        result = merge_into(result, clone_value(value))
    return result


def merge_into(base: Any, overlay: Any) -> Any:
    """Lay *overlay* over *base* in place and return the result.

    Same rules as :func:`merge`, but *base* tables are updated instead of
    copied and *overlay* containers are adopted as they are. Callers pass
    trees they own.

    Examples
    --------
    >>> tree = {"server": {"host": "a"}}
    >>> merge_into(tree, {"server": {"port": 1}}) is tree
    True
    >>> tree
    {'server': {'host': 'a', 'port': 1}}
    """

    if isinstance(base, dict) and isinstance(overlay, Mapping):
        for key, value in overlay.items():
            base[key] = merge_into(base[key], value) if key in base else value
        return base
    return overlay


def merge_layers(
    layers: Iterable[tuple[str, Any, str | None]],
    *,
    base: Any = None,
    base_meta: Mapping[str, SourceInfo] | None = None,
) -> tuple[Any, dict[str, SourceInfo]]:
    """Merge configuration *layers* honouring precedence and provenance.

    Why
    ----
    Centralising merge semantics keeps the domain reusable and guarantees
    deterministic precedence regardless of adapter ordering.

    Parameters
    ----------
    layers:
        Iterable of ``(layer_name, tree, source_path)`` tuples ordered from
        lowest to highest precedence.
    base / base_meta:
        Optional tree and provenance to start from (used when an existing
        snapshot is extended); defaults to an empty table.

    Returns
    -------
    tuple[Any, dict[str, SourceInfo]]
        ``(merged_tree, provenance)`` where provenance maps dotted keys to
        ``{"layer", "path", "key"}``.

    Examples
    --------
    >>> merged, meta = merge_layers([
    ...     ("file", {"service": {"timeout": 5, "hosts": ["a"]}}, "app.toml"),
    ...     ("env", {"service": {"timeout": 10}}, None),
    ... ])
    >>> merged["service"]["timeout"], meta["service.timeout"]["layer"]
    (10, 'env')
    >>> meta["service.hosts"]["path"]
    'app.toml'
    """

    merged: Any = clone_value(base) if base is not None else {}
    meta: dict[str, SourceInfo] = dict(base_meta or {})

    for layer_name, data, path in layers:
        _record_provenance(merged, data, meta, layer_name, path, ())
        merged = merge(merged, data)
    return merged, meta


def _record_provenance(
    base: Any,
    overlay: Any,
    meta: dict[str, SourceInfo],
    layer: str,
    path: str | None,
    segments: tuple[Segment, ...],
) -> None:
    """Update *meta* for every leaf that *overlay* writes over *base*."""

    if isinstance(base, Mapping) and isinstance(overlay, Mapping):
        for key, value in overlay.items():
            _record_provenance(base.get(key, MISSING), value, meta, layer, path, (*segments, key))
        return
    dotted = format_path(segments)
    if base is not MISSING:
        _clear_branch(meta, dotted)
    if isinstance(overlay, Mapping) and overlay:
        for key, value in overlay.items():
            _record_provenance(MISSING, value, meta, layer, path, (*segments, key))
        return
    _set_leaf(meta, dotted, layer, path)


def _set_leaf(meta: dict[str, SourceInfo], dotted: str, layer: str, path: str | None) -> None:
    """Record that *layer* supplied the leaf at *dotted*."""

    meta[dotted] = SourceInfo(layer=layer, path=path, key=dotted)


def _clear_branch(meta: dict[str, SourceInfo], prefix: str) -> None:
    """Remove provenance entries that belong to *prefix* or its descendants."""

    if not prefix:
        meta.clear()
        return
    for meta_key in list(meta.keys()):
        if meta_key == prefix or meta_key.startswith(prefix + ".") or meta_key.startswith(prefix + "["):
            meta.pop(meta_key, None)
