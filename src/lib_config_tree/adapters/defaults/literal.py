"""Literal defaults adapter.

Purpose
    Turn a caller-supplied tree (plain dicts, lists, tuples, scalars) into a
    normalised value tree for the merge.

System Integration
    Used by :func:`lib_config_tree.core.load_source` for
    :class:`~lib_config_tree.domain.sources.DefaultsSource`. The caller's
    objects are copied, never retained.
"""

from __future__ import annotations

from typing import Any

from ...domain.value import to_value
from ...observability import log_debug


def load_defaults(value: Any) -> Any:
    """Return a normalised copy of the literal *value*.

    Examples
    --------
    >>> load_defaults({"server": {"ports": (80, 443)}})
    {'server': {'ports': [80, 443]}}
    """

    tree = to_value(value)
    log_debug("defaults_loaded", layer="defaults", path=None)
    return tree
