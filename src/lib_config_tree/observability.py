"""Structured logging for configuration assembly.

Every record the library emits goes through the ``lib_config_tree`` logger,
which carries a ``NullHandler`` so nothing is printed until the host
application configures logging. Records are named by an event string
(``source_loaded``, ``configuration_merged``, ...) and carry their details
in ``record.context``:

``trace_id``
    Identifier bound with :func:`bind_trace_id`, ``None`` when unbound.
``layer``
    Source kind or subsystem (``file``, ``env``, ``format``, ``merge``...).
``path``
    Filesystem path involved, ``None`` for in-memory sources.

plus event-specific fields.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any, Final, Mapping

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .domain.sources import SourceDescriptor

TRACE_ID: ContextVar[str | None] = ContextVar("lib_config_tree_trace_id", default=None)

_LOGGER: Final[logging.Logger] = logging.getLogger("lib_config_tree")
_LOGGER.addHandler(logging.NullHandler())


def get_logger() -> logging.Logger:
    """Return the package logger so applications can attach handlers."""

    return _LOGGER


def bind_trace_id(trace_id: str | None) -> None:
    """Correlate subsequent records with *trace_id*; ``None`` unbinds.

    >>> bind_trace_id('build-42')
    >>> TRACE_ID.get()
    'build-42'
    >>> bind_trace_id(None)
    """

    TRACE_ID.set(trace_id)


def log_debug(event: str, **fields: Any) -> None:
    """Record *event* at debug level; *fields* land in ``record.context``."""

    _log(logging.DEBUG, event, fields)


def log_info(event: str, **fields: Any) -> None:
    """Record *event* at info level, used for per-build summaries."""

    _log(logging.INFO, event, fields)


def log_error(event: str, **fields: Any) -> None:
    """Record *event* at error level, just before the matching exception is raised."""

    _log(logging.ERROR, event, fields)


def make_event(layer: str, path: str | None, payload: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Return the ``layer``/``path`` fields followed by *payload*.

    >>> make_event('merge', None, {'sources': 2})
    {'layer': 'merge', 'path': None, 'sources': 2}
    """

    return {"layer": layer, "path": path, **(payload or {})}


def source_event(descriptor: SourceDescriptor, payload: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Return the fields describing *descriptor*, ready to unpack into ``log_*``.

    >>> from lib_config_tree.domain.sources import SourceDescriptor
    >>> source_event(SourceDescriptor(kind="env", name="APP"), {"keys": 2})
    {'layer': 'env', 'path': None, 'source': 'APP', 'keys': 2}
    """

    return make_event(descriptor.kind, descriptor.path, {"source": descriptor.name, **(payload or {})})


def _log(level: int, event: str, fields: Mapping[str, Any]) -> None:
    if not _LOGGER.isEnabledFor(level):
        return
    _LOGGER.log(level, event, extra={"context": {"trace_id": TRACE_ID.get(), **fields}})
