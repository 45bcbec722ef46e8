"""Configuration file adapter.

Purpose
-------
Read a structured document from disk and hand its bytes to the matching
format adapter. The format is either declared by the caller or sniffed from
the file suffix.

Contents
--------
* :func:`read_source_file` – read, parse, and validate one file.
* :func:`load_or_write_default` – seed a missing file with a default document
  before loading it.
* :class:`ConfigLoad` – outcome reported by :func:`load_or_write_default`.

System Role
-----------
Invoked by :func:`lib_config_tree.core.load_source` for
:class:`~lib_config_tree.domain.sources.FileSource`. Absent files raise
:class:`~lib_config_tree.domain.errors.NotFound` so the composition root can
decide whether they matter.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from ...domain.errors import DirectoryCreateError, FormatError, NotFound, WriteError
from ...observability import log_debug, log_error
from ..formats.structured import FormatRegistry


class ConfigLoad(Enum):
    """How :func:`load_or_write_default` obtained its document."""

    LOADED = "loaded"
    DEFAULT_WRITTEN = "default_written"


def read_source_file(path: str | Path, registry: FormatRegistry, *, format: str | None = None) -> dict[str, Any]:
    """Return the table stored in the file at *path*.

    Parameters
    ----------
    path:
        File to read.
    registry:
        Available format adapters.
    format:
        Declared format name; sniffed from the suffix when ``None``.

    Raises
    ------
    NotFound
        When *path* is not a file.
    FormatError
        When the format is unknown, the content is malformed, or the document
        root is not a table.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> from lib_config_tree.adapters.formats.structured import default_registry
    >>> tmp = TemporaryDirectory()
    >>> target = Path(tmp.name) / "app.json"
    >>> _ = target.write_text('{"debug": false}', encoding="utf-8")
    >>> read_source_file(target, default_registry())
    {'debug': False}
    >>> tmp.cleanup()
    """

    file_path = Path(path)
    adapter = registry.get(format) if format else registry.for_path(file_path)
    if not file_path.is_file():
        raise NotFound(f"Configuration file not found: {file_path}")
    payload = file_path.read_bytes()
    log_debug("config_file_read", layer="file", path=str(file_path), size=len(payload), format=adapter.name)
    document = adapter.parse(payload)
    if not isinstance(document, dict):
        raise FormatError(f"File {file_path} did not produce a table")
    return document


def load_or_write_default(
    path: str | Path,
    default_text: str,
    registry: FormatRegistry,
    *,
    format: str | None = None,
) -> tuple[ConfigLoad, dict[str, Any]]:
    """Load *path*, first writing *default_text* there when the file is missing.

    Why
    ----
    Applications commonly ship an embedded default document and want it
    materialised on first run so users have a file to edit.

    What
    ----
    Validates *default_text* before touching the filesystem, creates parent
    directories, writes the document, then loads it like any other file.
    Existing files are never overwritten.

    Returns
    -------
    tuple[ConfigLoad, dict[str, Any]]
        The outcome and the loaded table.

    Raises
    ------
    FormatError
        When *default_text* does not parse to a table.
    DirectoryCreateError
        When the parent directories cannot be created.
    WriteError
        When the document cannot be written.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> from lib_config_tree.adapters.formats.structured import default_registry
    >>> tmp = TemporaryDirectory()
    >>> target = Path(tmp.name) / "demo" / "config.json"
    >>> load_or_write_default(target, '{"level": 1}', default_registry())
    (<ConfigLoad.DEFAULT_WRITTEN: 'default_written'>, {'level': 1})
    >>> load_or_write_default(target, '{"level": 2}', default_registry())[0]
    <ConfigLoad.LOADED: 'loaded'>
    >>> tmp.cleanup()
    """

    file_path = Path(path)
    if file_path.is_file():
        return ConfigLoad.LOADED, read_source_file(file_path, registry, format=format)

    adapter = registry.get(format) if format else registry.for_path(file_path)
    payload = default_text.encode("utf-8")
    if not isinstance(adapter.parse(payload), dict):
        raise FormatError(f"Default document for {file_path} did not produce a table")
    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        log_error("default_write_failed", layer="file", path=str(file_path), error=str(exc))
        raise DirectoryCreateError(
            f"Cannot create directory {file_path.parent}: {exc}", path=str(file_path)
        ) from exc
    try:
        file_path.write_bytes(payload)
    except OSError as exc:
        log_error("default_write_failed", layer="file", path=str(file_path), error=str(exc))
        raise WriteError(f"Cannot write default document {file_path}: {exc}", path=str(file_path)) from exc
    log_debug("default_written", layer="file", path=str(file_path), size=len(payload))
    return ConfigLoad.DEFAULT_WRITTEN, read_source_file(file_path, registry, format=format)
