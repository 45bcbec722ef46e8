"""Source descriptors.

Purpose
-------
Describe *where* a partial configuration tree comes from without doing any
I/O. The composition root (:mod:`lib_config_tree.core`) hands each source to
the matching adapter, merges the results in registration order, and keeps
only the lightweight :class:`SourceDescriptor` for diagnostics.

Contents
--------
* :class:`SourceDescriptor` – kind/name/path triple retained by ``Config``.
* :class:`FileSource` – a structured document on disk.
* :class:`EnvironmentSource` – prefixed process environment variables.
* :class:`DefaultsSource` – a literal tree supplied by the caller.
* :class:`TextSource` – a structured document embedded as text (typically a
  module-level default configuration constant).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union


@dataclass(frozen=True, slots=True)
class SourceDescriptor:
    """Diagnostic summary of an applied source.

    Attributes
    ----------
    kind:
        ``"file"``, ``"env"``, ``"defaults"`` or ``"text"``; doubles as the
        provenance layer name.
    name:
        Human readable identifier (file path, environment prefix, label).
    path:
        Filesystem path for file sources, ``None`` otherwise.
    """

    kind: str
    name: str
    path: str | None = None

    def __str__(self) -> str:
        return f"{self.kind}:{self.name}"


@dataclass(frozen=True, slots=True)
class FileSource:
    """Structured configuration file.

    ``format`` names a registered format (``"toml"``, ``"yaml"``, ``"json"``);
    when omitted the format is sniffed from the file suffix. Missing files
    raise :class:`~lib_config_tree.domain.errors.NotFound` unless ``optional``
    is set, in which case the source is skipped.
    """

    path: str | Path
    format: str | None = None
    optional: bool = False

    @property
    def descriptor(self) -> SourceDescriptor:
        return SourceDescriptor(kind="file", name=str(self.path), path=str(self.path))


@dataclass(frozen=True, slots=True)
class EnvironmentSource:
    """Environment variables named ``PREFIX<separator>...``.

    ``PREFIX_SERVER_PORT=9090`` with the default separator contributes
    ``{"server": {"port": 9090}}``.
    """

    prefix: str
    separator: str = "_"

    @property
    def descriptor(self) -> SourceDescriptor:
        return SourceDescriptor(kind="env", name=self.prefix)


@dataclass(frozen=True, slots=True)
class DefaultsSource:
    """Literal defaults supplied programmatically."""

    value: Any = field(default_factory=dict)
    name: str = "defaults"

    @property
    def descriptor(self) -> SourceDescriptor:
        return SourceDescriptor(kind="defaults", name=self.name)


@dataclass(frozen=True, slots=True)
class TextSource:
    """Structured document held in memory, parsed with the named ``format``."""

    text: str
    format: str
    name: str = "<text>"

    @property
    def descriptor(self) -> SourceDescriptor:
        return SourceDescriptor(kind="text", name=self.name)


Source = Union[FileSource, EnvironmentSource, DefaultsSource, TextSource]
"""Any source accepted by :func:`lib_config_tree.core.build_config`."""
