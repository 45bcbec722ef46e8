"""Domain-level exception hierarchy.

Purpose
-------
Expose the stable error taxonomy shared by adapters, the composition root, the
typed extractor, and consuming applications. The hierarchy lives in the domain
layer so outer layers may depend on it without creating cycles.

Contents
--------
* :class:`ConfigError` – umbrella base class for all configuration issues.
* :class:`FormatError` – a format adapter could not parse its input.
* :class:`SourceLoadError` – a source failed to materialise (wraps adapters).
* :class:`NotFound` – soft absence of a file or a path.
* :class:`WriteError` / :class:`DirectoryCreateError` – a default document
  could not be materialised on disk.
* :class:`PathSyntaxError` / :class:`PathTypeConflict` – path resolver errors.
* :class:`ExtractError` and its family (:class:`TypeMismatch`,
  :class:`MissingField`, :class:`UnknownField`, :class:`PathNotFound`,
  :class:`ExpansionError`) – typed extraction failures carrying the dotted
  path of the offending node.

System Role
-----------
The merge engine never raises. Everything that can go wrong happens either
while a source is loaded (``FormatError`` / ``SourceLoadError``) or when a
caller reads from the tree (path and extraction errors). Seeding a default
file adds ``WriteError``. Callers catch
:class:`ConfigError` to handle all library failures uniformly.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .path import ConfigPath, Segment
    from .sources import SourceDescriptor


class ConfigError(Exception):
    """Base type for all exceptions emitted by ``lib_config_tree``.

    Why
    ----
    Provide a single catch-all type for consumers that do not need fine-grained
    handling.
    """


class FormatError(ConfigError):
    """Raised when a format adapter cannot turn raw bytes into a value tree.

    Typical Sources
    ---------------
    :mod:`tomllib`, :mod:`json`, and :mod:`yaml` decode failures, undecodable
    bytes, and parser output that has no counterpart in the value model.
    """


class SourceLoadError(ConfigError):
    """Raised when a configuration source cannot be materialised.

    Why
    ----
    Adapter failures are opaque on their own; wrapping them with the source
    descriptor tells operators *which* file or source was broken.

    Attributes
    ----------
    source:
        Descriptor of the failing source.
    """

    def __init__(self, message: str, *, source: SourceDescriptor) -> None:
        super().__init__(message)
        self.source = source


class NotFound(ConfigError):
    """Represents missing-but-optional resources (files, tree nodes).

    Why
    ----
    Absence is a normal, queryable state. Callers may treat it as "use the
    default" instead of propagating it.
    """


class WriteError(ConfigError):
    """Raised when a default document cannot be written to disk.

    Attributes
    ----------
    path:
        File that was being written.
    """

    def __init__(self, message: str, *, path: str) -> None:
        super().__init__(message)
        self.path = path


class DirectoryCreateError(WriteError):
    """Raised when the parent directories of a default document cannot be created."""


class PathSyntaxError(ConfigError):
    """Raised for malformed dotted path text (bad brackets, empty segments)."""


class PathTypeConflict(ConfigError):
    """Raised when a write would have to descend through a leaf.

    Also raised when an array index lies beyond the end of the array being
    written.
    """


class ExtractError(ConfigError):
    """Base class for typed extraction failures.

    Why
    ----
    A deeply nested failure is only useful when it names the node at fault.
    Each error carries a :class:`~lib_config_tree.domain.path.ConfigPath` that
    the extractor extends with :meth:`prepend` while the recursion unwinds, so
    the final message reads ``server.hosts[2].port: expected integer, found
    string``.

    Attributes
    ----------
    path:
        Location of the failure relative to the extraction root (absolute
        once the extractor has finished unwinding).
    detail:
        Human readable description without the path prefix.
    """

    def __init__(self, detail: str, *, path: ConfigPath | None = None) -> None:
        from .path import ROOT

        super().__init__(detail)
        self.detail = detail
        self.path = path if path is not None else ROOT

    def prepend(self, *segments: Segment) -> ExtractError:
        """Prefix the stored path with *segments* and return ``self`` for re-raising."""

        self.path = self.path.prefixed(segments)
        return self

    def __str__(self) -> str:
        return f"{self.path.display()}: {self.detail}"


class TypeMismatch(ExtractError):
    """The value kind does not fit the requested target type."""

    def __init__(self, *, expected: str, found: str, path: ConfigPath | None = None) -> None:
        super().__init__(f"expected {expected}, found {found}", path=path)
        self.expected = expected
        self.found = found


class MissingField(ExtractError):
    """A required record field has no value in the table at :attr:`path`."""

    def __init__(self, field: str, *, path: ConfigPath | None = None) -> None:
        super().__init__(f"missing field {field!r}", path=path)
        self.field = field


class UnknownField(ExtractError):
    """Strict extraction met a key the target record does not declare."""

    def __init__(self, field: str, *, path: ConfigPath | None = None) -> None:
        super().__init__(f"unknown field {field!r}", path=path)
        self.field = field


class PathNotFound(NotFound, ExtractError):
    """The requested path does not resolve and the target has no default."""

    def __init__(self, *, path: ConfigPath | None = None) -> None:
        super().__init__("not found", path=path)


class ExpansionError(ExtractError):
    """Strict expansion met a ``$NAME`` token whose variable is unset."""

    def __init__(self, name: str, *, path: ConfigPath | None = None) -> None:
        super().__init__(f"environment variable {name!r} is not set", path=path)
        self.name = name
