"""Domain-level configuration value objects.

Purpose
-------
Anchor the immutable :class:`Config` snapshot that carries the merged tree,
its provenance, and the descriptors of the sources that produced it. This
module contains no I/O.

Contents
--------
* :class:`SourceInfo` – typed metadata describing where a key came from.
* :class:`Features` – runtime capability flags (formats, path expansion).
* :class:`Config` – ``Mapping`` implementation exposing dotted-path queries,
  typed extraction, provenance lookups, and functional updates.
* :data:`EMPTY_CONFIG` – canonical empty instance.

System Role
-----------
Every call to :func:`lib_config_tree.core.build_config` ends in a
:class:`Config`. Readers may share one instance freely: the tree is wrapped
in read-only proxies and every query hands out a deep copy, so nothing a
caller does can change what the next reader sees. Updates such as
:meth:`Config.with_overrides` return new snapshots.
"""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterator, TypedDict, TypeVar, overload

from .path import MISSING, ConfigPath, as_path, contains_path, format_path, get_path, set_path
from .sources import SourceDescriptor
from .value import clone_value, to_value


class SourceInfo(TypedDict):
    """Describe the origin of a resolved configuration key.

    Attributes
    ----------
    layer:
        Kind of the winning source (``"file"``, ``"env"``, ``"defaults"``,
        ``"text"``, or ``"override"`` for functional updates).
    path:
        Filesystem path that produced the key, ``None`` for in-memory sources.
    key:
        Fully qualified dotted key (for example ``"service.timeout"``).
    """

    layer: str
    path: str | None
    key: str


@dataclass(frozen=True, slots=True)
class Features:
    """Capability flags fixed when the configuration stack is assembled.

    Attributes
    ----------
    toml / yaml:
        Whether the TOML and YAML format adapters are registered. JSON is
        always available.
    expansion:
        Whether string leaves read through :meth:`Config.extract` have ``~``
        and ``$NAME`` tokens expanded.
    """

    toml: bool = True
    yaml: bool = True
    expansion: bool = True


T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Config(MappingABC[str, Any]):
    """Immutable mapping returned to library consumers.

    Why
    ----
    Callers require a read-only structure that behaves like a dictionary yet
    offers dotted-path queries, typed extraction, and provenance insight.

    Parameters
    ----------
    _data:
        Merged value tree (a table).
    _meta:
        Mapping from dotted keys to :class:`SourceInfo`.
    _sources:
        Descriptors of the applied sources, lowest precedence first.
    _features:
        Capability flags in force when the snapshot was built.

    Examples
    --------
    >>> cfg = Config(
    ...     {"service": {"timeout": 30, "hosts": ["a", "b"]}},
    ...     {"service.timeout": {"layer": "file", "path": "/etc/demo.toml", "key": "service.timeout"}},
    ... )
    >>> cfg.get("service.timeout")
    30
    >>> cfg.get_path("service.hosts[1]")
    'b'
    >>> cfg.extract("service.timeout", int)
    30
    >>> cfg.with_overrides({"service": {"timeout": 60}}).get("service.timeout")
    60
    """

    _data: Mapping[str, Any]
    _meta: Mapping[str, SourceInfo]
    _sources: tuple[SourceDescriptor, ...] = ()
    _features: Features = field(default_factory=Features)

    def __post_init__(self) -> None:
        """Copy the incoming mappings into read-only proxies."""

        object.__setattr__(self, "_data", MappingProxyType(clone_value(self._data)))
        object.__setattr__(self, "_meta", MappingProxyType(dict(self._meta)))
        object.__setattr__(self, "_sources", tuple(self._sources))

    def __getitem__(self, key: str) -> Any:
        """Return a copy of the top-level value stored under *key*.

        Examples
        --------
        >>> Config({"feature": True}, {})["feature"]
        True
        """

        return clone_value(self._data[key])

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    @property
    def sources(self) -> tuple[SourceDescriptor, ...]:
        """Descriptors of the merged sources, lowest precedence first."""

        return self._sources

    @property
    def features(self) -> Features:
        return self._features

    @property
    def provenance(self) -> dict[str, SourceInfo]:
        """Copy of the dotted-key provenance map."""

        return dict(self._meta)

    def as_dict(self) -> dict[str, Any]:
        """Construct a deep (mutable) ``dict`` copy of the configuration tree.

        Examples
        --------
        >>> cfg = Config({"service": {"timeout": 5}}, {})
        >>> clone = cfg.as_dict()
        >>> clone["service"]["timeout"] = 10
        >>> cfg.get("service.timeout")
        5
        """

        return clone_value(self._data)

    def to_json(self, *, indent: int | None = None) -> str:
        """Serialise the configuration to JSON.

        Examples
        --------
        >>> Config({"service": {"timeout": 5}}, {}).to_json()
        '{"service":{"timeout":5}}'
        """

        import json

        return json.dumps(self.as_dict(), indent=indent, separators=(",", ":"), ensure_ascii=False)

    @overload
    def get(self, key: str, *, default: T) -> Any | T:  # type: ignore[override]
        ...

    @overload
    def get(self, key: str, *, default: None = ...) -> Any | None:  # type: ignore[override]
        ...

    def get(self, key: str, *, default: Any = None) -> Any:
        """Resolve *key* as a dotted path and return ``default`` when missing.

        Raises
        ------
        PathSyntaxError
            When *key* is not a valid path.

        Examples
        --------
        >>> cfg = Config({"service": {"timeout": 5}}, {})
        >>> cfg.get("missing.path", default="fallback")
        'fallback'
        """

        found = get_path(self._data, key)
        return default if found is MISSING else clone_value(found)

    def get_path(self, text: str | ConfigPath) -> Any | None:
        """Return a copy of the node at *text* or ``None`` when absent.

        A stored null also reads as ``None``; use :meth:`contains` to tell
        the two apart.
        """

        found = get_path(self._data, text)
        return None if found is MISSING else clone_value(found)

    def contains(self, text: str | ConfigPath) -> bool:
        """Return ``True`` when *text* resolves, including to a null leaf.

        Examples
        --------
        >>> cfg = Config({"a": None}, {})
        >>> cfg.contains("a"), cfg.contains("b")
        (True, False)
        """

        return contains_path(self._data, text)

    def extract(
        self,
        text: str | ConfigPath,
        target: Any,
        *,
        strict: bool = False,
        default: Any = MISSING,
        environ: Mapping[str, str] | None = None,
        strict_expansion: bool = False,
    ) -> Any:
        """Deserialise the node at *text* into *target*.

        Delegates to :func:`lib_config_tree.application.extract.extract`,
        enabling path expansion when :attr:`Features.expansion` is set.
        *environ* replaces :data:`os.environ` for expansion lookups. An empty
        *text* extracts the whole tree.

        Examples
        --------
        >>> Config({"port": 8080}, {}).extract("port", float)
        8080.0
        >>> Config({"port": 8080}, {}).extract("", dict[str, int])
        {'port': 8080}
        """

        from ..application.extract import Extractor

        extractor = Extractor(
            strict=strict,
            expand=self._features.expansion,
            environ=environ,
            strict_expansion=strict_expansion,
        )
        return extractor.extract_path(self.as_dict(), text, target, default=default)

    def origin(self, key: str) -> SourceInfo | None:
        """Return provenance for *key* or ``None`` when no source produced it.

        Arrays are atomic, so provenance is recorded for the array as a whole.

        Examples
        --------
        >>> cfg = Config({"feature": True}, {"feature": {"layer": "env", "path": None, "key": "feature"}})
        >>> cfg.origin("feature")
        {'layer': 'env', 'path': None, 'key': 'feature'}
        >>> cfg.origin("missing") is None
        True
        """

        return self._meta.get(format_path(as_path(key)))

    def with_overrides(self, overrides: Mapping[str, Any]) -> Config:
        """Return a new snapshot with *overrides* merged on top.

        The overrides go through the regular merge engine: tables merge,
        everything else replaces.

        Examples
        --------
        >>> base = Config({"db": {"host": "a", "port": 1}}, {})
        >>> base.with_overrides({"db": {"port": 2}}).as_dict()
        {'db': {'host': 'a', 'port': 2}}
        >>> base.get("db.port")
        1
        """

        from ..application.merge import merge_layers

        data, meta = merge_layers(
            [("override", to_value(overrides), None)],
            base=self._data,
            base_meta=self._meta,
        )
        return Config(data, meta, self._sources, self._features)

    def with_value(self, key: str | ConfigPath, value: Any) -> Config:
        """Return a new snapshot with *value* stored at *key*.

        Raises
        ------
        PathTypeConflict
            When *key* would descend through a leaf.

        Examples
        --------
        >>> Config({}, {}).with_value("server.port", 9090).as_dict()
        {'server': {'port': 9090}}
        """

        path = as_path(key)
        data = clone_value(self._data)
        set_path(data, path, to_value(value))
        dotted = format_path(path)
        meta = {
            name: info
            for name, info in self._meta.items()
            if not _is_within(name, dotted) and not _is_within(dotted, name)
        }
        meta[dotted] = SourceInfo(layer="override", path=None, key=dotted)
        return Config(data, meta, self._sources, self._features)


def _is_within(key: str, prefix: str) -> bool:
    """Return ``True`` when dotted *key* equals *prefix* or lies beneath it."""

    return key == prefix or key.startswith(prefix + ".") or key.startswith(prefix + "[")


#: Shared empty configuration with no sources and default features.
EMPTY_CONFIG = Config({}, {})
"""Canonical empty snapshot, a starting point for :func:`lib_config_tree.core.extend_config`."""
