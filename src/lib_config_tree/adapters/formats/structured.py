"""Structured format adapters and their registry.

Purpose
-------
Convert raw bytes into value trees. Adapters are small wrappers around
``tomllib``/``json``/``yaml.safe_load`` so error handling, normalisation, and
observability live in one place.

Contents
--------
* :class:`TOMLFormat` – the canonical TOML format.
* :class:`JSONFormat` – minimal JSON adapter.
* :class:`YAMLFormat` – YAML adapter (requires PyYAML).
* :class:`FormatRegistry` – name and suffix lookup of available adapters.
* :func:`default_registry` – assemble the registry for a set of
  :class:`~lib_config_tree.domain.config.Features`.

System Role
-----------
Which formats exist is decided when the registry is assembled; the merge
engine and the extractor never branch on a format.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

try:  # Python >= 3.11
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for <3.11
    import tomli as tomllib  # type: ignore[no-redef]

from ...application.ports import FormatAdapter
from ...domain.config import Features
from ...domain.errors import FormatError
from ...domain.value import to_value
from ...observability import log_debug, log_error

try:
    import yaml  # type: ignore[import-untyped]
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    yaml = None  # type: ignore[assignment]


class TOMLFormat:
    """Parse TOML documents using the standard library parser.

    Examples
    --------
    >>> TOMLFormat().parse(b'[server]\\nport = 8080')
    {'server': {'port': 8080}}
    """

    name = "toml"
    suffixes = (".toml",)

    def parse(self, data: bytes) -> Any:
        try:
            document = tomllib.loads(data.decode("utf-8"))
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
            log_error("format_invalid", layer="format", path=None, format=self.name, error=str(exc))
            raise FormatError(f"Invalid TOML: {exc}") from exc
        return to_value(document)


class JSONFormat:
    """Parse JSON documents.

    Examples
    --------
    >>> JSONFormat().parse(b'{"enabled": true}')
    {'enabled': True}
    """

    name = "json"
    suffixes = (".json",)

    def parse(self, data: bytes) -> Any:
        try:
            document = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            log_error("format_invalid", layer="format", path=None, format=self.name, error=str(exc))
            raise FormatError(f"Invalid JSON: {exc}") from exc
        return to_value(document)


class YAMLFormat:
    """Parse YAML documents; an empty document is an empty table.

    Examples
    --------
    >>> YAMLFormat().parse(b'tags: [a, b]')  # doctest: +SKIP
    {'tags': ['a', 'b']}
    """

    name = "yaml"
    suffixes = (".yaml", ".yml")

    def parse(self, data: bytes) -> Any:
        if yaml is None:
            raise FormatError("PyYAML is required for YAML configuration support")
        try:
            document = yaml.safe_load(data)
        except yaml.YAMLError as exc:
            log_error("format_invalid", layer="format", path=None, format=self.name, error=str(exc))
            raise FormatError(f"Invalid YAML: {exc}") from exc
        return {} if document is None else to_value(document)


class FormatRegistry:
    """Look up format adapters by name or by file suffix.

    Examples
    --------
    >>> registry = FormatRegistry()
    >>> registry.register(JSONFormat(), suffixes=(".json",))
    >>> registry.get("json").name
    'json'
    >>> registry.for_path("settings.JSON").name
    'json'
    >>> registry.get("ini")
    Traceback (most recent call last):
    ...
    lib_config_tree.domain.errors.FormatError: Unsupported configuration format 'ini' (available: json)
    """

    def __init__(self) -> None:
        self._by_name: dict[str, FormatAdapter] = {}
        self._by_suffix: dict[str, str] = {}

    def register(self, adapter: FormatAdapter, *, suffixes: Iterable[str] = ()) -> None:
        """Make *adapter* available under its name and each of *suffixes*."""

        name = adapter.name.lower()
        self._by_name[name] = adapter
        for suffix in suffixes:
            self._by_suffix[_normalise_suffix(suffix)] = name

    def names(self) -> tuple[str, ...]:
        return tuple(sorted(self._by_name))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._by_name

    def get(self, name: str) -> FormatAdapter:
        """Return the adapter registered as *name*.

        Raises
        ------
        FormatError
            When no adapter of that name is registered.
        """

        try:
            return self._by_name[name.lower()]
        except KeyError as exc:
            available = ", ".join(self.names()) or "none"
            raise FormatError(f"Unsupported configuration format {name!r} (available: {available})") from exc

    def for_path(self, path: str | Path) -> FormatAdapter:
        """Return the adapter matching the suffix of *path*."""

        suffix = Path(path).suffix.lower()
        name = self._by_suffix.get(suffix)
        if name is None:
            raise FormatError(f"Cannot determine configuration format of {path} from suffix {suffix!r}")
        return self._by_name[name]


def default_registry(features: Features | None = None) -> FormatRegistry:
    """Assemble the registry matching *features*.

    JSON is always registered; TOML and YAML follow the feature flags, YAML
    additionally requires PyYAML to be importable.

    Examples
    --------
    >>> from lib_config_tree.domain.config import Features
    >>> default_registry(Features(toml=False, yaml=False)).names()
    ('json',)
    """

    features = features or Features()
    registry = FormatRegistry()
    adapters: list[Any] = [JSONFormat()]
    if features.toml:
        adapters.append(TOMLFormat())
    if features.yaml and yaml is not None:
        adapters.append(YAMLFormat())
    for adapter in adapters:
        registry.register(adapter, suffixes=adapter.suffixes)
    log_debug("formats_registered", layer="format", path=None, formats=list(registry.names()))
    return registry


def _normalise_suffix(suffix: str) -> str:
    lowered = suffix.lower()
    return lowered if lowered.startswith(".") else f".{lowered}"
