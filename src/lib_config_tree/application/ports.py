"""Application-layer ports describing adapter and target responsibilities.

Purpose
-------
Define the structural contracts that adapters and extraction targets must
satisfy so the composition root and the extractor can work against
abstractions instead of concrete implementations.

Contents
--------
* :class:`FormatAdapter` – turns raw bytes of one format into a value tree.
* :class:`EnvLoader` – materialises prefixed environment variables.
* :class:`ValueDecodable` – capability of a type to build itself from a value.

System Role
-----------
These protocols enforce Dependency Inversion. Which format adapters exist is
decided when the registry is assembled; the merge and extraction logic never
branches on a concrete format.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .extract import Extractor


@runtime_checkable
class FormatAdapter(Protocol):
    """Parse one serialisation format into a value tree.

    Why
    ----
    Segregate parsing concerns (TOML/JSON/YAML) from orchestration logic.
    """

    name: str

    def parse(self, data: bytes) -> Any:
        """Return the value tree encoded in *data* or raise ``FormatError``."""


@runtime_checkable
class EnvLoader(Protocol):
    """Translate environment variables into a nested table.

    Why
    ----
    Allow environment configuration to join the merge with predictable
    namespacing.
    """

    def load(self, prefix: str, separator: str = "_") -> dict[str, Any]:
        """Return variables named ``prefix<separator>...`` as a nested table."""


@runtime_checkable
class ValueDecodable(Protocol):
    """Capability to construct an instance from a configuration value.

    Why
    ----
    Extraction targets are open-ended. Any class providing ``from_value``
    becomes a valid target without the extractor knowing about it.

    What
    ----
    ``from_value`` receives the raw value and the active extractor. Nested
    values should be converted through ``extractor.extract_child`` so errors
    report their full path.
    """

    @classmethod
    def from_value(cls, value: Any, extractor: Extractor) -> Any:
        """Return an instance built from *value*."""
