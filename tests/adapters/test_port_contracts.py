"""Adapter contract tests for the application-layer ports.

Verify the default adapters keep satisfying the protocols declared in
``lib_config_tree.application.ports`` so the composition root can depend on
the protocols alone.
"""

from __future__ import annotations

from typing import Any

from lib_config_tree.adapters.env.default import DefaultEnvLoader
from lib_config_tree.adapters.formats.structured import JSONFormat, TOMLFormat, YAMLFormat, default_registry
from lib_config_tree.application import ports


def test_env_loader_contract() -> None:
    loader = DefaultEnvLoader(environ={"DEMO_SERVICE_TIMEOUT": "10"})
    assert isinstance(loader, ports.EnvLoader)
    assert loader.load("DEMO") == {"service": {"timeout": 10}}


def test_format_adapters_contract() -> None:
    for adapter in (TOMLFormat(), JSONFormat(), YAMLFormat()):
        assert isinstance(adapter, ports.FormatAdapter)
        assert adapter.name in {"toml", "json", "yaml"}


def test_registry_only_hands_out_format_adapters() -> None:
    registry = default_registry()
    for name in registry.names():
        assert isinstance(registry.get(name), ports.FormatAdapter)


class _Celsius:
    def __init__(self, degrees: float) -> None:
        self.degrees = degrees

    @classmethod
    def from_value(cls, value: Any, extractor: Any) -> _Celsius:
        return cls(extractor.extract(value, float))


def test_value_decodable_is_structural() -> None:
    assert issubclass(_Celsius, ports.ValueDecodable)
    assert not issubclass(int, ports.ValueDecodable)
