"""Typed extractor tests.

Scenarios cover scalars, containers, unions, records, custom decodable
classes, and the full-path error reporting the extractor promises.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Mapping, Optional, Sequence, TypedDict, Union

import pytest

from lib_config_tree.application.extract import Extractor, extract
from lib_config_tree.application.ports import ValueDecodable
from lib_config_tree.domain.errors import (
    ExpansionError,
    ExtractError,
    MissingField,
    NotFound,
    PathNotFound,
    TypeMismatch,
    UnknownField,
)


class Level(enum.Enum):
    DEBUG = "debug"
    INFO = "info"


@dataclass
class Host:
    name: str
    port: int = 80


@dataclass
class Server:
    hosts: list[Host]
    timeout: float = 30.0
    tags: list[str] = field(default_factory=list)
    proxy: Optional[str] = None


class Limits(TypedDict, total=False):
    soft: int
    hard: int


class Endpoint:
    """Parses ``host:port`` strings."""

    def __init__(self, host: str, port: int) -> None:
        self.host = host
        self.port = port

    @classmethod
    def from_value(cls, value: Any, extractor: Extractor) -> Endpoint:
        text = extractor.extract(value, str)
        host, _, port = text.partition(":")
        return cls(host, int(port))


class Pair:
    """Decodes nested values through the extractor so error paths stay complete."""

    def __init__(self, left: int, right: int) -> None:
        self.left = left
        self.right = right

    @classmethod
    def from_value(cls, value: Any, extractor: Extractor) -> Pair:
        left = extractor.extract_child(value["left"], int, "left")
        right = extractor.extract_child(value["right"], int, "right")
        return cls(left, right)


TREE = {
    "server": {
        "hosts": [{"name": "a", "port": 8080}, {"name": "b"}],
        "timeout": 5,
        "tags": ["x", "y"],
    },
    "flag": True,
    "count": 3,
    "ratio": 0.5,
    "name": "demo",
    "nothing": None,
}


def test_scalars_must_match_exactly() -> None:
    assert extract(TREE, "flag", bool) is True
    assert extract(TREE, "count", int) == 3
    assert extract(TREE, "name", str) == "demo"
    assert extract(TREE, "nothing", type(None)) is None
    with pytest.raises(TypeMismatch, match="flag: expected integer, found boolean"):
        extract(TREE, "flag", int)
    with pytest.raises(TypeMismatch, match="ratio: expected integer, found float"):
        extract(TREE, "ratio", int)
    with pytest.raises(TypeMismatch, match="name: expected boolean, found string"):
        extract(TREE, "name", bool)


def test_integer_widens_to_float() -> None:
    value = extract(TREE, "count", float)
    assert value == 3.0
    assert isinstance(value, float)


def test_string_target_restringifies_scalars() -> None:
    assert extract(TREE, "flag", str) == "true"
    assert extract(TREE, "count", str) == "3"
    assert extract(TREE, "ratio", str) == "0.5"
    with pytest.raises(TypeMismatch, match="expected string, found array"):
        extract(TREE, "server.tags", str)


def test_missing_array_element_reports_full_path() -> None:
    with pytest.raises(NotFound) as info:
        extract(TREE, "server.hosts[2].port", int)
    assert isinstance(info.value, PathNotFound)
    assert str(info.value.path) == "server.hosts[2].port"


def test_nested_type_error_reports_full_path() -> None:
    tree = {"server": {"hosts": [{"port": 1}, {"port": 2}, {"port": "three"}]}}
    with pytest.raises(TypeMismatch) as info:
        extract(tree, "server", dict[str, list[dict[str, int]]])
    assert str(info.value.path) == "server.hosts[2].port"
    assert str(info.value) == "server.hosts[2].port: expected integer, found string"


def test_absent_path_uses_default_or_none_for_optional_targets() -> None:
    assert extract(TREE, "server.retries", int, default=3) == 3
    assert extract(TREE, "server.retries", Optional[int]) is None
    assert extract(TREE, "server.retries", int | None) is None
    with pytest.raises(PathNotFound):
        extract(TREE, "server.retries", int)


def test_containers() -> None:
    assert extract(TREE, "server.tags", list[str]) == ["x", "y"]
    assert extract(TREE, "server.tags", Sequence[str]) == ["x", "y"]
    assert extract(TREE, "server.tags", tuple[str, ...]) == ("x", "y")
    assert extract(TREE, "server.tags", tuple[str, str]) == ("x", "y")
    assert extract(TREE, "server.tags", frozenset[str]) == frozenset({"x", "y"})
    assert extract(TREE, "server.tags", set) == {"x", "y"}
    assert extract(TREE, "server.hosts[0]", Mapping[str, Union[int, str]]) == {"name": "a", "port": 8080}
    assert extract(TREE, "server.hosts[1]", dict) == {"name": "b"}
    with pytest.raises(TypeMismatch, match="expected array of length 3, found array of length 2"):
        extract(TREE, "server.tags", tuple[str, str, str])


def test_any_target_returns_copy() -> None:
    value = extract(TREE, "server.tags", Any)
    value.append("z")
    assert TREE["server"]["tags"] == ["x", "y"]


def test_unions_pick_first_fitting_alternative() -> None:
    assert extract(TREE, "count", Union[bool, int, str]) == 3
    assert extract(TREE, "count", Union[str, int]) == "3"
    assert extract(TREE, "nothing", Optional[int]) is None
    with pytest.raises(TypeMismatch, match="expected integer or boolean, found string"):
        extract(TREE, "name", Union[int, bool])


def test_literal_and_enum_targets() -> None:
    tree = {"level": "debug", "mode": 1}
    assert extract(tree, "level", Level) is Level.DEBUG
    assert extract(tree, "level", Literal["debug", "info"]) == "debug"
    assert extract(tree, "mode", Literal[1, 2]) == 1
    with pytest.raises(TypeMismatch, match="one of"):
        extract({"mode": True}, "mode", Literal[1, 2])
    with pytest.raises(TypeMismatch, match="level: expected one of 'debug', 'info'"):
        extract({"level": "trace"}, "level", Level)


def test_dataclass_fields_defaults_and_optionals() -> None:
    server = extract(TREE, "server", Server)
    assert server == Server(hosts=[Host("a", 8080), Host("b", 80)], timeout=5.0, tags=["x", "y"], proxy=None)


def test_dataclass_missing_field_reports_location() -> None:
    tree = {"server": {"hosts": [{"port": 1}]}}
    with pytest.raises(MissingField) as info:
        extract(tree, "server", Server)
    assert info.value.field == "name"
    assert str(info.value) == "server.hosts[0]: missing field 'name'"


def test_strict_mode_rejects_unknown_fields() -> None:
    tree = {"host": {"name": "a", "prot": 1}}
    assert extract(tree, "host", Host) == Host("a")
    with pytest.raises(UnknownField, match="host: unknown field 'prot'"):
        extract(tree, "host", Host, strict=True)


def test_typeddict_target() -> None:
    assert extract({"limits": {"soft": 1}}, "limits", Limits) == {"soft": 1}
    with pytest.raises(TypeMismatch, match="limits.hard: expected integer"):
        extract({"limits": {"hard": "x"}}, "limits", Limits)


def test_value_decodable_targets() -> None:
    assert isinstance(Endpoint, type) and issubclass(Endpoint, ValueDecodable)
    endpoint = extract({"api": "example.org:8443"}, "api", Endpoint)
    assert (endpoint.host, endpoint.port) == ("example.org", 8443)
    with pytest.raises(ExtractError, match="api: invalid literal"):
        extract({"api": "example.org:http"}, "api", Endpoint)


def test_value_decodable_nested_errors_keep_path() -> None:
    with pytest.raises(TypeMismatch) as info:
        extract({"pairs": [{"left": 1, "right": "2"}]}, "pairs", list[Pair])
    assert str(info.value.path) == "pairs[0].right"


def test_path_target_expands_leaf_without_touching_tree() -> None:
    tree = {"data_dir": "~/data/$ENVVAR"}
    extractor = Extractor(environ={"ENVVAR": "foo"}, home="/home/u")
    assert extractor.extract_path(tree, "data_dir", Path) == Path("/home/u/data/foo")
    assert extractor.extract_path(tree, "data_dir", str) == "/home/u/data/foo"
    assert tree["data_dir"] == "~/data/$ENVVAR"


def test_expansion_can_be_disabled() -> None:
    tree = {"data_dir": "~/$ENVVAR"}
    assert extract(tree, "data_dir", str, expansion=False, environ={"ENVVAR": "foo"}) == "~/$ENVVAR"


def test_strict_expansion_reports_variable_and_path() -> None:
    with pytest.raises(ExpansionError) as info:
        extract({"paths": {"cache": "$CACHE/x"}}, "paths.cache", str, environ={}, strict_expansion=True)
    assert info.value.name == "CACHE"
    assert str(info.value.path) == "paths.cache"


def test_mapping_keys_are_not_expanded() -> None:
    tree = {"aliases": {"$HOME": "$HOME"}}
    assert extract(tree, "aliases", dict[str, str], environ={"HOME": "/home/u"}) == {"$HOME": "/home/u"}


def test_unsupported_target_raises_type_error() -> None:
    with pytest.raises(TypeError):
        extract(TREE, "count", complex)


def test_empty_path_extracts_whole_tree() -> None:
    @dataclass
    class Root:
        flag: bool
        count: int

    assert Extractor().extract_path({"flag": False, "count": 2}, "", Root) == Root(flag=False, count=2)
