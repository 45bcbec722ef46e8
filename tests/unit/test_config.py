"""Tests for the immutable ``Config`` snapshot."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

import pytest

from lib_config_tree.domain.config import EMPTY_CONFIG, Config, Features
from lib_config_tree.domain.errors import PathNotFound, PathSyntaxError, PathTypeConflict
from lib_config_tree.domain.sources import SourceDescriptor


@dataclass
class Database:
    host: str
    port: int = 5432


def make_config() -> Config:
    return Config(
        {"db": {"host": "localhost", "port": 5432}, "hosts": ["a", "b"], "empty": None},
        {
            "db.host": {"layer": "file", "path": "/etc/app.toml", "key": "db.host"},
            "db.port": {"layer": "env", "path": None, "key": "db.port"},
            "hosts": {"layer": "file", "path": "/etc/app.toml", "key": "hosts"},
        },
        (SourceDescriptor(kind="file", name="/etc/app.toml", path="/etc/app.toml"),),
    )


def test_config_behaves_like_read_only_mapping() -> None:
    cfg = make_config()
    assert set(cfg) == {"db", "hosts", "empty"}
    assert len(cfg) == 3
    assert cfg["db"]["host"] == "localhost"
    with pytest.raises(TypeError):
        cfg._data["db"] = {}  # type: ignore[index]


def test_queries_hand_out_copies() -> None:
    cfg = make_config()
    cfg["db"]["host"] = "mutated"
    cfg.get("hosts").append("c")
    cfg.as_dict()["db"]["port"] = 1
    assert cfg.get("db.host") == "localhost"
    assert cfg.get("hosts") == ["a", "b"]
    assert cfg.get("db.port") == 5432


def test_config_copies_caller_input() -> None:
    data = {"db": {"host": "a"}}
    cfg = Config(data, {})
    data["db"]["host"] = "b"
    assert cfg.get("db.host") == "a"


def test_get_and_get_path() -> None:
    cfg = make_config()
    assert cfg.get("hosts[1]") == "b"
    assert cfg.get("missing", default=7) == 7
    assert cfg.get_path("db.missing") is None
    with pytest.raises(PathSyntaxError):
        cfg.get("db..host")


def test_contains_distinguishes_null_from_absent() -> None:
    cfg = make_config()
    assert cfg.get_path("empty") is None
    assert cfg.contains("empty")
    assert not cfg.contains("absent")


def test_extract_uses_typed_extractor() -> None:
    cfg = make_config()
    assert cfg.extract("db", Database) == Database(host="localhost", port=5432)
    assert cfg.extract("missing", int, default=3) == 3
    with pytest.raises(PathNotFound):
        cfg.extract("missing", int)


@dataclass
class Settings:
    db: Database
    hosts: list[str]
    empty: str | None = None


def test_extract_empty_path_reads_whole_tree() -> None:
    cfg = make_config()
    assert cfg.extract("", Settings) == Settings(db=Database("localhost", 5432), hosts=["a", "b"])
    assert Config({"a": 1, "b": 2}, {}).extract("", dict[str, int]) == {"a": 1, "b": 2}
    assert cfg.extract("", dict)["db"] == {"host": "localhost", "port": 5432}


def test_extract_honours_expansion_feature() -> None:
    data = {"data_dir": "~/data/$DATASET"}
    expanded = Config(data, {}).extract("data_dir", Path, environ={"HOME": "/home/u", "DATASET": "foo"})
    literal = Config(data, {}, (), Features(expansion=False)).extract("data_dir", str, environ={"DATASET": "foo"})
    assert expanded == Path("/home/u/data/foo")
    assert literal == "~/data/$DATASET"


def test_origin_reports_provenance() -> None:
    cfg = make_config()
    assert cfg.origin("db.port") == {"layer": "env", "path": None, "key": "db.port"}
    assert cfg.origin("db") is None
    assert cfg.provenance["hosts"]["layer"] == "file"


def test_sources_and_features_are_kept() -> None:
    cfg = make_config()
    assert [str(descriptor) for descriptor in cfg.sources] == ["file:/etc/app.toml"]
    assert cfg.features == Features()


def test_with_overrides_returns_new_snapshot() -> None:
    cfg = make_config()
    updated = cfg.with_overrides({"db": {"port": 6543}, "hosts": ["z"]})
    assert updated.get("db") == {"host": "localhost", "port": 6543}
    assert updated.get("hosts") == ["z"]
    assert updated.origin("db.port")["layer"] == "override"
    assert updated.origin("db.host")["layer"] == "file"
    assert cfg.get("db.port") == 5432
    assert updated.sources == cfg.sources


def test_with_value_sets_single_path() -> None:
    cfg = make_config()
    updated = cfg.with_value("db.options.ssl", True)
    assert updated.get("db.options") == {"ssl": True}
    assert updated.origin("db.options.ssl")["layer"] == "override"
    assert not cfg.contains("db.options")


def test_with_value_replacing_branch_drops_descendant_provenance() -> None:
    updated = make_config().with_value("db", {"url": "sqlite://"})
    assert updated.origin("db.host") is None
    assert updated.origin("db")["layer"] == "override"


def test_with_value_refuses_to_descend_through_leaf() -> None:
    with pytest.raises(PathTypeConflict):
        make_config().with_value("db.port.number", 1)


def test_to_json_round_trips_tree() -> None:
    cfg = make_config()
    assert json.loads(cfg.to_json(indent=2)) == cfg.as_dict()


def test_empty_config() -> None:
    assert EMPTY_CONFIG.as_dict() == {}
    assert EMPTY_CONFIG.get("anything") is None
