from __future__ import annotations

from pathlib import Path

import pytest

from lib_config_tree.adapters.file.default import ConfigLoad, load_or_write_default, read_source_file
from lib_config_tree.adapters.formats.structured import default_registry
from lib_config_tree.domain.errors import ConfigError, DirectoryCreateError, FormatError, NotFound, WriteError


def write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def test_format_is_sniffed_from_suffix(tmp_path: Path) -> None:
    target = write(tmp_path / "app.toml", "[service]\ntimeout = 5\n")
    assert read_source_file(target, default_registry()) == {"service": {"timeout": 5}}


def test_declared_format_wins_over_suffix(tmp_path: Path) -> None:
    target = write(tmp_path / "app.conf", '{"service": {"timeout": 5}}')
    assert read_source_file(str(target), default_registry(), format="json") == {"service": {"timeout": 5}}


def test_unknown_suffix_is_a_format_error(tmp_path: Path) -> None:
    target = write(tmp_path / "app.ini", "[x]")
    with pytest.raises(FormatError):
        read_source_file(target, default_registry())


def test_missing_file_raises_not_found(tmp_path: Path) -> None:
    with pytest.raises(NotFound):
        read_source_file(tmp_path / "absent.toml", default_registry())


def test_directory_is_not_a_file(tmp_path: Path) -> None:
    (tmp_path / "conf.json").mkdir()
    with pytest.raises(NotFound):
        read_source_file(tmp_path / "conf.json", default_registry())


def test_non_table_root_is_rejected(tmp_path: Path) -> None:
    target = write(tmp_path / "list.json", "[1, 2]")
    with pytest.raises(FormatError, match="did not produce a table"):
        read_source_file(target, default_registry())


def test_load_or_write_default_writes_then_loads(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "dir" / "config.toml"
    outcome, table = load_or_write_default(target, "[service]\nname = 'demo'\n", default_registry())
    assert outcome is ConfigLoad.DEFAULT_WRITTEN
    assert table == {"service": {"name": "demo"}}
    assert target.read_text(encoding="utf-8") == "[service]\nname = 'demo'\n"


def test_load_or_write_default_keeps_existing_file(tmp_path: Path) -> None:
    target = write(tmp_path / "config.json", '{"edited": true}')
    outcome, table = load_or_write_default(target, '{"edited": false}', default_registry())
    assert outcome is ConfigLoad.LOADED
    assert table == {"edited": True}
    assert target.read_text(encoding="utf-8") == '{"edited": true}'


def test_invalid_default_is_rejected_before_writing(tmp_path: Path) -> None:
    target = tmp_path / "sub" / "config.json"
    with pytest.raises(FormatError):
        load_or_write_default(target, "{broken", default_registry())
    with pytest.raises(FormatError, match="did not produce a table"):
        load_or_write_default(target, "[1]", default_registry())
    assert not target.exists()
    assert not target.parent.exists()


def test_unwritable_parent_directory_raises_directory_create_error(tmp_path: Path) -> None:
    blocker = write(tmp_path / "blocker", "not a directory")
    target = blocker / "config.json"
    with pytest.raises(DirectoryCreateError) as info:
        load_or_write_default(target, '{"level": 1}', default_registry())
    assert isinstance(info.value, ConfigError)
    assert info.value.path == str(target)
    assert isinstance(info.value.__cause__, OSError)


def test_unwritable_target_raises_write_error(tmp_path: Path) -> None:
    target = tmp_path / "config.json"
    target.mkdir()
    with pytest.raises(WriteError) as info:
        load_or_write_default(target, '{"level": 1}', default_registry())
    assert not isinstance(info.value, DirectoryCreateError)
    assert info.value.path == str(target)
    assert isinstance(info.value.__cause__, OSError)
