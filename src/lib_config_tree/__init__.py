"""Layered configuration trees with dotted-path queries and typed extraction.

Sources (files, environment variables, literal defaults, embedded text) are
merged in registration order into an immutable :class:`Config`. The names
exported here are the stable public surface; submodules may change.
"""

from __future__ import annotations

from .adapters.env.default import DefaultEnvLoader, default_env_prefix
from .adapters.file.default import ConfigLoad, load_or_write_default, read_source_file
from .adapters.formats.structured import FormatRegistry, JSONFormat, TOMLFormat, YAMLFormat, default_registry
from .application.expand import expand
from .application.extract import Extractor, extract
from .application.merge import merge, merge_into, merge_layers, merge_values
from .application.ports import EnvLoader, FormatAdapter, ValueDecodable
from .core import build_config, build_config_raw, extend_config, load_source
from .domain.config import EMPTY_CONFIG, Config, Features, SourceInfo
from .domain.errors import (
    ConfigError,
    DirectoryCreateError,
    ExpansionError,
    ExtractError,
    FormatError,
    MissingField,
    NotFound,
    PathNotFound,
    PathSyntaxError,
    PathTypeConflict,
    SourceLoadError,
    TypeMismatch,
    UnknownField,
    WriteError,
)
from .domain.path import MISSING, ROOT, ConfigPath, contains_path, format_path, get_path, parse_path, set_path
from .domain.sources import DefaultsSource, EnvironmentSource, FileSource, Source, SourceDescriptor, TextSource
from .domain.value import ValueKind, kind_of, to_value, values_equal
from .observability import bind_trace_id, get_logger

__all__ = [
    "Config",
    "ConfigError",
    "ConfigLoad",
    "ConfigPath",
    "DirectoryCreateError",
    "DefaultEnvLoader",
    "DefaultsSource",
    "EMPTY_CONFIG",
    "EnvLoader",
    "EnvironmentSource",
    "ExpansionError",
    "ExtractError",
    "Extractor",
    "Features",
    "FileSource",
    "FormatAdapter",
    "FormatError",
    "FormatRegistry",
    "JSONFormat",
    "MISSING",
    "MissingField",
    "NotFound",
    "PathNotFound",
    "PathSyntaxError",
    "PathTypeConflict",
    "ROOT",
    "Source",
    "SourceDescriptor",
    "SourceInfo",
    "SourceLoadError",
    "TOMLFormat",
    "TextSource",
    "TypeMismatch",
    "UnknownField",
    "ValueDecodable",
    "ValueKind",
    "WriteError",
    "YAMLFormat",
    "bind_trace_id",
    "build_config",
    "build_config_raw",
    "contains_path",
    "default_env_prefix",
    "default_registry",
    "expand",
    "extend_config",
    "extract",
    "format_path",
    "get_logger",
    "get_path",
    "kind_of",
    "load_or_write_default",
    "load_source",
    "merge",
    "merge_into",
    "merge_layers",
    "merge_values",
    "parse_path",
    "read_source_file",
    "set_path",
    "to_value",
    "values_equal",
]
