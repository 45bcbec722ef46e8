"""Composition root for ``lib_config_tree``.

Purpose
-------
Provide the entry points that turn an ordered list of sources into a
:class:`~lib_config_tree.domain.config.Config` snapshot. This is the only
module that knows which adapter serves which source kind.

Contents
--------
* :func:`build_config` – high-level API returning a :class:`Config` instance.
* :func:`build_config_raw` – lower-level API returning the raw tree,
  provenance, and source descriptors.
* :func:`extend_config` – layer further sources over an existing snapshot.
* :func:`load_source` – materialise a single source through its adapter.

System Role
-----------
Connects the adapters (files, environment, literal defaults, embedded text)
with the merge engine while emitting structured observability signals.
Precedence is registration order: later sources win.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterable, Sequence

from .adapters.defaults.literal import load_defaults
from .adapters.env.default import DefaultEnvLoader, default_env_prefix
from .adapters.file.default import read_source_file
from .adapters.formats.structured import FormatRegistry, default_registry
from .application.merge import merge_layers
from .domain.config import Config, Features, SourceInfo
from .domain.errors import ConfigError, FormatError, NotFound, SourceLoadError
from .domain.sources import DefaultsSource, EnvironmentSource, FileSource, Source, SourceDescriptor, TextSource
from .observability import bind_trace_id, log_debug, log_info, make_event, source_event

__all__ = [
    "build_config",
    "build_config_raw",
    "default_env_prefix",
    "extend_config",
    "load_source",
]


def build_config(
    sources: Sequence[Source],
    *,
    features: Features | None = None,
    registry: FormatRegistry | None = None,
    environ: Mapping[str, str] | None = None,
) -> Config:
    """Return the merged configuration as a :class:`Config` value object.

    Why
    ----
    Consumers need a read-only mapping that hides adapter wiring and
    precedence rules.

    Parameters
    ----------
    sources:
        Sources ordered from lowest to highest precedence.
    features:
        Capability flags; defaults to everything enabled.
    registry:
        Format adapters to use; assembled from *features* when omitted.
    environ:
        Environment snapshot for :class:`EnvironmentSource`; defaults to
        :data:`os.environ`.

    Raises
    ------
    SourceLoadError
        When a source cannot be read or parsed, or does not produce a table.

    Examples
    --------
    >>> from lib_config_tree.domain.sources import DefaultsSource, EnvironmentSource
    >>> cfg = build_config(
    ...     [DefaultsSource({"server": {"port": 8080, "host": "localhost"}}), EnvironmentSource("APP")],
    ...     environ={"APP_SERVER_PORT": "9090"},
    ... )
    >>> cfg.get("server.port"), cfg.get("server.host")
    (9090, 'localhost')
    >>> cfg.origin("server.port")["layer"]
    'env'
    """

    features = features or Features()
    data, meta, descriptors = build_config_raw(sources, features=features, registry=registry, environ=environ)
    return Config(data, meta, descriptors, features)


def build_config_raw(
    sources: Sequence[Source],
    *,
    features: Features | None = None,
    registry: FormatRegistry | None = None,
    environ: Mapping[str, str] | None = None,
) -> tuple[dict[str, Any], dict[str, SourceInfo], tuple[SourceDescriptor, ...]]:
    """Return the merged tree, its provenance, and the applied descriptors.

    Why
    ----
    Tooling sometimes needs primitive structures (for serialisation or
    rendering) without the ``Mapping`` interface of :class:`Config`.

    What
    ----
    Loads every source, skipping optional files that do not exist, then folds
    the trees with :func:`merge_layers`. Skipped sources do not appear in the
    returned descriptors.

    Side Effects
    ------------
    - Calls :func:`bind_trace_id` with ``None`` to clear previous trace context.
    - Emits ``source_loaded``/``source_skipped`` per source and
      ``configuration_merged`` (or ``configuration_empty``) at the end.

    Examples
    --------
    >>> from lib_config_tree.domain.sources import TextSource
    >>> data, meta, descriptors = build_config_raw([TextSource('{"debug": true}', "json", name="inline")])
    >>> data, meta["debug"]["layer"], [str(d) for d in descriptors]
    ({'debug': True}, 'text', ['text:inline'])
    """

    bind_trace_id(None)
    layers, descriptors = _load_layers(sources, features=features, registry=registry, environ=environ)
    data, meta = merge_layers(layers)
    _log_merged(data, meta, descriptors)
    return data, meta, descriptors


def extend_config(
    config: Config,
    sources: Sequence[Source],
    *,
    registry: FormatRegistry | None = None,
    environ: Mapping[str, str] | None = None,
) -> Config:
    """Return a new snapshot with *sources* merged over *config*.

    The original snapshot is left untouched; provenance of keys the new
    sources do not touch is preserved.

    Examples
    --------
    >>> from lib_config_tree.domain.sources import DefaultsSource
    >>> base = build_config([DefaultsSource({"a": 1, "b": 2})])
    >>> extended = extend_config(base, [DefaultsSource({"b": 3}, name="late")])
    >>> extended.as_dict(), base.as_dict()
    ({'a': 1, 'b': 3}, {'a': 1, 'b': 2})
    >>> [str(d) for d in extended.sources]
    ['defaults:defaults', 'defaults:late']
    """

    layers, descriptors = _load_layers(sources, features=config.features, registry=registry, environ=environ)
    data, meta = merge_layers(layers, base=config.as_dict(), base_meta=config.provenance)
    _log_merged(data, meta, descriptors)
    return Config(data, meta, config.sources + descriptors, config.features)


def load_source(
    source: Source,
    *,
    registry: FormatRegistry | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Materialise *source* through the adapter that serves its kind.

    Raises
    ------
    NotFound
        When a file source does not exist (optional or not).
    FormatError
        When the content cannot be parsed or its root is not a table.

    Examples
    --------
    >>> load_source(EnvironmentSource("APP", separator="__"), environ={"APP__DB__PORT": "5432"})
    {'db': {'port': 5432}}
    """

    if isinstance(source, FileSource):
        return read_source_file(source.path, registry or default_registry(), format=source.format)
    if isinstance(source, EnvironmentSource):
        return DefaultEnvLoader(environ=environ).load(source.prefix, source.separator)
    if isinstance(source, DefaultsSource):
        tree = load_defaults(source.value)
    elif isinstance(source, TextSource):
        adapter = (registry or default_registry()).get(source.format)
        tree = adapter.parse(source.text.encode("utf-8"))
    else:
        raise TypeError(f"Unsupported configuration source: {source!r}")
    if not isinstance(tree, dict):
        raise FormatError(f"Source {source.descriptor} did not produce a table")
    return tree


def _load_layers(
    sources: Iterable[Source],
    *,
    features: Features | None,
    registry: FormatRegistry | None,
    environ: Mapping[str, str] | None,
) -> tuple[list[tuple[str, Any, str | None]], tuple[SourceDescriptor, ...]]:
    """Load *sources* in order, returning merge layers and applied descriptors."""

    registry = registry or default_registry(features)
    layers: list[tuple[str, Any, str | None]] = []
    descriptors: list[SourceDescriptor] = []
    for source in sources:
        descriptor = source.descriptor
        try:
            tree = load_source(source, registry=registry, environ=environ)
        except NotFound as exc:
            if isinstance(source, FileSource) and source.optional:
                log_debug("source_skipped", **source_event(descriptor, {"reason": str(exc)}))
                continue
            raise SourceLoadError(f"Failed to load {descriptor}: {exc}", source=descriptor) from exc
        except (ConfigError, OSError) as exc:
            raise SourceLoadError(f"Failed to load {descriptor}: {exc}", source=descriptor) from exc
        log_debug("source_loaded", **source_event(descriptor, {"keys": len(tree)}))
        layers.append((descriptor.kind, tree, descriptor.path))
        descriptors.append(descriptor)
    return layers, tuple(descriptors)


def _log_merged(
    data: Mapping[str, Any],
    meta: Mapping[str, SourceInfo],
    descriptors: Sequence[SourceDescriptor],
) -> None:
    if not data:
        log_info("configuration_empty", **make_event("merge", None, {"sources": len(descriptors)}))
        return
    log_info(
        "configuration_merged",
        **make_event("merge", None, {"sources": len(descriptors), "keys": len(meta)}),
    )
