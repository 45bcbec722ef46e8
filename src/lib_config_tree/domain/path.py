"""Dotted key paths and the tree walks built on them.

Purpose
-------
Address nodes inside a value tree with strings such as
``server.hosts[0].port``. A path is parsed once into an immutable
:class:`ConfigPath` (a tuple of ``str`` keys and ``int`` indices) and then
evaluated against any tree.

Contents
--------
* :class:`ConfigPath` – immutable segment sequence with formatting helpers.
* :func:`parse_path` / :func:`format_path` – text conversions (inverse of
  each other for every valid path).
* :func:`get_path` / :func:`contains_path` – reads; absence yields
  :data:`MISSING`, never an error.
* :func:`set_path` – writes, creating intermediate containers on demand.

System Role
-----------
Used by :class:`~lib_config_tree.domain.config.Config` for queries, by the
environment adapter to build nested tables, by the merge engine to key its
provenance records, and by the extractor to report error locations.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Final, Iterable, Iterator, Union

from .errors import PathSyntaxError, PathTypeConflict
from .value import kind_of

Segment = Union[str, int]

_CHUNK: Final[re.Pattern[str]] = re.compile(r"^(?P<key>[^\[\]]*)(?P<indices>(?:\[[0-9]+\])*)$")
_INDEX: Final[re.Pattern[str]] = re.compile(r"\[([0-9]+)\]")


class _Missing:
    """Sentinel type for absent tree nodes (``None`` is a legitimate value)."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Final = _Missing()
"""Returned by :func:`get_path` when a path does not resolve."""


@dataclass(frozen=True, slots=True)
class ConfigPath:
    """Immutable sequence of key and index segments.

    The empty path denotes the whole tree.

    Examples
    --------
    >>> path = ConfigPath.parse("server.hosts[0].port")
    >>> path.segments
    ('server', 'hosts', 0, 'port')
    >>> str(path)
    'server.hosts[0].port'
    """

    segments: tuple[Segment, ...] = ()

    @classmethod
    def parse(cls, text: str) -> ConfigPath:
        """Parse dotted-bracket *text*; see :func:`parse_path`."""

        return parse_path(text)

    @property
    def is_root(self) -> bool:
        return not self.segments

    def child(self, segment: Segment) -> ConfigPath:
        """Return the path extended by one trailing *segment*."""

        return ConfigPath((*self.segments, segment))

    def prefixed(self, segments: Iterable[Segment]) -> ConfigPath:
        """Return the path with *segments* placed in front of it."""

        return ConfigPath((*segments, *self.segments))

    def display(self) -> str:
        """Format the path for messages; the root renders as ``<root>``."""

        return format_path(self) if self.segments else "<root>"

    def __iter__(self) -> Iterator[Segment]:
        return iter(self.segments)

    def __len__(self) -> int:
        return len(self.segments)

    def __str__(self) -> str:
        return format_path(self)


ROOT: Final[ConfigPath] = ConfigPath()


def parse_path(text: str) -> ConfigPath:
    """Parse *text* into a :class:`ConfigPath`.

    Rules
    -----
    * ``.`` separates key segments; the empty string is the root path.
    * ``[n]`` suffixes (decimal, non-negative) add index segments.
    * Only the first chunk may consist of indices alone (``[0].name``).

    Raises
    ------
    PathSyntaxError
        On malformed brackets or an empty segment.

    Examples
    --------
    >>> parse_path("a.b[1][2]").segments
    ('a', 'b', 1, 2)
    >>> parse_path("").is_root
    True
    >>> parse_path("a..b")
    Traceback (most recent call last):
    ...
    lib_config_tree.domain.errors.PathSyntaxError: Empty segment in path 'a..b'
    """

    if text == "":
        return ROOT
    segments: list[Segment] = []
    for position, chunk in enumerate(text.split(".")):
        match = _CHUNK.match(chunk)
        if match is None:
            raise PathSyntaxError(f"Malformed brackets in path {text!r}")
        key, indices = match.group("key"), match.group("indices")
        if key:
            segments.append(key)
        elif position > 0 or not indices:
            raise PathSyntaxError(f"Empty segment in path {text!r}")
        segments.extend(int(index) for index in _INDEX.findall(indices))
    return ConfigPath(tuple(segments))


def format_path(path: ConfigPath | Iterable[Segment]) -> str:
    """Render *path* as dotted-bracket text.

    Keys containing ``.``, ``[`` or ``]`` are rendered verbatim and do not
    parse back to the same path; such keys can only be reached by passing a
    :class:`ConfigPath` instead of text. The environment adapter never
    produces them.

    Examples
    --------
    >>> format_path(("server", "hosts", 2, "port"))
    'server.hosts[2].port'
    >>> format_path((0, "name"))
    '[0].name'
    """

    parts: list[str] = []
    for segment in path:
        if isinstance(segment, int):
            parts.append(f"[{segment}]")
        elif parts:
            parts.append(f".{segment}")
        else:
            parts.append(segment)
    return "".join(parts)


def as_path(path: ConfigPath | str) -> ConfigPath:
    """Accept either path text or an already parsed :class:`ConfigPath`."""

    return path if isinstance(path, ConfigPath) else parse_path(path)


def get_path(tree: Any, path: ConfigPath | str, default: Any = MISSING) -> Any:
    """Return the node of *tree* addressed by *path*, or *default* when absent.

    A missing key, an out-of-range index and an attempt to descend through a
    leaf all count as absence. The node is returned by reference; callers that
    hand it out clone it first.

    Examples
    --------
    >>> tree = {"server": {"hosts": [{"port": 80}]}}
    >>> get_path(tree, "server.hosts[0].port")
    80
    >>> get_path(tree, "server.hosts[3].port")
    MISSING
    """

    node = tree
    for segment in as_path(path):
        if isinstance(segment, int):
            if not isinstance(node, list) or not 0 <= segment < len(node):
                return default
            node = node[segment]
        else:
            if not isinstance(node, Mapping) or segment not in node:
                return default
            node = node[segment]
    return node


def contains_path(tree: Any, path: ConfigPath | str) -> bool:
    """Return ``True`` when *path* resolves inside *tree* (null leaves count)."""

    return get_path(tree, path) is not MISSING


def set_path(tree: Any, path: ConfigPath | str, value: Any) -> None:
    """Assign *value* at *path* inside *tree*, mutating it in place.

    Missing intermediate nodes are created: a table, or an array when the
    following segment is an index. An index equal to the array length
    appends.

    Raises
    ------
    PathSyntaxError
        When *path* is the root.
    PathTypeConflict
        When an existing node on the way is a leaf, has the wrong container
        kind, or an index lies beyond the end of an array.

    Examples
    --------
    >>> tree = {}
    >>> set_path(tree, "server.hosts[0].port", 8080)
    >>> tree
    {'server': {'hosts': [{'port': 8080}]}}
    >>> set_path(tree, "server.hosts[0].port.number", 1)
    Traceback (most recent call last):
    ...
    lib_config_tree.domain.errors.PathTypeConflict: Cannot descend through integer at 'server.hosts[0].port'
    """

    parsed = as_path(path)
    if parsed.is_root:
        raise PathSyntaxError("Cannot assign to the root path")
    segments = parsed.segments
    node = tree
    for depth, segment in enumerate(segments[:-1]):
        node = _descend(node, segment, segments[depth + 1], ConfigPath(segments[:depth]))
    _assign(node, segments[-1], value, ConfigPath(segments[:-1]))


def _descend(node: Any, segment: Segment, following: Segment, location: ConfigPath) -> Any:
    """Step from *node* into *segment*, creating the child container when absent."""

    _require_container(node, segment, location)
    if isinstance(segment, int):
        if segment == len(node):
            node.append(_empty_container(following))
        elif segment > len(node):
            raise PathTypeConflict(_index_message(segment, node, location))
        child = node[segment]
    else:
        if segment not in node:
            node[segment] = _empty_container(following)
        child = node[segment]
    if not isinstance(child, (dict, list)):
        raise PathTypeConflict(f"Cannot descend through {kind_of(child).value} at {str(location.child(segment))!r}")
    return child


def _assign(node: Any, segment: Segment, value: Any, location: ConfigPath) -> None:
    """Store *value* under the final *segment* of a write."""

    _require_container(node, segment, location)
    if isinstance(segment, int):
        if segment == len(node):
            node.append(value)
            return
        if segment > len(node):
            raise PathTypeConflict(_index_message(segment, node, location))
    node[segment] = value


def _require_container(node: Any, segment: Segment, location: ConfigPath) -> None:
    """Raise :class:`PathTypeConflict` unless *node* can hold *segment*."""

    expected = list if isinstance(segment, int) else dict
    if not isinstance(node, expected):
        wanted = "array" if expected is list else "table"
        raise PathTypeConflict(f"Expected {wanted} at {location.display()!r}, found {kind_of(node).value}")


def _empty_container(following: Segment) -> Any:
    return [] if isinstance(following, int) else {}


def _index_message(index: int, node: list, location: ConfigPath) -> str:
    return f"Index {index} is beyond the end of the array at {location.display()!r} ({len(node)} elements)"
