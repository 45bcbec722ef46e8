"""Typed extraction of configuration subtrees.

Purpose
-------
Turn a value tree (or the subtree at a dotted path) into the Python shape a
caller asks for: scalars, containers, unions, enums, dataclasses, typed
dicts, or any class implementing
:class:`~lib_config_tree.application.ports.ValueDecodable`.

Contents
--------
* :class:`Extractor` – reusable converter holding the extraction options.
* :func:`extract` – one-shot helper over a tree and a path.

Conversion Rules
----------------
* Scalar kinds must match the target exactly; the single widening is
  integer → ``float``. ``bool`` never passes for ``int``.
* A ``str`` target re-stringifies boolean, integer, and float leaves so values
  inferred from environment variables can still be read back as text.
* String leaves read into ``str`` or :class:`pathlib.Path` are expanded
  (``~``, ``$NAME``, ``${NAME}``) when expansion is enabled; the tree itself
  is never modified.
* Records (dataclasses, typed dicts) fail with :class:`MissingField` for
  required keys and, in strict mode, with :class:`UnknownField` for extra
  keys.

Every :class:`~lib_config_tree.domain.errors.ExtractError` leaves this module
with the full dotted path of the failing node; the path is assembled while
the recursion unwinds.
"""

from __future__ import annotations

import dataclasses
import types
from collections.abc import Mapping, MutableMapping, MutableSequence, MutableSet, Sequence, Set
from enum import Enum
from pathlib import PurePath
from typing import Annotated, Any, Literal, Union, get_args, get_origin, get_type_hints, is_typeddict

from ..domain.errors import ExtractError, MissingField, PathNotFound, TypeMismatch, UnknownField
from ..domain.path import MISSING, ConfigPath, Segment, as_path, get_path
from ..domain.value import ValueKind, clone_value, kind_of
from .expand import expand as expand_text
from .ports import ValueDecodable

_NONE_TYPE = type(None)
_SEQUENCE_ORIGINS = (list, Sequence, MutableSequence)
_SET_ORIGINS = (set, frozenset, Set, MutableSet)
_MAPPING_ORIGINS = (dict, Mapping, MutableMapping)


class Extractor:
    """Convert configuration values into typed Python objects.

    Parameters
    ----------
    strict:
        Reject table keys that a record target does not declare.
    expand:
        Expand ``~`` and ``$NAME`` tokens in string leaves.
    environ:
        Variable snapshot used for expansion (defaults to :data:`os.environ`
        at read time).
    strict_expansion:
        Raise :class:`~lib_config_tree.domain.errors.ExpansionError` for
        unset variables instead of keeping the token.
    home:
        Explicit home directory for ``~`` expansion.

    Examples
    --------
    >>> from dataclasses import dataclass
    >>> @dataclass
    ... class Server:
    ...     host: str
    ...     port: int = 80
    >>> Extractor().extract({"host": "example.org"}, Server)
    Server(host='example.org', port=80)
    >>> Extractor().extract({"host": "a", "port": "x"}, Server)
    Traceback (most recent call last):
    ...
    lib_config_tree.domain.errors.TypeMismatch: port: expected integer, found string
    """

    def __init__(
        self,
        *,
        strict: bool = False,
        expand: bool = True,
        environ: Mapping[str, str] | None = None,
        strict_expansion: bool = False,
        home: str | None = None,
    ) -> None:
        self.strict = strict
        self.expand = expand
        self.environ = environ
        self.strict_expansion = strict_expansion
        self.home = home

    def extract_path(self, tree: Any, path: ConfigPath | str, target: Any, *, default: Any = MISSING) -> Any:
        """Resolve *path* inside *tree* and convert the node into *target*.

        Absent paths return *default* when given, ``None`` when *target*
        accepts null, and raise :class:`PathNotFound` otherwise.
        """

        parsed = as_path(path)
        value = get_path(tree, parsed)
        if value is MISSING:
            if default is not MISSING:
                return default
            if _accepts_none(target):
                return None
            raise PathNotFound(path=parsed)
        try:
            return self.extract(value, target)
        except ExtractError as exc:
            exc.prepend(*parsed.segments)
            raise

    def extract_child(self, value: Any, target: Any, segment: Segment) -> Any:
        """Convert a nested *value*, prefixing any error path with *segment*."""

        try:
            return self.extract(value, target)
        except ExtractError as exc:
            exc.prepend(segment)
            raise

    def extract(self, value: Any, target: Any) -> Any:
        """Convert *value* into *target*; error paths are relative to *value*."""

        if target is Any or target is object:
            return clone_value(value)
        if target is None or target is _NONE_TYPE:
            return self._null(value)

        origin = get_origin(target)
        if origin is Annotated:
            return self.extract(value, get_args(target)[0])
        if origin is Union or origin is types.UnionType:
            return self._union(value, get_args(target))
        if origin is Literal:
            return self._choice(value, get_args(target), target)
        if origin in _SEQUENCE_ORIGINS:
            return self._sequence(value, _first_arg(target))
        if origin is tuple:
            return self._tuple(value, get_args(target))
        if origin in _SET_ORIGINS:
            items = self._sequence(value, _first_arg(target))
            return _build(frozenset if origin is frozenset else set, items)
        if origin in _MAPPING_ORIGINS:
            args = get_args(target)
            return self._mapping(value, args[0] if args else Any, args[1] if len(args) > 1 else Any)

        if not isinstance(target, type):
            raise TypeError(f"Unsupported extraction target {target!r}")
        return self._from_class(value, target)

    def _from_class(self, value: Any, target: type) -> Any:
        """Convert *value* into a plain (non-generic) class *target*."""

        if issubclass(target, ValueDecodable):
            return _build(lambda: target.from_value(value, self))
        if target is bool:
            return self._scalar(value, target, ValueKind.BOOLEAN)
        if target is int:
            return self._scalar(value, target, ValueKind.INTEGER)
        if target is float:
            if kind_of(value) is ValueKind.INTEGER:
                return float(value)
            return self._scalar(value, target, ValueKind.FLOAT)
        if target is str:
            return self._string(value)
        if issubclass(target, PurePath):
            return target(self._string(value, restringify=False))
        if issubclass(target, Enum):
            return self._choice(value, tuple(member.value for member in target), target)
        if dataclasses.is_dataclass(target):
            return self._dataclass(value, target)
        if is_typeddict(target):
            return self._typeddict(value, target)
        if issubclass(target, (list, tuple, set, frozenset)):
            return _build(target, self._sequence(value, Any))
        if issubclass(target, dict):
            return _build(target, self._mapping(value, Any, Any))
        raise TypeError(f"Unsupported extraction target {target!r}")

    def _null(self, value: Any) -> None:
        if value is not None:
            raise TypeMismatch(expected="null", found=kind_of(value).value)
        return None

    def _scalar(self, value: Any, target: type, kind: ValueKind) -> Any:
        found = kind_of(value)
        if found is not kind:
            raise TypeMismatch(expected=kind.value, found=found.value)
        return value

    def _string(self, value: Any, *, restringify: bool = True) -> str:
        """Return a string leaf (expanded when enabled) or a re-stringified scalar."""

        found = kind_of(value)
        if found is ValueKind.STRING:
            if not self.expand:
                return value
            return expand_text(value, environ=self.environ, home=self.home, strict=self.strict_expansion)
        if restringify:
            if found is ValueKind.BOOLEAN:
                return "true" if value else "false"
            if found is ValueKind.INTEGER:
                return str(value)
            if found is ValueKind.FLOAT:
                return repr(value)
        raise TypeMismatch(expected="string", found=found.value)

    def _union(self, value: Any, alternatives: tuple[Any, ...]) -> Any:
        """Try each alternative in declaration order; ``None`` satisfies optionals."""

        if value is None and _NONE_TYPE in alternatives:
            return None
        candidates = [alternative for alternative in alternatives if alternative is not _NONE_TYPE]
        if len(candidates) == 1:
            return self.extract(value, candidates[0])
        for alternative in candidates:
            try:
                return self.extract(value, alternative)
            except ExtractError:
                continue
        raise TypeMismatch(expected=_describe_union(alternatives), found=kind_of(value).value)

    def _choice(self, value: Any, choices: tuple[Any, ...], target: Any) -> Any:
        """Match *value* against literal *choices*; enums map back to members."""

        for choice in choices:
            if type(choice) is type(value) and choice == value:
                return target(value) if isinstance(target, type) and issubclass(target, Enum) else value
        rendered = ", ".join(repr(choice) for choice in choices)
        raise TypeMismatch(expected=f"one of {rendered}", found=f"{kind_of(value).value} {value!r}")

    def _sequence(self, value: Any, item_type: Any) -> list[Any]:
        found = kind_of(value)
        if found is not ValueKind.ARRAY:
            raise TypeMismatch(expected="array", found=found.value)
        return [self.extract_child(item, item_type, index) for index, item in enumerate(value)]

    def _tuple(self, value: Any, args: tuple[Any, ...]) -> tuple[Any, ...]:
        if not args or (len(args) == 2 and args[1] is Ellipsis):
            return tuple(self._sequence(value, args[0] if args else Any))
        if args == ((),):
            args = ()
        found = kind_of(value)
        if found is not ValueKind.ARRAY:
            raise TypeMismatch(expected="array", found=found.value)
        if len(value) != len(args):
            raise TypeMismatch(expected=f"array of length {len(args)}", found=f"array of length {len(value)}")
        return tuple(self.extract_child(item, item_type, index) for index, (item, item_type) in enumerate(zip(value, args)))

    def _mapping(self, value: Any, key_type: Any, value_type: Any) -> dict[Any, Any]:
        found = kind_of(value)
        if found is not ValueKind.TABLE:
            raise TypeMismatch(expected="table", found=found.value)
        return {
            self._key(key, key_type): self.extract_child(item, value_type, key)
            for key, item in value.items()
        }

    def _key(self, key: str, key_type: Any) -> Any:
        # table keys are names, never expanded
        if key_type in (Any, object, str):
            return key
        return self.extract_child(key, key_type, key)

    def _dataclass(self, value: Any, target: type) -> Any:
        found = kind_of(value)
        if found is not ValueKind.TABLE:
            raise TypeMismatch(expected="table", found=found.value)
        hints = get_type_hints(target, include_extras=True)
        kwargs: dict[str, Any] = {}
        declared: set[str] = set()
        for entry in dataclasses.fields(target):
            if not entry.init:
                continue
            declared.add(entry.name)
            field_type = hints.get(entry.name, Any)
            if entry.name in value:
                kwargs[entry.name] = self.extract_child(value[entry.name], field_type, entry.name)
            elif entry.default is not dataclasses.MISSING or entry.default_factory is not dataclasses.MISSING:
                continue
            elif _accepts_none(field_type):
                kwargs[entry.name] = None
            else:
                raise MissingField(entry.name)
        self._reject_unknown(value, declared)
        return _build(target, **kwargs)

    def _typeddict(self, value: Any, target: type) -> dict[str, Any]:
        found = kind_of(value)
        if found is not ValueKind.TABLE:
            raise TypeMismatch(expected="table", found=found.value)
        hints = get_type_hints(target, include_extras=True)
        result: dict[str, Any] = {}
        for name, field_type in hints.items():
            if name in value:
                result[name] = self.extract_child(value[name], field_type, name)
            elif name in target.__required_keys__:
                raise MissingField(name)
        self._reject_unknown(value, set(hints))
        return result

    def _reject_unknown(self, value: Mapping[str, Any], declared: set[str]) -> None:
        if not self.strict:
            return
        for key in value:
            if key not in declared:
                raise UnknownField(key)


def extract(
    tree: Any,
    path: ConfigPath | str,
    target: Any,
    *,
    strict: bool = False,
    default: Any = MISSING,
    expansion: bool = True,
    environ: Mapping[str, str] | None = None,
    strict_expansion: bool = False,
) -> Any:
    """Extract the node at *path* of *tree* as *target*.

    Examples
    --------
    >>> tree = {"server": {"hosts": [{"port": 1}, {"port": 2}]}}
    >>> extract(tree, "server.hosts[1].port", int)
    2
    >>> extract(tree, "server.hosts[2].port", int)
    Traceback (most recent call last):
    ...
    lib_config_tree.domain.errors.PathNotFound: server.hosts[2].port: not found
    >>> extract(tree, "server.timeout", int, default=30)
    30
    """

    extractor = Extractor(strict=strict, expand=expansion, environ=environ, strict_expansion=strict_expansion)
    return extractor.extract_path(tree, path, target, default=default)


def _accepts_none(target: Any) -> bool:
    """Return ``True`` when a null or absent value satisfies *target*."""

    if target is Any or target is object or target is None or target is _NONE_TYPE:
        return True
    origin = get_origin(target)
    if origin is Annotated:
        return _accepts_none(get_args(target)[0])
    if origin is Union or origin is types.UnionType:
        return _NONE_TYPE in get_args(target)
    return False


def _first_arg(target: Any) -> Any:
    args = get_args(target)
    return args[0] if args else Any


def _describe(target: Any) -> str:
    """Name *target* the way error messages name value kinds."""

    names = {bool: "boolean", int: "integer", float: "float", str: "string", _NONE_TYPE: "null"}
    if target in names:
        return names[target]
    origin = get_origin(target) or target
    if origin in (*_SEQUENCE_ORIGINS, *_SET_ORIGINS, tuple):
        return "array"
    if origin in _MAPPING_ORIGINS or dataclasses.is_dataclass(origin) or is_typeddict(origin):
        return "table"
    if isinstance(origin, type) and issubclass(origin, PurePath):
        return "string"
    return getattr(origin, "__name__", repr(origin))


def _describe_union(alternatives: tuple[Any, ...]) -> str:
    return " or ".join(_describe(alternative) for alternative in alternatives)


def _build(factory: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *factory*, reporting ``ValueError`` from user code as an extraction error."""

    try:
        return factory(*args, **kwargs)
    except ValueError as exc:
        raise ExtractError(str(exc)) from exc
