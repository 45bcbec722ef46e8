"""Environment variable adapter.

Purpose
-------
Translate process environment variables into a nested configuration table.
It implements :class:`lib_config_tree.application.ports.EnvLoader`.

Key behaviours
--------------
* Only ``PREFIX<sep>...`` variables are captured; the prefix match is
  case-sensitive like environment names themselves.
* The remainder is lower-cased and split on the separator into path segments
  (``APP_SERVER_PORT`` → ``{"server": {"port": ...}}``).
* Scalar inference tries integer, then float, then boolean, else keeps the
  string. The inference is irreversible; a ``str`` extraction target
  re-stringifies the result.
* Variables are folded in place through the merge engine in sorted name
  order, so collisions such as ``APP_SERVER`` versus ``APP_SERVER_PORT``
  resolve deterministically (the later name wins).
* The environment is an explicit snapshot; :data:`os.environ` is only read
  when none is supplied.
"""

from __future__ import annotations

import os
import re
from typing import Final, Mapping

from ...application.merge import merge_into
from ...observability import log_debug

_UNADDRESSABLE: Final[re.Pattern[str]] = re.compile(r"[.\[\]]")
_INTEGER: Final[re.Pattern[str]] = re.compile(r"[+-]?[0-9]+")
_FLOAT: Final[re.Pattern[str]] = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_I64_MIN: Final[int] = -(2**63)
_I64_MAX: Final[int] = 2**63 - 1


def default_env_prefix(slug: str) -> str:
    """Return the canonical environment prefix for *slug*.

    Examples
    --------
    >>> default_env_prefix('lib-config-tree')
    'LIB_CONFIG_TREE'
    """

    return slug.replace("-", "_").upper()


class DefaultEnvLoader:
    """Load environment variables that belong to the configuration namespace."""

    def __init__(self, *, environ: Mapping[str, str] | None = None) -> None:
        """Initialise the loader with a specific ``environ`` snapshot for testability.

        Parameters
        ----------
        environ:
            Mapping to read from. Defaults to :data:`os.environ`.
        """

        self._environ = os.environ if environ is None else environ

    def load(self, prefix: str, separator: str = "_") -> dict[str, object]:
        """Return a nested table built from variables named ``prefix<separator>...``.

        Parameters
        ----------
        prefix:
            Prefix filter, without the trailing separator.
        separator:
            Delimiter between the prefix and each path segment.

        Side Effects
        ------------
        Emits ``env_variables_loaded`` debug events with summarised keys and
        ``env_variable_skipped`` for names that contain an empty segment or a
        ``.``, ``[`` or ``]`` character, which a path could not address.

        Examples
        --------
        >>> env = {
        ...     'APP_SERVER_PORT': '9090',
        ...     'APP_SERVER_DEBUG': 'True',
        ...     'OTHER': 'x',
        ... }
        >>> DefaultEnvLoader(environ=env).load('APP')
        {'server': {'debug': True, 'port': 9090}}
        """

        if not separator:
            raise ValueError("Environment separator must not be empty")
        lead = f"{prefix}{separator}" if prefix else ""
        collected: dict[str, object] = {}
        for key in sorted(self._environ):
            if not key.startswith(lead):
                continue
            segments = key[len(lead) :].lower().split(separator)
            if not all(segments) or any(_UNADDRESSABLE.search(segment) for segment in segments):
                log_debug("env_variable_skipped", layer="env", path=None, variable=key)
                continue
            merge_into(collected, _nest(segments, infer_scalar(self._environ[key])))
        log_debug("env_variables_loaded", layer="env", path=None, keys=sorted(collected.keys()))
        return collected


def _nest(segments: list[str], value: object) -> dict[str, object]:
    """Wrap *value* in one table per segment.

    Examples
    --------
    >>> _nest(['server', 'port'], 1)
    {'server': {'port': 1}}
    """

    node: object = value
    for segment in reversed(segments):
        node = {segment: node}
    return node  # type: ignore[return-value]


def infer_scalar(value: str) -> object:
    """Coerce textual environment values to configuration scalars where possible.

    Order: integer (64-bit range), float (decimal or exponent notation),
    boolean (``true``/``false`` in any case), else the original string.
    Integers beyond the 64-bit range fall through to float; ``inf`` and
    ``nan`` stay strings.

    Examples
    --------
    >>> infer_scalar('10'), infer_scalar('3.5'), infer_scalar('TRUE'), infer_scalar('hello')
    (10, 3.5, True, 'hello')
    >>> infer_scalar('99999999999999999999')
    1e+20
    """

    if _INTEGER.fullmatch(value):
        number = int(value)
        if _I64_MIN <= number <= _I64_MAX:
            return number
    if _FLOAT.fullmatch(value):
        return float(value)
    lowered = value.lower()
    if lowered in {"true", "false"}:
        return lowered == "true"
    return value
