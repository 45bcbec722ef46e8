"""Read-time expansion of home-directory and environment-variable tokens.

Purpose
    Rewrite string leaves such as ``"~/data/$DATASET"`` when they are read,
    leaving the stored tree untouched. Every call consults the environment
    anew, so a changed variable is picked up by the next read.

Contents
    - ``expand``: pure function over one string.
    - ``home_directory``: home resolution shared with ``expand``.

System Integration
    Called by :class:`lib_config_tree.application.extract.Extractor` for
    ``str`` and ``pathlib.Path`` targets when expansion is enabled.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Final, Mapping

from ..domain.errors import ExpansionError
from ..observability import log_debug

_TOKEN: Final[re.Pattern[str]] = re.compile(r"\$(?:\{(?P<braced>[A-Za-z_][A-Za-z0-9_]*)\}|(?P<bare>[A-Za-z_][A-Za-z0-9_]*))")


def expand(
    text: str,
    *,
    environ: Mapping[str, str] | None = None,
    home: str | None = None,
    strict: bool = False,
) -> str:
    """Return *text* with ``~`` and ``$NAME`` / ``${NAME}`` tokens expanded.

    Rules
        * ``~`` is replaced only at the very start and only when it stands
          alone or is followed by a path separator (``~user`` is kept).
        * Unset variables keep their literal token unless *strict* is set.
    Inputs
        environ: Variable snapshot; defaults to :data:`os.environ` at call time.
        home: Explicit home directory; see :func:`home_directory` otherwise.
        strict: Raise :class:`ExpansionError` for unset variables.

    Examples
    --------
    >>> expand("~/data/$ENVVAR", environ={"ENVVAR": "foo"}, home="/home/u")
    '/home/u/data/foo'
    >>> expand("${MISSING}/x", environ={})
    '${MISSING}/x'
    >>> expand("~other/x", environ={}, home="/home/u")
    '~other/x'
    """

    env = os.environ if environ is None else environ
    if text.startswith("~") and (len(text) == 1 or text[1] in _separators()):
        text = (home if home is not None else home_directory(env)) + text[1:]

    def _substitute(match: re.Match[str]) -> str:
        name = match.group("braced") or match.group("bare")
        value = env.get(name)
        if value is not None:
            return value
        if strict:
            raise ExpansionError(name)
        log_debug("expansion_unresolved", layer="expansion", path=None, variable=name)
        return match.group(0)

    return _TOKEN.sub(_substitute, text)


def home_directory(environ: Mapping[str, str]) -> str:
    """Return ``HOME`` (or ``USERPROFILE``) from *environ*, else :meth:`Path.home`.

    Examples
    --------
    >>> home_directory({"HOME": "/home/u"})
    '/home/u'
    """

    return environ.get("HOME") or environ.get("USERPROFILE") or str(Path.home())


def _separators() -> tuple[str, ...]:
    return (os.sep, "/") if os.altsep is None else (os.sep, os.altsep, "/")
