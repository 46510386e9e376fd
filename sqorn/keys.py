"""Default key-mapping functions.

Object keys passed to ``where``, ``set``, ``insert`` and friends are column
names written in Python/JS style; rows coming back from the database carry
SQL-style column names.  The defaults convert ``camelCase`` input keys to
``snake_case`` and ``snake_case`` output keys to ``camelCase``.  Both are
overridable through :class:`~sqorn.schema.config.SqornConfig`.
"""
from __future__ import annotations

import re
from functools import lru_cache

_WORD_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])|([A-Z])([A-Z][a-z])")
_SEPARATORS = re.compile(r"[\s\-_]+")


@lru_cache(maxsize=1024)
def snake_case(key: str) -> str:
    """Convert ``key`` to ``snake_case``.

    Keys containing characters other than letters, digits, spaces, dashes and
    underscores (e.g. ``"p.id"`` or ``"count(*)"``) are returned unchanged.

    >>> snake_case("firstName")
    'first_name'
    >>> snake_case("HTTPServer")
    'http_server'
    """
    if not re.fullmatch(r"[\w\s\-]*", key):
        return key
    spaced = _WORD_BOUNDARY.sub(lambda m: "_".join(g for g in m.groups() if g), key)
    return _SEPARATORS.sub("_", spaced).strip("_").lower()


@lru_cache(maxsize=1024)
def camel_case(key: str) -> str:
    """Convert ``key`` to ``camelCase``.

    >>> camel_case("first_name")
    'firstName'
    """
    words = [w for w in _SEPARATORS.split(key) if w]
    if not words:
        return key
    head, *rest = words
    return head[:1].lower() + head[1:] + "".join(w[:1].upper() + w[1:] for w in rest)
