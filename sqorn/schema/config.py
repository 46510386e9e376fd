"""Pydantic model for the configuration consumed when a root builder is created.

Example::

    from sqorn import sqorn

    sq = sqorn(dialect="sqlite", map_input_keys=str.upper)
    sq.from_("person").where({"name": "Jo"}).query
    # Statement(text='select * from person where NAME = ?', args=('Jo',), ...)
"""
from __future__ import annotations

from collections.abc import Callable

from pydantic import BaseModel, ConfigDict, field_validator

from sqorn.errors import ConfigurationError
from sqorn.keys import camel_case, snake_case


class SqornConfig(BaseModel):
    """Compilation settings shared by every builder derived from one root.

    Attributes:
        dialect: Registered compiler target (``postgres``, ``sqlite``,
            ``mysql`` or any name added to ``CompilerFactory``).
        map_input_keys: Applied to keys of mapping arguments before they
            become column names or aliases.  Defaults to ``snake_case``.
        map_output_keys: Applied by executors to column names of result rows.
            Defaults to ``camel_case``.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    dialect: str = "postgres"
    map_input_keys: Callable[[str], str] = snake_case
    map_output_keys: Callable[[str], str] = camel_case

    @field_validator("dialect")
    @classmethod
    def _known_dialect(cls, value: str) -> str:
        from sqorn.compile.registry import CompilerFactory

        try:
            CompilerFactory.resolve(value)
        except ConfigurationError as exc:
            raise ValueError(str(exc)) from exc
        return value
