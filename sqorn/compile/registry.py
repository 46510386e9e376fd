"""Compiler registry (Open/Closed Principle).

``CompilerFactory``
    Central registry for :class:`~sqorn.compile.base.SQLCompiler`
    implementations.  Register a new compiler once; ``SqornConfig`` accepts
    its name as ``dialect`` and the statement builder looks it up
    automatically.

Usage::

    from sqorn.compile.registry import CompilerFactory

    @CompilerFactory.register("oracle")
    class OracleCompiler(SQLCompiler):
        ...
"""

from __future__ import annotations

from collections.abc import Callable
from typing import ClassVar

from sqorn.compile.base import SQLCompiler
from sqorn.errors import ConfigurationError


class CompilerFactory:
    """Registry mapping dialect target names to :class:`SQLCompiler` classes.

    Callers register a compiler class once; the pipeline creates instances
    on demand via :meth:`create`.

    Example::

        @CompilerFactory.register("oracle")
        class OracleCompiler(SQLCompiler):
            ...

        compiler = CompilerFactory.create("oracle")
    """

    _compilers: ClassVar[dict[str, type[SQLCompiler]]] = {}

    @classmethod
    def register(cls, name: str) -> Callable[[type[SQLCompiler]], type[SQLCompiler]]:
        """Decorator that registers a compiler class under ``name``.

        Args:
            name: The dialect target name (e.g. ``"postgres"``).

        Returns:
            A decorator that registers and returns the compiler class.
        """

        def decorator(compiler_cls: type[SQLCompiler]) -> type[SQLCompiler]:
            cls._compilers[name] = compiler_cls
            return compiler_cls

        return decorator

    @classmethod
    def register_class(cls, name: str, compiler_cls: type[SQLCompiler]) -> None:
        """Register a compiler class without using the decorator form."""
        cls._compilers[name] = compiler_cls

    @classmethod
    def unregister(cls, name: str) -> type[SQLCompiler]:
        """Remove and return the compiler class registered under ``name``.

        Raises:
            ConfigurationError: If no compiler is registered for ``name``.
        """
        compiler_cls = cls.resolve(name)
        del cls._compilers[name]
        return compiler_cls

    @classmethod
    def resolve(cls, name: str) -> type[SQLCompiler]:
        """Return the compiler class registered for ``name``.

        Raises:
            ConfigurationError: If no compiler is registered for ``name``.
        """
        compiler_cls = cls._compilers.get(name)
        if compiler_cls is None:
            raise ConfigurationError(
                f"Unsupported dialect target: '{name}'. "
                f"Registered targets: {cls.registered_targets()}."
            )
        return compiler_cls

    @classmethod
    def create(cls, name: str) -> SQLCompiler:
        """Instantiate the compiler registered for ``name``.

        Raises:
            ConfigurationError: If no compiler is registered for ``name``.
        """
        return cls.resolve(name)()

    @classmethod
    def registered_targets(cls) -> list[str]:
        """Return the sorted list of registered dialect target names."""
        return sorted(cls._compilers)
