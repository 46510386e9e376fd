"""sqorn compilation layer: method log → parameterized SQL."""
from sqorn.compile.base import Fragment, SQLCompiler, Statement
from sqorn.compile.builder import StatementBuilder
from sqorn.compile.mysql import MySQLCompiler
from sqorn.compile.postgres import PostgresCompiler
from sqorn.compile.sqlite import SQLiteCompiler

__all__ = [
    "Fragment",
    "SQLCompiler",
    "Statement",
    "StatementBuilder",
    "MySQLCompiler",
    "PostgresCompiler",
    "SQLiteCompiler",
]
