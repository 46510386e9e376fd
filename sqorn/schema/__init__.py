"""sqorn schema models: method log, argument wrappers, configuration, context."""
from sqorn.schema.config import SqornConfig
from sqorn.schema.context import ContextDescriptor
from sqorn.schema.method_log import ClauseKind, MethodCall, MethodLog, StatementKind
from sqorn.schema.values import Raw, Template, raw, sql

__all__ = [
    "ClauseKind",
    "ContextDescriptor",
    "MethodCall",
    "MethodLog",
    "Raw",
    "SqornConfig",
    "StatementKind",
    "Template",
    "raw",
    "sql",
]
