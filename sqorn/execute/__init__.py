"""sqorn execution layer: run compiled statements through a DB-API connection."""
from sqorn.execute.executor import DBAPIExecutor, Executor, Row, Transaction

__all__ = [
    "DBAPIExecutor",
    "Executor",
    "Row",
    "Transaction",
]
