"""Shared pytest fixtures for sqorn unit and integration tests."""
from __future__ import annotations

import pytest

from sqorn import Sq, sqorn


@pytest.fixture()
def sq() -> Sq:
    """Root builder compiling to PostgreSQL placeholders."""
    return sqorn()


@pytest.fixture()
def sq_sqlite() -> Sq:
    return sqorn(dialect="sqlite")


@pytest.fixture()
def sq_mysql() -> Sq:
    return sqorn(dialect="mysql")
