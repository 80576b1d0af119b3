"""
Repository Browser Store Base — SQLAlchemy declarative base and engine factory.

Provides:
- Base: SQLAlchemy declarative base for the update-site document store
- create_store_engine: Engine factory aware of SQLite specifics
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all store models."""
    pass


def create_store_engine(url: str, echo: bool = False, **kwargs: Any) -> Engine:
    """
    Create an engine for the document store.

    SQLite connections are shared across threads; an in-memory SQLite
    database uses a single static connection so every session sees the
    same data.
    """
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite":
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        if parsed.database in (None, "", ":memory:"):
            kwargs.setdefault("poolclass", StaticPool)
    return create_engine(url, echo=echo, **kwargs)
