"""
Repository Browser Store Session Management.

Single entry point for store initialisation plus a context manager for
read-only store access.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy.orm import Session, sessionmaker

from repobrowser.db.base import Base, create_store_engine

logger = logging.getLogger("repobrowser.db.session")


def init_store(
    url: str,
    create_tables: bool = False,
    echo: bool = False,
) -> sessionmaker:
    """
    Initialise the update-site document store.

    Args:
        url:           Any SQLAlchemy URL (sqlite:///updatesites.db by default).
        create_tables: When True, run Base.metadata.create_all(). Use for
                       fresh stores and tests.
        echo:          SQLAlchemy engine echo.

    Returns:
        A plain ``sessionmaker`` bound to the store engine.
    """
    engine = create_store_engine(url, echo=echo)
    if create_tables:
        Base.metadata.create_all(engine)
    logger.info(f"Document store initialised: {engine.url.render_as_string(hide_password=True)}")
    return sessionmaker(bind=engine, expire_on_commit=False)


@contextmanager
def session_scope(factory: sessionmaker) -> Generator[Session, None, None]:
    """
    Context manager for read-only store sessions.

    Usage:
        with session_scope(factory) as session:
            sites = session.query(UpdateSiteEntry).all()
    """
    session = factory()
    try:
        yield session
    finally:
        session.close()
