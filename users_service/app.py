"""Application state shared by the HTTP handlers."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

_log = logging.getLogger(__name__)


@dataclass
class App:
    """Holds the database engine the request handlers work with."""

    engine: Engine

    def close(self) -> None:
        """Release every pooled database connection."""
        self.engine.dispose()

    def __enter__(self) -> "App":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def open_app(database_url: Optional[str] = None) -> App:
    """Connect to the database and return the ready application state.

    The URL defaults to the ``DATABASE_URL`` environment variable. Raises
    ``ConnectionError`` when no pool can be made or the database does not answer.
    """
    url = os.environ.get("DATABASE_URL", "") if database_url is None else database_url
    try:
        engine = create_engine(url)
    except (SQLAlchemyError, ImportError, ValueError) as exc:
        raise ConnectionError(f"connection pool could not be created: {exc}") from exc

    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        engine.dispose()
        raise ConnectionError(f"could not connect to the DB, {exc}") from exc

    _log.info("Successfully connected to the Main DB")
    return App(engine=engine)