"""Database connection and session management."""

import logging
from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker

from ..config import DATABASE_URL, DATA_DIR
from .models import Base

logger = logging.getLogger(__name__)


class Store:
    """
    Owns the engine and session factory for one database.

    Created when the service starts and closed when it stops; nothing is
    connected at import time.
    """

    def __init__(self, url: Optional[str] = None, echo: bool = False):
        self.url = url or DATABASE_URL
        connect_args = {}
        if self.url.startswith("sqlite"):
            connect_args["check_same_thread"] = False  # Needed for SQLite + FastAPI
            if self.url == DATABASE_URL:
                DATA_DIR.mkdir(parents=True, exist_ok=True)
        self.engine = create_engine(self.url, connect_args=connect_args, echo=echo)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def init(self) -> None:
        """Create tables."""
        Base.metadata.create_all(bind=self.engine)
        logger.info("Store ready at %s", self.engine.url.render_as_string(hide_password=True))

    def ping(self) -> None:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def close(self) -> None:
        self.engine.dispose()
        logger.info("Store closed")
