"""
Database connection management for the reference SQL adapter.

The analytics engine itself never imports this module; it is only used by
services.sql_checkin_sources and the models it persists.
"""
from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base
from core.config import settings
import logging

logger = logging.getLogger(__name__)


def build_engine(url: str = None, **kwargs):
    """Create an engine for the given URL (settings.DATABASE_URL by default)."""
    url = url or settings.DATABASE_URL
    engine_kwargs = {"echo": settings.DB_ECHO}
    if url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    else:
        engine_kwargs["pool_pre_ping"] = True
    engine_kwargs.update(kwargs)
    new_engine = create_engine(url, **engine_kwargs)

    @event.listens_for(new_engine, "connect")
    def on_connect(dbapi_conn, connection_record):
        """Log new connections."""
        logger.debug("New database connection established")

    return new_engine


engine = build_engine()

Base = declarative_base()


def init_db(bind=None):
    """Create all tables known to Base."""
    import models  # noqa: F401  (registers tables on Base.metadata)
    Base.metadata.create_all(bind=bind or engine)

