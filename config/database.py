# config/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from domain.models import Base


def create_db_engine(connection_string, echo=False):
    """Create the SQLAlchemy engine for ``connection_string``."""
    return create_engine(connection_string, echo=echo)


def create_schema(engine):
    """Create any missing tables for the holdings sync models."""
    Base.metadata.create_all(engine)


def initialize_database(connection_string, *, create_tables=False):
    """Return a session factory bound to ``connection_string``."""
    engine = create_db_engine(connection_string)
    if create_tables:
        create_schema(engine)
    return sessionmaker(bind=engine)


def init_session(session_factory):
    """Initialize and return a new SQLAlchemy session."""
    return session_factory()
