"""Database setup for the key-value store backing the contact service."""

import os
import logging
from typing import Optional
from sqlalchemy import create_engine, Column, String, Text, DateTime, Index
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from datetime import datetime
from dotenv import load_dotenv

# Load environment variables from .env file (for local development)
load_dotenv()

Base = declarative_base()


class KVEntry(Base):
    """A single key-value pair with optional expiry."""
    __tablename__ = "kv_entries"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=True)  # Null means the entry never expires

    __table_args__ = (
        Index('idx_kv_entries_expires_at', 'expires_at'),
    )


def normalize_database_url(database_url: str) -> str:
    """Heroku uses postgres:// but SQLAlchemy 2.0+ requires postgresql://"""
    if database_url.startswith("postgres://"):
        return database_url.replace("postgres://", "postgresql://", 1)
    return database_url


def create_session_factory(database_url: str) -> sessionmaker:
    """
    Create an engine and session factory for the given database URL.

    In-memory SQLite databases share a single connection so every session
    (and every thread, e.g. under TestClient) sees the same data.
    """
    database_url = normalize_database_url(database_url)

    if database_url.startswith("sqlite"):
        engine_kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            engine_kwargs["poolclass"] = StaticPool
    else:
        # PostgreSQL connection pool configuration
        engine_kwargs = {
            "pool_pre_ping": True,  # Verify connections before using
            "pool_recycle": 3600,  # Recycle connections after 1 hour
        }

    engine = create_engine(database_url, **engine_kwargs)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(session_factory: sessionmaker) -> bool:
    """Initialize database tables. Returns False if the database could not be reached."""
    from sqlalchemy.exc import SQLAlchemyError

    try:
        Base.metadata.create_all(bind=session_factory.kw["bind"], checkfirst=True)
        logging.info("Key-value tables initialized successfully")
        return True
    except SQLAlchemyError as e:
        # Don't raise - SqlKeyValueStore retries table creation on its next use
        logging.error(f"Database initialization error: {str(e)}")
        return False


def session_factory_from_env() -> Optional[sessionmaker]:
    """Build a session factory from DATABASE_URL, or None when it is not set."""
    database_url = os.environ.get("DATABASE_URL")
    if not database_url:
        return None
    return create_session_factory(database_url)
