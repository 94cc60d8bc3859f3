"""Database-backed rate limit store shared by every server instance."""

import logging
from typing import Optional

from sqlalchemy import Column, Float, Integer, String, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from src.shared.security.rate_limit import RateWindow

Base = declarative_base()


class RateLimitWindowRow(Base):
    """Rate window for one client identifier."""
    __tablename__ = "rate_limit_windows"

    identifier = Column(String, primary_key=True)  # IP address or "unknown"
    count = Column(Integer, nullable=False, default=0)
    window_start = Column(Float, nullable=False, index=True)
    window_seconds = Column(Float, nullable=False)
    reset_at = Column(Float, nullable=False, index=True)


def create_rate_limit_engine(database_url: str, **engine_kwargs):
    """Create an engine for the rate limit table."""
    # Heroku uses postgres:// but SQLAlchemy 2.0+ requires postgresql://
    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)
    engine_kwargs.setdefault("pool_pre_ping", True)
    return create_engine(database_url, **engine_kwargs)


class SqlRateLimitStore:
    """
    RateLimitStore persisted in a SQL table.

    Reads and writes are not locked, so concurrent requests from one client
    may still race on the counter.
    """

    def __init__(self, engine):
        self.engine = engine
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def create_tables(self) -> None:
        Base.metadata.create_all(bind=self.engine, checkfirst=True)

    def get(self, identifier: str) -> Optional[RateWindow]:
        with self.SessionLocal() as db:
            row = db.get(RateLimitWindowRow, identifier)
            if row is None:
                return None
            return RateWindow(
                count=row.count,
                window_start=row.window_start,
                window_seconds=row.window_seconds
            )

    def put(self, identifier: str, window: RateWindow) -> None:
        with self.SessionLocal() as db:
            try:
                row = db.get(RateLimitWindowRow, identifier)
                if row is None:
                    row = RateLimitWindowRow(identifier=identifier)
                    db.add(row)
                row.count = window.count
                row.window_start = window.window_start
                row.window_seconds = window.window_seconds
                row.reset_at = window.reset_at
                db.commit()
            except Exception:
                db.rollback()
                raise

    def sweep(self, now: float) -> int:
        with self.SessionLocal() as db:
            try:
                removed = db.query(RateLimitWindowRow).filter(
                    RateLimitWindowRow.reset_at < now
                ).delete(synchronize_session=False)
                db.commit()
            except Exception as e:
                # A failed cleanup only leaves stale rows behind
                logging.warning(f"Failed to cleanup old rate limit entries: {str(e)}")
                db.rollback()
                return 0
        return removed
