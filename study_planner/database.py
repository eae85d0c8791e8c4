from functools import lru_cache
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from study_planner.config import settings

Base = declarative_base()


def normalize_database_url(database_url: str) -> str:
    """Ensure postgresql:// URLs work with psycopg2"""
    # SQLAlchemy 2.0 requires explicit driver specification
    if database_url.startswith("postgresql://") and "+psycopg2" not in database_url:
        return database_url.replace("postgresql://", "postgresql+psycopg2://", 1)
    if database_url.startswith("postgres://"):
        return database_url.replace("postgres://", "postgresql+psycopg2://", 1)
    return database_url


def build_engine(database_url: str) -> Engine:
    url = normalize_database_url(database_url)
    connect_args = {}
    if url.startswith("postgresql"):
        connect_args["connect_timeout"] = 10  # 10 second connection timeout

    # Use pool_pre_ping to handle connection issues gracefully
    # pool_recycle to prevent stale connections
    return create_engine(
        url,
        echo=False,
        pool_pre_ping=True,  # Verify connections before using them
        pool_recycle=3600,   # Recycle connections after 1 hour
        connect_args=connect_args,
    )


@lru_cache(maxsize=1)
def get_engine() -> Optional[Engine]:
    """Process-wide engine, or None when DATABASE_URL is not configured."""
    if not settings.DATABASE_URL:
        return None
    return build_engine(settings.DATABASE_URL)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)
