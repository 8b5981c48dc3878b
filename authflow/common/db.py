"""Database bootstrap helpers for the payment store."""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from authflow.common.config import settings


def make_engine(url: str) -> Engine:
    return create_engine(url, pool_pre_ping=True)


def make_session_factory(bind: Engine) -> sessionmaker:
    # `expire_on_commit=False` keeps ORM objects readable after the session closes.
    return sessionmaker(bind=bind, autoflush=False, autocommit=False, expire_on_commit=False)


# Single SQLAlchemy engine per process.
engine = make_engine(settings.database_url)
SessionLocal = make_session_factory(engine)


class Base(DeclarativeBase):
    """Declarative base for SQLAlchemy models."""

    pass


def init_db(bind: Engine | None = None) -> None:
    """Create missing tables for every registered model."""

    Base.metadata.create_all(bind=bind or engine)
