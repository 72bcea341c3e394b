# taskhub/database.py
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from taskhub.config.settings import Settings

Base = declarative_base()


def build_engine(settings: Settings) -> Engine:
    """Create the SQLAlchemy engine for the configured database"""
    url = settings.database_url
    connect_args = {}
    engine_kwargs = {"echo": settings.database_echo, "pool_pre_ping": True}

    if url.startswith("sqlite"):
        # SQLite connections are shared across the request threadpool
        connect_args["check_same_thread"] = False
        if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
            # Keep a single connection so every session sees the same in-memory db
            engine_kwargs["poolclass"] = StaticPool
    elif settings.database_sslmode:
        # If you're using PostgreSQL on Render or similar, keep sslmode=require
        connect_args["sslmode"] = settings.database_sslmode

    return create_engine(url, connect_args=connect_args, **engine_kwargs)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_all(engine: Engine) -> None:
    # Models must be imported so their tables are registered on Base.metadata
    import taskhub.models  # noqa: F401

    Base.metadata.create_all(bind=engine)


# This is required wherever a DB session is needed
def get_db(request: Request) -> Iterator[Session]:
    db: Session = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
