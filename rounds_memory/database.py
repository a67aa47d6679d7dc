from sqlalchemy import create_engine, Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from rounds_memory.config import get_settings


class Base(DeclarativeBase):
    pass


def build_engine(database_url: str | None = None) -> Engine:
    """Create an engine for the snapshot database."""
    url = database_url or get_settings().database_url
    connect_args = {}
    if url.startswith("sqlite"):
        # FastAPI may touch the same connection from its worker threads
        connect_args["check_same_thread"] = False
    return create_engine(url, echo=False, future=True, connect_args=connect_args)


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(engine, class_=Session, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create the snapshot tables if they don't exist."""
    # Import models so they register on Base.metadata
    import rounds_memory.models  # noqa: F401

    Base.metadata.create_all(engine)
