from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

# Local SQLite database standing in for the browser's durable storage
Base = declarative_base()

def create_storage_engine(url: str) -> Engine:
    """Create the engine backing durable client storage."""
    if url.startswith("sqlite"):
        # The event loop may hand requests to worker threads
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)

    return create_engine(
        url,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,
    )

def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)

def init_db(engine: Engine) -> None:
    """Initialize storage tables."""
    # Register models on the metadata before creating tables
    from ..models import storage_entry  # noqa: F401

    Base.metadata.create_all(bind=engine)
