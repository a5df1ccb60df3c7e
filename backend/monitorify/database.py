"""Database connection and session management."""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import NullPool
from monitorify.config import settings


def build_engine(database_url: str):
    """Create an engine with pooling suited to the database URL."""
    if database_url.startswith("sqlite"):
        # Workers and request handlers share the SQLite connection across threads
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
        )

    # Supabase pooler (port 6543) manages its own pool
    if "pooler.supabase.com" in database_url or database_url.endswith(":6543"):
        return create_engine(
            database_url,
            poolclass=NullPool,
            echo=settings.environment == "development",
        )

    # Direct connection for stationary servers
    return create_engine(
        database_url,
        pool_size=20,
        max_overflow=10,
        pool_pre_ping=True,
        echo=settings.environment == "development",
    )


engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def init_db():
    """Create tables for all registered models (use migrations in production)."""
    import monitorify.models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db():
    """Dependency for getting database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
