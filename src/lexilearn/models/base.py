"""Base model configuration."""
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from lexilearn.config import settings

# Create SQLAlchemy engine
_connect_args = {"check_same_thread": False} if settings.database.url.startswith("sqlite") else {}
engine = create_engine(settings.database.url, echo=settings.database.echo, connect_args=_connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create declarative base class
Base = declarative_base()


class TimestampMixin:
    """Mixin to add timestamp columns to models."""
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC))
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )


def init_db() -> None:
    """Initialize database."""
    # Register models on the metadata before creating tables
    from lexilearn.models import models  # noqa: F401

    Base.metadata.create_all(bind=engine)  # Create tables if they don't exist
