"""
Database schema and connection management.

Uses SQLite with SQLAlchemy for clusters, the commands they run and the
applications those commands depend on.
"""

import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.ext.associationproxy import association_proxy
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import declarative_base, relationship, sessionmaker

from .env import get_settings
from .types import ApplicationStatus, ClusterStatus, CommandStatus

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every datetime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Application(Base):
    """Application a command depends on."""

    __tablename__ = "applications"

    id = Column(String, primary_key=True, default=_new_id)
    name = Column(String, nullable=False)
    status = Column(Enum(ApplicationStatus), nullable=False, default=ApplicationStatus.INACTIVE)
    created = Column(DateTime, nullable=False, default=utcnow)
    updated = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Application {self.id} {self.name!r} {self.status}>"


class Command(Base):
    """Command a cluster can run."""

    __tablename__ = "commands"

    id = Column(String, primary_key=True, default=_new_id)
    name = Column(String, nullable=False)
    status = Column(Enum(CommandStatus), nullable=False, default=CommandStatus.INACTIVE)
    application_id = Column(String, ForeignKey("applications.id", ondelete="SET NULL"), nullable=True)
    created = Column(DateTime, nullable=False, default=utcnow)
    updated = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    application = relationship(Application)

    def __repr__(self) -> str:
        return f"<Command {self.id} {self.name!r} {self.status}>"


class ClusterCommand(Base):
    """Position of a command in a cluster's command list."""

    __tablename__ = "cluster_commands"

    cluster_id = Column(String, ForeignKey("clusters.id", ondelete="CASCADE"), primary_key=True)
    command_id = Column(String, ForeignKey("commands.id", ondelete="CASCADE"), primary_key=True)
    position = Column(Integer, nullable=False, default=0)

    command = relationship(Command)


class ClusterTag(Base):
    __tablename__ = "cluster_tags"

    cluster_id = Column(String, ForeignKey("clusters.id", ondelete="CASCADE"), primary_key=True)
    tag = Column(String, primary_key=True)


class Cluster(Base):
    """Cluster jobs can be scheduled on."""

    __tablename__ = "clusters"

    id = Column(String, primary_key=True, default=_new_id)
    name = Column(String, nullable=False)
    status = Column(Enum(ClusterStatus), nullable=False, default=ClusterStatus.OUT_OF_SERVICE)
    created = Column(DateTime, nullable=False, default=utcnow)
    updated = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    tag_entries = relationship(
        ClusterTag,
        collection_class=set,
        cascade="all, delete-orphan",
    )
    command_links = relationship(
        ClusterCommand,
        order_by=ClusterCommand.position,
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
    )

    # Plain Python views: a set of tag strings, an ordered list of Commands.
    tags = association_proxy("tag_entries", "tag", creator=lambda tag: ClusterTag(tag=tag))
    commands = association_proxy(
        "command_links", "command", creator=lambda command: ClusterCommand(command=command)
    )

    def __repr__(self) -> str:
        return f"<Cluster {self.id} {self.name!r} {self.status}>"


def _configure_sqlite(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA case_sensitive_like = ON")
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def get_engine(db_path: Path) -> Engine:
    """
    Create an engine for a SQLite database file.

    Args:
        db_path: Path to SQLite database file
    """
    engine = create_engine(f"sqlite:///{db_path}")
    event.listen(engine, "connect", _configure_sqlite)
    return engine


def init_database(db_path: Path) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = get_engine(db_path)
    Base.metadata.create_all(engine)


def get_session(db_path: Optional[Path] = None):
    """
    Get database session.

    Args:
        db_path: Path to SQLite database file (default: CLUSTERSPECS_DB_PATH)

    Returns:
        SQLAlchemy session
    """
    if db_path is None:
        db_path = get_settings().db_path
    engine = get_engine(db_path)
    Session = sessionmaker(bind=engine)
    return Session()
