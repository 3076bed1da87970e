"""
SQL State Store
===============

SQLAlchemy-backed persistence for player economy documents.

Features:
- One row per player holding the JSON document
- Optimistic concurrency via a version column (compare-and-swap UPDATE)
- Connection pooling with configurable limits
- Transaction management with automatic rollback
- Query logging for troubleshooting

Author: jetgause
Created: 2026-10-18
"""

import json
import logging
from contextlib import contextmanager
from typing import Optional

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    String,
    Text,
    create_engine,
    event,
    select,
    update,
)
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from beeminer.economy.errors import PersistenceError, StaleStateError
from beeminer.economy.models import UserEconomyState, utcnow

from .base import StateStore

logger = logging.getLogger(__name__)
query_logger = logging.getLogger("beeminer.storage.queries")

Base = declarative_base()


class GameStateRecord(Base):
    """Stored economy document, one row per player."""
    __tablename__ = "game_states"

    user_id = Column(String(128), primary_key=True)
    version = Column(Integer, nullable=False, default=1)
    document = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<GameStateRecord(user_id={self.user_id}, version={self.version})>"


class DatabaseConfig:
    """Database configuration with pooling defaults"""

    def __init__(
        self,
        database_url: str,
        pool_size: int = 5,
        max_overflow: int = 10,
        pool_timeout: int = 30,
        pool_recycle: int = 3600,
        echo: bool = False,
    ):
        self.database_url = database_url
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.pool_timeout = pool_timeout
        self.pool_recycle = pool_recycle
        self.echo = echo

    @property
    def is_sqlite_memory(self) -> bool:
        url = self.database_url
        return url.startswith("sqlite") and (url.endswith(":memory:") or url in ("sqlite://", "sqlite:///"))


class DatabaseManager:
    """
    Database manager with connection pooling and transaction management.

    Sessions roll back automatically on errors.
    """

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self.engine = None
        self.session_factory = None
        self._initialized = False

    def initialize(self):
        """Initialize database engine, session factory and tables"""
        if self._initialized:
            logger.warning("DatabaseManager already initialized")
            return

        try:
            if self.config.is_sqlite_memory:
                # A single shared connection keeps the in-memory database alive across threads
                self.engine = create_engine(
                    self.config.database_url,
                    connect_args={"check_same_thread": False},
                    poolclass=StaticPool,
                    echo=self.config.echo,
                )
            elif self.config.database_url.startswith("sqlite"):
                self.engine = create_engine(
                    self.config.database_url,
                    connect_args={"check_same_thread": False},
                    echo=self.config.echo,
                )
            else:
                self.engine = create_engine(
                    self.config.database_url,
                    poolclass=QueuePool,
                    pool_size=self.config.pool_size,
                    max_overflow=self.config.max_overflow,
                    pool_timeout=self.config.pool_timeout,
                    pool_recycle=self.config.pool_recycle,
                    echo=self.config.echo,
                )

            self.session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
            Base.metadata.create_all(self.engine)
            self._setup_event_listeners()

            self._initialized = True
            logger.info("Database initialized successfully")

        except SQLAlchemyError as e:
            logger.error(f"Failed to initialize database: {e}")
            raise PersistenceError(f"Failed to initialize database: {e}") from e

    def _setup_event_listeners(self):
        """Set up SQLAlchemy event listeners for query logging"""

        @event.listens_for(self.engine, "before_cursor_execute")
        def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
            query_logger.debug(f"Query: {statement}")

        @event.listens_for(self.engine, "handle_error")
        def handle_error(exception_context):
            query_logger.error(f"Database error: {exception_context.original_exception}")

    @contextmanager
    def get_session(self) -> Session:
        """
        Context manager for database sessions with automatic rollback.

        Usage:
            with db_manager.get_session() as session:
                record = session.get(GameStateRecord, "user-1")
        """
        if not self._initialized:
            raise RuntimeError("DatabaseManager not initialized. Call initialize() first.")

        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.debug(f"Session rollback due to error: {e}")
            raise
        finally:
            session.close()

    def close(self):
        """Close database connections"""
        if self.engine:
            self.engine.dispose()
            logger.info("Database engine disposed")


class SQLStateStore(StateStore):
    """
    State store over any SQLAlchemy database.

    Every save is a compare-and-swap on the version column, so two processes
    writing the same player cannot silently overwrite each other.
    """

    def __init__(self, database_url: str = "sqlite:///:memory:", **pool_options):
        self.db = DatabaseManager(DatabaseConfig(database_url, **pool_options))
        self.db.initialize()

    def load(self, user_id: str) -> Optional[UserEconomyState]:
        try:
            with self.db.get_session() as session:
                record = session.execute(
                    select(GameStateRecord).where(GameStateRecord.user_id == user_id)
                ).scalar_one_or_none()
                if record is None:
                    return None
                state = UserEconomyState.from_dict(json.loads(record.document))
                state.user_id = record.user_id
                state.version = record.version
                return state
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load state for user {user_id}: {e}") from e
        except (ValueError, TypeError, AttributeError) as e:
            raise PersistenceError(f"Corrupt state document for user {user_id}: {e}") from e

    def save(self, state: UserEconomyState, expected_version: Optional[int]) -> UserEconomyState:
        saved = state.copy()
        saved.version = (expected_version or 0) + 1
        document = json.dumps(saved.to_dict())
        now = utcnow()

        try:
            with self.db.get_session() as session:
                if expected_version is None:
                    session.add(GameStateRecord(
                        user_id=saved.user_id,
                        version=saved.version,
                        document=document,
                        created_at=now,
                        updated_at=now,
                    ))
                    session.flush()
                else:
                    result = session.execute(
                        update(GameStateRecord)
                        .where(GameStateRecord.user_id == saved.user_id)
                        .where(GameStateRecord.version == expected_version)
                        .values(version=saved.version, document=document, updated_at=now)
                    )
                    if result.rowcount != 1:
                        raise StaleStateError(saved.user_id, expected_version)
        except IntegrityError as e:
            raise StaleStateError(saved.user_id, expected_version) from e
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to save state for user {saved.user_id}: {e}") from e

        return saved

    def close(self):
        self.db.close()
