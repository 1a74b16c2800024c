"""
Database setup and connection management for the entity store.

This module handles:
- SQLAlchemy engine creation
- Session factory
- Connection pooling configuration
- Table initialization
"""

import os

from loguru import logger
from sqlalchemy import create_engine, inspect, pool, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

import dotenv

from storage.relational.models import Base

dotenv.load_dotenv()


class DatabaseConfig:
    """Configuration for database connections"""

    def __init__(self, url: str = None, echo: bool = None):
        self.url = url or os.getenv("RBAC_DATABASE_URL", "sqlite:///:memory:")

        # Connection pooling (ignored for SQLite)
        self.pool_size = int(os.getenv("DB_POOL_SIZE", "10"))
        self.max_overflow = int(os.getenv("DB_MAX_OVERFLOW", "20"))
        self.pool_recycle = int(os.getenv("DB_POOL_RECYCLE", "1500"))

        # Echo SQL for debugging (set False in production)
        if echo is None:
            echo = os.getenv("DB_ECHO", "False").lower() == "true"
        self.echo = echo

        logger.info(f"[DB] Database config: pool_size={self.pool_size}, max_overflow={self.max_overflow}")

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")


class DatabaseManager:
    """
    Manages the engine and session factory for one database.

    Usage:
        db_manager = DatabaseManager(DatabaseConfig())
        db_manager.initialize()
        store = SqlAlchemyEntityStore(db_manager.session_factory)
    """

    def __init__(self, config: DatabaseConfig = None):
        self.config = config or DatabaseConfig()
        self._engine = None
        self._SessionLocal = None

    def initialize(self):
        """Create engine, session factory and missing tables (IDEMPOTENT)"""
        if self._engine is not None:
            logger.warning("[DB] DatabaseManager already initialized")
            return

        logger.info("[DB] Initializing database...")
        self._engine = self._create_engine(self.config)
        self._SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self._engine,
            expire_on_commit=False
        )
        self.create_tables()
        logger.info("[DB] Database initialized successfully")

    @staticmethod
    def _create_engine(config: DatabaseConfig):
        """Create SQLAlchemy engine with pooling"""
        if config.is_sqlite:
            kwargs = {
                "echo": config.echo,
                "connect_args": {"check_same_thread": False},
            }
            # Every session must see the same in-memory database
            if ":memory:" in config.url or config.url == "sqlite://":
                kwargs["poolclass"] = pool.StaticPool
            return create_engine(config.url, **kwargs)

        return create_engine(
            config.url,
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_recycle=config.pool_recycle,
            pool_pre_ping=True,
            echo=config.echo
        )

    def create_tables(self):
        """Create all tables if they don't exist"""
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        existing_tables = set(inspect(self._engine).get_table_names())
        for table_name, table in Base.metadata.tables.items():
            if table_name not in existing_tables:
                table.create(self._engine, checkfirst=True)
                logger.info(f"[DB] Created table: {table_name}")
            else:
                logger.debug(f"[DB] Table already exists: {table_name}")

    def drop_tables(self):
        """
        Drop all tables. USE WITH CAUTION (for testing only).
        """
        if self._engine is None:
            raise RuntimeError("Database not initialized")

        logger.warning("[DB] DROPPING ALL RBAC TABLES - THIS IS DESTRUCTIVE")
        Base.metadata.drop_all(bind=self._engine)

    @property
    def session_factory(self) -> sessionmaker:
        if self._SessionLocal is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return self._SessionLocal

    def health_check(self) -> bool:
        """Check if database is healthy"""
        if self._SessionLocal is None:
            return False
        session = self._SessionLocal()
        try:
            session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"[DB] Database health check failed: {e}")
            return False
        finally:
            session.close()

    def dispose(self):
        """Release pooled connections"""
        if self._engine is not None:
            self._engine.dispose()
