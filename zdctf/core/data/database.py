"""
DB Configuration and Management
"""

import logging
import os
from typing import Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.inspection import inspect
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from zdctf.config import settings

logger = logging.getLogger(__name__)


def create_database_engine(database_url: str | None = None):
    """Create a database engine based on the configuration"""

    database_url = database_url or settings.get_database_url()
    config = settings.get_database_config()

    logger.info("Configuring %s database", settings.DATABASE_TYPE.upper())
    logger.info(
        "Database URL: %s",
        f"{database_url.split('@')[0]}@***" if "@" in database_url else database_url,
    )

    db_engine = create_engine(database_url, **config)

    if db_engine.dialect.name == "sqlite":
        install_sqlite_pragmas(db_engine)

    @event.listens_for(db_engine, "checkout")
    def receive_checkout(dbapi_conn, connection_record, connection_proxy):
        _ = dbapi_conn, connection_record, connection_proxy
        logger.debug("Connection checked out from pool")

    logger.info("Database engine created successfully")
    return db_engine


def install_sqlite_pragmas(db_engine: Engine) -> None:
    """SQLite specific configuration for integrity and concurrency"""

    @event.listens_for(db_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        _ = connection_record
        cursor = dbapi_connection.cursor()
        try:
            # enable foreign key constraints
            cursor.execute("PRAGMA foreign_keys=ON")
            # concurrent readers while a submission is being recorded
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.execute(f"PRAGMA busy_timeout={settings.SQLITE_BUSY_TIMEOUT_MS}")
        finally:
            cursor.close()


# db engine instance
engine = create_database_engine()

# session factory
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

# Declarative base for models
Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Get a database session
    - Ensures proper session handling and cleanup
    """
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error("Database session error: %s", e)
        db.rollback()
        raise
    finally:
        db.close()
        logger.debug("Database session closed")


def create_tables() -> None:
    """Create all tables in the database
    - This may be called during fresh application startup or during database reset
    """
    try:
        logger.info("Creating all database tables")
        # for sqlite, ensure db directory exists
        if settings.DATABASE_TYPE == "sqlite":
            db_path = settings.get_database_url().replace("sqlite:///", "")
            db_dir = os.path.dirname(db_path)
            if db_dir and not os.path.exists(db_dir):
                os.makedirs(db_dir, exist_ok=True)
                logger.info("Created directory for SQLite database: %s", db_dir)
        Base.metadata.create_all(bind=engine)

        inspector = inspect(engine)
        tables = inspector.get_table_names()
        if not tables:
            logger.error("No tables found in the database")
            raise RuntimeError("No tables found in the database")
        logger.info("All database tables created successfully: %s", tables)
    except Exception as e:
        logger.error("Error creating database tables: %s", e)
        raise


def test_database_connection() -> bool:
    """Test the database connection Return True if successful, False otherwise"""
    try:
        with engine.connect() as connection:
            result = connection.execute(text("SELECT 1")).fetchone()
            logger.debug("Database connection test result: %s", result)
            return result is not None and result[0] == 1
    except Exception as e:  # pylint: disable=broad-exception-caught
        logger.error("Error testing database connection: %s", e)
        return False


def get_database_info() -> dict:
    """Get database information for health checks etc."""
    url = settings.get_database_url()
    masked_url = url.split("@")[0] + "@***" if "@" in url else url
    try:
        with engine.connect() as connection:
            info = {
                "type": settings.DATABASE_TYPE,
                "url": masked_url,
                "tables": list(Base.metadata.tables.keys()),
                "connected": True,
            }
            if settings.DATABASE_TYPE == "sqlite":
                result = connection.execute(text("SELECT sqlite_version()")).fetchone()
                info["version"] = f"SQLite {result[0]}" if result else "Unknown"
            elif settings.DATABASE_TYPE == "postgresql":
                result = connection.execute(text("SELECT version()")).fetchone()
                info["version"] = f"PostgreSQL {result[0]}" if result else "Unknown"
            return info
    except Exception as e:  # pylint: disable=broad-exception-caught
        logger.error("Error getting database information: %s", e)
        return {
            "type": settings.DATABASE_TYPE,
            "url": masked_url,
            "tables": [],
            "connected": False,
            "error": str(e),
        }
