"""
Database configuration for the ledger journal:
- pool_pre_ping=True
- SSL enforced for Supabase
- Retry on OperationalError when testing the connection
- SQLite supported for local runs and tests
"""
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
import logging
import time
from typing import Tuple

logger = logging.getLogger(__name__)

# Declarative base for models
Base = declarative_base()


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create the engine for ``database_url``."""
    # Add SSL mode for Supabase if not present
    if "supabase" in database_url and "sslmode" not in database_url:
        database_url += "?sslmode=require"
        logger.info("Added sslmode=require to DATABASE_URL")

    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            # One shared connection, otherwise every checkout sees a fresh empty db
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=echo, pool_pre_ping=True, **kwargs)

    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        pool_recycle=300,
        pool_timeout=30,
        echo=echo,
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
        expire_on_commit=False,
    )


def test_connection(engine: Engine, attempts: int = 3, delay: float = 1.0) -> Tuple[bool, str]:
    """Test database connection with retry"""
    for attempt in range(attempts):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True, "Database connection successful"
        except OperationalError as e:
            if attempt == attempts - 1:
                logger.error(f"Database connection failed after {attempts} attempts: {e}")
                return False, f"Database connection failed: {str(e)}"
            logger.warning(f"Database connection attempt {attempt + 1} failed, retrying...")
            time.sleep(delay)
    return False, "Database connection test failed"


def init_db(engine: Engine) -> None:
    """Create journal tables that do not exist yet."""
    from artisan_ledger import models  # noqa: F401  registers tables on Base

    Base.metadata.create_all(bind=engine)
    logger.info("Journal tables ready")
