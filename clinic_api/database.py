import logging
import time
from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import Settings, get_settings

logger = logging.getLogger(__name__)

SessionLocal = sessionmaker(autocommit=False, autoflush=False)
Base = declarative_base()

engine: Optional[Engine] = None


def create_db_engine(settings: Settings) -> Engine:
    """Build an engine for the configured database URL"""
    url = settings.database_url

    if url.startswith("sqlite"):
        # SQLite is used for local development and tests
        new_engine = create_engine(url, connect_args={"check_same_thread": False}, echo=False)
    else:
        connect_args = {}
        if settings.statement_timeout_ms and url.startswith("postgresql"):
            connect_args["options"] = f"-c statement_timeout={settings.statement_timeout_ms}"

        new_engine = create_engine(
            url,
            pool_pre_ping=True,  # Test connections before using
            pool_recycle=settings.pool_recycle,
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            pool_timeout=settings.pool_timeout,
            connect_args=connect_args,
            echo=False,  # Don't log all SQL (use slow query logging instead)
        )
        logger.info(
            f"📊 Connection pool: size={settings.pool_size}, "
            f"max_overflow={settings.max_overflow}, timeout={settings.pool_timeout}s"
        )

    if settings.log_slow_queries:
        _install_slow_query_logging(new_engine, settings.slow_query_threshold)

    logger.info("✅ Database engine created successfully")
    return new_engine


def _install_slow_query_logging(target: Engine, threshold: float) -> None:
    @event.listens_for(target, "before_cursor_execute")
    def before_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
        conn.info.setdefault("query_start_time", []).append(time.time())

    @event.listens_for(target, "after_cursor_execute")
    def after_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
        total = time.time() - conn.info["query_start_time"].pop(-1)
        if total > threshold:
            logger.warning(f"🐌 Slow query ({total:.2f}s): {statement[:200]}...")


def init_engine(settings: Optional[Settings] = None) -> Engine:
    """Create the process-wide engine once and bind the session factory to it"""
    global engine
    if engine is None:
        try:
            engine = create_db_engine(settings or get_settings())
        except Exception as e:
            logger.error(f"❌ Failed to create database engine: {e}")
            raise
        SessionLocal.configure(bind=engine)
    return engine


def get_db():
    init_engine()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
