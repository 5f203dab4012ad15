from dataclasses import dataclass
from typing import Iterator, Optional
import logging
import time

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from app.utils.exceptions import DatabaseUnavailableError

# Set up logging
logger = logging.getLogger(__name__)

Base = declarative_base()


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to try reaching the database and how long to wait in between."""
    max_attempts: int = 3
    delay_seconds: float = 1.0
    backoff: float = 1.0

    def delay_for(self, attempt: int) -> float:
        # attempt is 1-based; the first retry waits delay_seconds
        return self.delay_seconds * (self.backoff ** (attempt - 1))


def _redact(url: str) -> str:
    if "@" in url and "://" in url:
        scheme, rest = url.split("://", 1)
        return f"{scheme}://*****:*****@{rest.split('@', 1)[1]}"
    return url


def _prepare_url(url: str) -> str:
    # For Neon.tech, ensure SSL is configured
    if "neon.tech" in url and "sslmode" not in url:
        url += "&sslmode=require" if "?" in url else "?sslmode=require"
        logger.info("Added sslmode=require to Neon database URL")
    return url


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection, otherwise every session sees an empty database
            options["poolclass"] = StaticPool
        return options

    return {
        "pool_pre_ping": True,  # Auto-reconnect on broken connections
        "pool_size": 5,
        "max_overflow": 10,
        "pool_timeout": 30,
        "pool_recycle": 1800,
    }


class Database:
    """
    Owns the SQLAlchemy engine and session factory.

    Built explicitly (see ``create_app``) and kept on ``app.state``;
    ``connect()`` is called from the application lifespan and ``dispose()``
    on shutdown.
    """

    def __init__(
        self,
        url: str,
        retry_policy: Optional[RetryPolicy] = None,
        fallback_url: Optional[str] = None,
        sleep=time.sleep,
        create_tables: bool = False,
    ):
        self.url = url
        self.retry_policy = retry_policy or RetryPolicy()
        self.fallback_url = fallback_url
        self.using_fallback = False
        self.connected = False
        self.create_tables = create_tables
        self._sleep = sleep
        self._bind(url)

    def _bind(self, url: str) -> None:
        url = _prepare_url(url)
        self.engine = create_engine(url, **_engine_options(url))
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def _ping(self) -> None:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def _rebind_primary(self) -> None:
        self.engine.dispose()
        self._bind(self.url)
        self.using_fallback = False

    def _connected(self) -> "Database":
        self.connected = True
        if self.create_tables:
            # a fresh fallback database starts empty
            self.create_all()
        return self

    def connect(self) -> "Database":
        """
        Verify connectivity, retrying per the policy, then try the fallback URL.

        Every call starts from the primary URL.
        """
        if self.connected:
            return self
        if self.using_fallback:
            self._rebind_primary()

        policy = self.retry_policy
        last_error: Optional[Exception] = None

        for attempt in range(1, policy.max_attempts + 1):
            logger.info(f"DB connection attempt {attempt} of {policy.max_attempts}: {_redact(self.url)}")
            try:
                self._ping()
            except SQLAlchemyError as e:
                last_error = e
                logger.warning(f"Database connection attempt {attempt} failed: {e}")
                if attempt < policy.max_attempts:
                    self._sleep(policy.delay_for(attempt))
            else:
                logger.info("✅ Database connection successful!")
                return self._connected()

        if self.fallback_url:
            logger.warning(f"Primary database unreachable, switching to local fallback: {_redact(self.fallback_url)}")
            self.engine.dispose()
            self._bind(self.fallback_url)
            self.using_fallback = True
            try:
                self._ping()
            except SQLAlchemyError as e:
                last_error = e
                logger.warning(f"Local fallback database unreachable: {e}")
                self._rebind_primary()
            else:
                return self._connected()

        logger.error(f"❌ Database connection failed after {policy.max_attempts} attempts: {last_error}")
        raise DatabaseUnavailableError()

    def session(self) -> Session:
        return self.SessionLocal()

    def create_all(self) -> None:
        # models must be imported so their tables are registered on Base
        from app import models  # noqa: F401
        Base.metadata.create_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose()
        self.connected = False


def get_db(request: Request) -> Iterator[Session]:
    database: Database = request.app.state.database
    if not database.connected:
        database.connect()
    db = database.session()
    try:
        yield db
    finally:
        db.close()
