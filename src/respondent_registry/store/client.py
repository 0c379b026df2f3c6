"""Store client owning the database engine and session factory.

A StoreClient is constructed explicitly, opened at process start, passed to
whatever needs the store, and closed at shutdown.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from respondent_registry.config.schema import StoreConfig
from respondent_registry.logging_audit import get_operation_logger
from respondent_registry.store.documents import Base
from respondent_registry.utils.exceptions import StoreError

logger = get_operation_logger("store")


class StoreClient:
    """Handle to the respondent document store.

    Attributes:
        url: SQLAlchemy database URL
        echo: Whether SQL statements are echoed

    Example:
        >>> with StoreClient("sqlite://") as client:
        ...     with client.session() as session:
        ...         ...
    """

    def __init__(self, url: str, echo: bool = False) -> None:
        self.url = url
        self.echo = echo
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker[Session]] = None

    @classmethod
    def from_config(cls, config: StoreConfig) -> "StoreClient":
        return cls(url=config.url, echo=config.echo)

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def open(self) -> "StoreClient":
        """Create the engine and the respondents collection if missing.

        Returns:
            self, for chaining

        Raises:
            StoreError: If the database cannot be reached or initialized
        """
        if self._engine is not None:
            return self

        try:
            url = make_url(self.url)
            engine_kwargs: dict = {"echo": self.echo}
            if url.get_backend_name() == "sqlite":
                engine_kwargs["connect_args"] = {"check_same_thread": False}
                if url.database in (None, "", ":memory:"):
                    # One shared connection, otherwise every checkout sees an empty database
                    engine_kwargs["poolclass"] = StaticPool
                else:
                    Path(url.database).parent.mkdir(parents=True, exist_ok=True)

            engine = create_engine(url, **engine_kwargs)
            Base.metadata.create_all(engine)
        except (SQLAlchemyError, OSError) as e:
            raise StoreError(f"Failed to open respondent store at {self.url}: {e}") from e

        self._engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)
        logger.info(f"Opened respondent store: {url.render_as_string(hide_password=True)}")
        return self

    def close(self) -> None:
        """Dispose of the engine. Safe to call more than once."""
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Closed respondent store")

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Open a session that commits on success and rolls back on error.

        Raises:
            StoreError: If the client has not been opened
        """
        if self._session_factory is None:
            raise StoreError("Store client is not open. Call open() first.")

        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def __enter__(self) -> "StoreClient":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
