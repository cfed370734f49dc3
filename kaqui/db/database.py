from __future__ import annotations

import time
from collections.abc import Generator, Iterable
from contextlib import contextmanager
from pathlib import Path

from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from kaqui.model.items import Classifier, KnowledgeDomain, TestType

from .models import Base, TestSessionRecord


class Database:
    """
    Owns the SQLAlchemy engine of the item/score store.

    Created by the hosting application and handed to the views and engines
    that need it; nothing in the scheduler opens a database on its own.
    """

    def __init__(self, url: str, echo: bool = False):
        """
        Initialize the database handle.

        Args:
            url: SQLAlchemy URL (``sqlite://`` for an in-memory store)
            echo: Log emitted SQL
        """
        self.url = url
        parsed = make_url(url)

        kwargs: dict = {"echo": echo}
        if parsed.get_backend_name() == "sqlite":
            kwargs["connect_args"] = {"check_same_thread": False}
            if parsed.database in (None, "", ":memory:"):
                # one shared connection, otherwise every session sees an empty database
                kwargs["poolclass"] = StaticPool
            else:
                Path(parsed.database).expanduser().parent.mkdir(parents=True, exist_ok=True)
        else:
            kwargs["pool_pre_ping"] = True

        self.engine = create_engine(url, **kwargs)
        self.SessionLocal = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)

    def init_db(self) -> None:
        """Initialize database tables."""
        Base.metadata.create_all(bind=self.engine)
        logger.info(f"Database tables initialized at {self.url}")

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """Provide a transactional scope around a series of operations."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:  # Intentionally broad - rollback on any error before re-raising
            session.rollback()
            raise
        finally:
            session.close()

    def get_view(self, domain: KnowledgeDomain, classifier: Classifier | None = None):
        """Get the storage view of one knowledge domain."""
        from .learning_view import LearningDbView

        return LearningDbView(self, domain, classifier)

    def init_session(
        self, domain: KnowledgeDomain, test_types: Iterable[TestType], started_at: int | None = None
    ) -> int:
        """
        Open a quiz session row.

        Args:
            domain: Quizzed knowledge domain
            test_types: Allowed quiz variants
            started_at: Epoch seconds (now if None)

        Returns:
            Session ID
        """
        with self.session_scope() as session:
            record = TestSessionRecord(
                domain=domain.value,
                test_types=[int(t) for t in test_types],
                started_at=started_at if started_at is not None else int(time.time()),
            )
            session.add(record)
            session.flush()
            session_id = record.id

        logger.info(f"Started test session {session_id} on {domain.value}")
        return session_id

    def close(self) -> None:
        """Dispose of the engine and its connections."""
        self.engine.dispose()
