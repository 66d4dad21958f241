from contextlib import contextmanager
from pathlib import Path
from typing import Callable, ContextManager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from ..models.base import Base

SessionFactory = Callable[[], ContextManager[Session]]


def make_engine(database_url: str) -> Engine:
    # Ensure sqlite file parent directory exists to avoid 'unable to open database file'
    if database_url.startswith("sqlite:///") and ":memory:" not in database_url:
        db_path = database_url.split("sqlite:///")[-1]
        Path(db_path).expanduser().resolve().parent.mkdir(parents=True, exist_ok=True)
    return create_engine(database_url, future=True)


def make_session_factory(engine: Engine, *, create_tables: bool = True) -> SessionFactory:
    if create_tables:
        Base.metadata.create_all(engine)
    session_local = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)

    @contextmanager
    def get_session():
        session = session_local()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return get_session
