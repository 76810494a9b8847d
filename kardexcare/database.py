import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from fastapi import Request

from kardexcare.config import Settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _set_search_path(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("SET search_path TO public")
    cursor.close()


class Database:
    """Owns the engine and session factory for one application instance.

    Created by the application factory, connected on startup and disposed on
    shutdown. Request handlers reach it through ``get_db``.
    """

    def __init__(self, url: str):
        self.url = url
        self.engine: Engine = None
        self.SessionLocal = None

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    def connect(self):
        if self.engine is not None:
            return
        connect_args = {"check_same_thread": False} if self.is_sqlite else {}
        self.engine = create_engine(self.url, connect_args=connect_args)
        if self.is_sqlite:
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
        else:
            event.listen(self.engine, "connect", _set_search_path)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        logger.info(f"Database engine created for {self.engine.url.render_as_string(hide_password=True)}")

    def create_all(self):
        # models must be imported so every table is registered on Base
        from kardexcare import models  # noqa: F401
        Base.metadata.create_all(bind=self.engine)

    def drop_all(self):
        from kardexcare import models  # noqa: F401
        Base.metadata.drop_all(bind=self.engine)

    def session(self) -> Session:
        if self.SessionLocal is None:
            raise RuntimeError("Database is not connected")
        return self.SessionLocal()

    def dispose(self):
        if self.engine is not None:
            self.engine.dispose()
            logger.info("Database engine disposed")
        self.engine = None
        self.SessionLocal = None


def open_database(settings: Settings, create_tables: bool = True) -> Database:
    """Connect a Database for scripts that run outside the web app"""
    database = Database(settings.database_connection_url)
    database.connect()
    if create_tables:
        database.create_all()
    return database


def get_db(request: Request):
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
