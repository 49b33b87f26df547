import logging

from sqlalchemy import create_engine, event
from sqlalchemy.orm import scoped_session, sessionmaker
from sqlalchemy.exc import SQLAlchemyError

from models.base_model import Base
# Imported so their tables register on Base.metadata before create_all
from models.user import User  # noqa: F401
from models.refresh_token import RefreshToken  # noqa: F401

logger = logging.getLogger(__name__)


class DBStorage:
    """Engine plus thread-local session registry.

    One instance is built per application (or per test) and handed to the
    stores that need it; nothing imports it as ambient state.
    """

    def __init__(self, database_url: str, echo: bool = False):
        """Initialize engine for the given URL"""
        # hide_parameters keeps password and token hashes out of error text and logs
        self.__engine = create_engine(
            database_url, echo=echo, pool_pre_ping=True, hide_parameters=True
        )
        self.__session = None
        if self.__engine.url.get_backend_name() == "sqlite":
            # Enable SQLite foreign keys (needed for ON DELETE CASCADE)
            @event.listens_for(self.__engine, "connect")
            def _set_sqlite_pragma(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

    @property
    def engine(self):
        return self.__engine

    def reload(self):
        """Create tables and start session"""
        Base.metadata.create_all(self.__engine)
        session_factory = sessionmaker(bind=self.__engine, expire_on_commit=False)
        self.__session = scoped_session(session_factory)
        logger.debug("Storage ready on %s backend", self.__engine.url.get_backend_name())

    def new(self, obj):
        """Add object to session"""
        self.__session.add(obj)

    def save(self):
        """Commit session"""
        try:
            self.__session.commit()
        except SQLAlchemyError:
            self.__session.rollback()
            raise

    def rollback(self):
        self.__session.rollback()

    def delete(self, obj=None):
        """Delete object if exists (hard delete)"""
        if obj:
            self.__session.delete(obj)

    def get(self, cls, id):
        """Fetch one object by class and ID"""
        return self.__session.get(cls, id)

    def close(self):
        """Remove session (for API teardown)"""
        if self.__session is not None:
            self.__session.remove()

    def dispose(self):
        self.close()
        self.__engine.dispose()

    # expose the SQLAlchemy session for advanced querying (joins, filters, etc.)
    def get_session(self):
        return self.__session
