import logging

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import scoped_session, sessionmaker
from sqlalchemy.pool import StaticPool

from models.base_model import Base
from models.book import Book
from models.category import Category
from models.user import User

logger = logging.getLogger(__name__)

# Map model names for easy querying
classes = {
    "Book": Book,
    "Category": Category,
    "User": User,
}


class DBStorage:
    __engine = None
    __session = None

    def __init__(self, url=None, echo=False):
        if url:
            self.configure(url, echo=echo)

    def configure(self, url, echo=False):
        """(Re)bind storage to a database URL, discarding any previous engine."""
        self.close()
        if self.__engine is not None:
            self.__engine.dispose()
        self.__session = None

        parsed = make_url(url)
        options = {"echo": echo}
        if parsed.get_backend_name() == "sqlite":
            options["connect_args"] = {"check_same_thread": False}
            if parsed.database in (None, "", ":memory:"):
                # One shared connection, otherwise every checkout sees an empty database
                options["poolclass"] = StaticPool
        else:
            options["pool_pre_ping"] = True
        self.__engine = create_engine(parsed, **options)

        if parsed.get_backend_name() == "sqlite":
            # Enable SQLite foreign keys (needed for ON DELETE RESTRICT)
            @event.listens_for(self.__engine, "connect")
            def _set_sqlite_pragma(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

        logger.debug("Storage bound to %s", parsed.render_as_string(hide_password=True))

    def reload(self):
        """Create tables and start session"""
        if self.__engine is None:
            raise RuntimeError("DBStorage.configure() must be called before reload()")
        Base.metadata.create_all(self.__engine)
        session_factory = sessionmaker(bind=self.__engine, expire_on_commit=False)
        self.__session = scoped_session(session_factory)

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
        if self.__session is not None:
            self.__session.rollback()

    def delete(self, obj=None):
        """Delete object if exists (hard delete)"""
        if obj is not None:
            self.__session.delete(obj)

    def get(self, cls, id, fresh=False):
        """Fetch one object by class and ID; fresh reloads it from the database."""
        if cls not in classes.values() or id is None:
            return None
        return self.__session.get(cls, id, populate_existing=fresh)

    def count(self, cls, *criteria):
        """Count rows of cls matching the given filter criteria"""
        return self.__session.query(cls).filter(*criteria).count()

    def query(self, cls):
        return self.__session.query(cls)

    def execute(self, statement):
        return self.__session.execute(statement)

    def refresh(self, obj):
        self.__session.refresh(obj)

    def ping(self) -> bool:
        """True when the database answers a trivial query."""
        try:
            with self.__engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.warning("Database ping failed", exc_info=True)
            return False
        return True

    def close(self):
        """Remove session (for API teardown)"""
        if self.__session is not None:
            self.__session.remove()

    # expose the SQLAlchemy session for advanced querying (joins, filters, etc.)
    def get_session(self):
        return self.__session
