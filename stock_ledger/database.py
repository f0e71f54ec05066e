"""Database configuration and initialization."""
from flask import current_app, g
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base

# Create SQLAlchemy base
Base = declarative_base()

EXTENSION_KEY = 'stock_ledger.db'


class Database:
    """Engine and session factory owned by one Flask app."""

    def __init__(self, engine):
        self.engine = engine
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def create_all(self):
        """Create every table known to the models package."""
        from stock_ledger import models  # noqa: F401 ensures models are registered
        Base.metadata.create_all(bind=self.engine)


def _configure_sqlite(engine):
    """
    SQLite has no row locks: open every transaction with BEGIN IMMEDIATE so
    writers are serialized and a stock check can never race a concurrent
    decrement. Foreign keys are off by default in SQLite.
    """

    @event.listens_for(engine, 'connect')
    def _on_connect(dbapi_connection, connection_record):
        # Let SQLAlchemy emit BEGIN itself
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute('PRAGMA foreign_keys=ON')
        cursor.close()

    @event.listens_for(engine, 'begin')
    def _on_begin(conn):
        conn.exec_driver_sql('BEGIN IMMEDIATE')


def build_engine(config):
    """Create the engine for a config mapping."""
    database_uri = config['SQLALCHEMY_DATABASE_URI']
    echo = config.get('SQLALCHEMY_ECHO', False)

    if database_uri.startswith('sqlite'):
        engine = create_engine(
            database_uri,
            echo=echo,
            connect_args={'check_same_thread': False, 'timeout': 30},
        )
        _configure_sqlite(engine)
        return engine

    return create_engine(
        database_uri,
        echo=echo,
        pool_pre_ping=True,  # Enable connection health checks
        pool_size=config.get('SQLALCHEMY_POOL_SIZE', 10),
        max_overflow=config.get('SQLALCHEMY_MAX_OVERFLOW', 20),
    )


def init_db(app):
    """Initialize database connection for this app."""
    database = Database(build_engine(app.config))
    app.extensions[EXTENSION_KEY] = database

    # Register teardown
    @app.teardown_appcontext
    def shutdown_session(exception=None):
        """Close the request session, rolling back anything left open."""
        session = g.pop('db_session', None)
        if session is not None:
            if exception:
                session.rollback()
            session.close()

    return database


def get_database(app=None) -> Database:
    app = app or current_app
    return app.extensions[EXTENSION_KEY]


def get_session():
    """Get the database session bound to the current app context."""
    if 'db_session' not in g:
        g.db_session = get_database().session_factory()
    return g.db_session
