# Overview: Flask extension instances for database and migrations.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from sqlalchemy import event

db = SQLAlchemy()
migrate = Migrate()


def _enable_sqlite_fk(dbapi_connection, connection_record):
    """Enable foreign key constraints for SQLite."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def bind_store(app) -> None:
    """Attach the database handle to the app and apply per-dialect setup."""
    db.init_app(app)
    migrate.init_app(app, db)

    with app.app_context():
        if db.engine.dialect.name == "sqlite":
            event.listen(db.engine, "connect", _enable_sqlite_fk)


def dispose_store(app) -> None:
    """
    Release pooled connections.

    Called on process shutdown after in-flight requests have finished; any
    session still open is rolled back before the pool is disposed.
    """
    with app.app_context():
        db.session.remove()
        db.engine.dispose()
