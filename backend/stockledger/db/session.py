from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from stockledger.core.config import Settings


def build_engine(settings: Settings) -> Engine:
    url = settings.database_url
    if url.startswith("sqlite"):
        engine = create_engine(url, connect_args={"timeout": settings.sqlite_busy_timeout_seconds})
        _install_sqlite_locking(engine)
        return engine
    return create_engine(url, pool_pre_ping=True)


def _install_sqlite_locking(engine: Engine) -> None:
    # pysqlite defers BEGIN until the first write, so two writers can both pass
    # the stock check. BEGIN IMMEDIATE takes the write lock up front; read-only
    # transactions keep a deferred BEGIN so they do not queue behind writers.
    @event.listens_for(engine, "connect")
    def set_sqlite_pragmas(dbapi_connection, _connection_record) -> None:
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def begin_transaction(conn) -> None:
        if conn.get_execution_options().get("ledger_read_only"):
            conn.exec_driver_sql("BEGIN")
        else:
            conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
