def test_get_engine_kwargs_sqlite_has_check_same_thread():
    from cadenceplan.database import database as db

    kwargs = db.get_engine_kwargs("sqlite:///./cadenceplan.db")
    assert "connect_args" in kwargs
    assert kwargs["connect_args"]["check_same_thread"] is False
    # SQLite should not require pool sizing knobs.
    assert "pool_size" not in kwargs
    assert "max_overflow" not in kwargs
    assert kwargs["pool_pre_ping"] is True


def test_get_engine_kwargs_postgres_has_conservative_pooling(monkeypatch):
    from cadenceplan.database import database as db

    monkeypatch.setenv("DB_POOL_SIZE", "5")
    monkeypatch.setenv("DB_MAX_OVERFLOW", "5")
    monkeypatch.setenv("DB_POOL_TIMEOUT_SEC", "30")

    kwargs = db.get_engine_kwargs("postgresql+psycopg://u:p@localhost:5432/db")
    assert "connect_args" not in kwargs
    assert kwargs["pool_pre_ping"] is True
    assert kwargs["pool_size"] == 5
    assert kwargs["max_overflow"] == 5
    assert kwargs["pool_timeout"] == 30


def test_debug_enables_echo(monkeypatch):
    from cadenceplan.database import database as db

    monkeypatch.setenv("DEBUG", "true")
    assert db.get_engine_kwargs("sqlite://")["echo"] is True


def test_sqlite_url_detection():
    from cadenceplan.database import database as db

    assert db._is_sqlite_url("sqlite:///./cadenceplan.db") is True
    assert db._is_sqlite_url("postgresql+psycopg://u:p@localhost/db") is False


def test_sqlite_file_database_is_usable(tmp_path):
    """A file-backed SQLite engine gets its pragmas and the schema."""
    from sqlalchemy import text
    from cadenceplan.database import database as db

    engine = db.build_engine(f"sqlite:///{tmp_path / 'plan.db'}")
    db.init_db(bind=engine)

    with engine.connect() as conn:
        assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1
        tables = {row[0] for row in conn.execute(text("SELECT name FROM sqlite_master WHERE type='table'"))}
    assert {"tasks", "channels"} <= tables


def test_session_factory_is_bound_to_module_engine():
    from cadenceplan.database import database as db

    session = db.SessionLocal()
    try:
        assert session.get_bind() is db.engine
    finally:
        session.close()
