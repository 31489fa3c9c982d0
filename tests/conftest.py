"""Pytest configuration and shared fixtures."""

import pytest

from sqlitelib import Database


PROFILES_TOML = """
[default]
filename = ":memory:"

[app]
filename = "{app_db}"
timeout = 2.5
cached_statements = 64

[app.pragmas]
foreign_keys = true
journal_mode = "WAL"

[reports]
filename = "{app_db}"
readonly = true
"""


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    """Configuration directory with a databases.toml, selected via SQLITELIB_CONFIG_DIR."""
    conf = tmp_path / "conf"
    conf.mkdir()
    app_db = (tmp_path / "app.db").as_posix()
    (conf / "databases.toml").write_text(PROFILES_TOML.format(app_db=app_db))
    monkeypatch.setenv("SQLITELIB_CONFIG_DIR", str(conf))
    return conf


@pytest.fixture
def db():
    """In-memory database."""
    database = Database()
    yield database
    database.close()


@pytest.fixture
def users_db(db):
    """In-memory database with a populated users table."""
    db.create_table({
        "tableName": "users",
        "columns": [
            {"id": "INTEGER PRIMARY KEY AUTOINCREMENT"},
            {"name": "TEXT NOT NULL"},
            {"age": "INTEGER"},
            {"email": "TEXT"},
        ],
        "indices": [
            {"columns": ["name"]},
            {"columns": [{"email": "ASC"}], "unique": True},
        ],
    })
    for name, age, email in [
        ("Alice", 34, "alice@example.com"),
        ("Bob", 17, None),
        ("Carol", 52, "carol@example.com"),
        ("Dave", 17, "dave@example.com"),
    ]:
        db.insert("users", {"name": name, "age": age, "email": email})
    return db


@pytest.fixture
def db_file(tmp_path):
    """Path for an on-disk database file."""
    return tmp_path / "test.db"
