"""Integration tests against database files on disk and configured profiles."""

import sqlite3

import pytest

from sqlitelib import SQL, Database, SQLiteContext, fetch_df, list_profiles

pytestmark = pytest.mark.integration


@pytest.fixture
def app_db_path(config_dir):
    """Path of the database file the 'app' and 'reports' profiles point at."""
    return config_dir.parent / "app.db"


class TestFileDatabase:
    """Tests for databases stored in a file."""

    def test_data_persists_across_connections(self, db_file):
        with Database(str(db_file)) as db:
            db.create_table({"tableName": "notes", "columns": [{"id": "INTEGER PRIMARY KEY"}, {"body": "TEXT"}]})
            db.insert("notes", {"body": "remember"})

        with Database(str(db_file)) as db:
            assert db.find_one("notes", {"id": 1}) == {"id": 1, "body": "remember"}

    def test_rolled_back_transaction_not_persisted(self, db_file):
        with Database(str(db_file)) as db:
            db.execute_script("CREATE TABLE t (x INTEGER);")
            with pytest.raises(ValueError):
                with db.transaction():
                    db.insert("t", {"x": 1})
                    raise ValueError("abort")

        with Database(str(db_file)) as db:
            assert db.pluck("SELECT COUNT(*) FROM t") == 0

    def test_migrations_persist(self, db_file):
        steps = [
            lambda: db.create_table({"tableName": "a", "columns": [{"x": "INTEGER"}]}),
            lambda: db.create_table({"tableName": "b", "columns": [{"y": "INTEGER"}]}),
        ]

        with Database(str(db_file)) as db:
            assert db.migrate(steps) == 2

        with Database(str(db_file)) as db:
            assert db.migrate(steps) == 0
            assert db.get_meta_value("migration_step") == 2

    def test_two_databases_see_committed_rows(self, db_file):
        writer = Database(str(db_file))
        reader = Database(str(db_file))
        try:
            writer.execute_script("CREATE TABLE t (x INTEGER);")
            writer.insert("t", {"x": 7})

            assert reader.pluck("SELECT x FROM t") == 7
        finally:
            writer.close()
            reader.close()


class TestProfiles:
    """Tests for databases opened through databases.toml profiles."""

    def test_profiles_listed(self, config_dir):
        assert list_profiles() == ["default", "app", "reports"]

    def test_default_profile_is_memory(self, config_dir):
        with Database(profile="default") as db:
            assert db.pluck("PRAGMA database_list") == 0
            assert db.get("PRAGMA database_list")["file"] == ""

    def test_app_profile_applies_pragmas(self, config_dir, app_db_path):
        with Database(profile="app") as db:
            assert db.pluck("PRAGMA journal_mode") == "wal"
            assert db.pluck("PRAGMA foreign_keys") == 1

        assert app_db_path.exists()

    def test_foreign_keys_enforced(self, config_dir):
        with Database(profile="app") as db:
            db.create_table({"tableName": "parent", "columns": [{"id": "INTEGER PRIMARY KEY"}]})
            db.create_table({
                "tableName": "child",
                "columns": [{"parent_id": "INTEGER REFERENCES parent(id)"}],
            })

            with pytest.raises(sqlite3.IntegrityError):
                db.insert("child", {"parent_id": 42})

    def test_readonly_profile(self, config_dir, app_db_path):
        """Test that the read-only profile reads but refuses writes."""
        with Database(str(app_db_path)) as db:
            db.create_table({"tableName": "t", "columns": [{"x": "INTEGER"}]})
            db.insert("t", {"x": 1})

        with Database(profile="reports") as db:
            db.error = None
            assert db.pluck("SELECT x FROM t") == 1
            with pytest.raises(sqlite3.OperationalError, match="readonly"):
                db.insert("t", {"x": 2})

    def test_profile_overrides(self, config_dir):
        with Database(profile="app", timeout=0.5) as db:
            db.pluck("SELECT 1")

            assert db.context._connector.settings.timeout == 0.5
            assert db.context._connector.settings.cached_statements == 64

    def test_fetch_df_with_profile(self, config_dir, app_db_path):
        with Database(str(app_db_path)) as db:
            db.create_table({"tableName": "sales", "columns": [{"region": "TEXT"}, {"amount": "REAL"}]})
            for region, amount in [("EU", 10.0), ("US", 20.0), ("EU", 5.0)]:
                db.insert("sales", {"region": region, "amount": amount})

        sql = SQL.select({"region": "region", "total": "SUM(amount)"}).from_("sales").group_by("region").order_by("region")
        df = fetch_df(sql, "app")

        assert df.to_dict("records") == [
            {"region": "EU", "total": 15.0},
            {"region": "US", "total": 20.0},
        ]

    def test_context_from_profile(self, config_dir):
        with SQLiteContext(profile="app") as ctx:
            assert ctx.sqlite_version.startswith("3.")
