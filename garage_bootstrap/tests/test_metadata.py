"""
Tests for the metadata module.
"""

import sqlite3
from contextlib import closing

import pytest

from garage_bootstrap.metadata import KEY_TABLE, purge_access_keys


@pytest.fixture
def metadata_db(tmp_path):
    path = tmp_path / "db.sqlite"
    with closing(sqlite3.connect(path)) as conn:
        with conn:
            conn.execute(f"CREATE TABLE {KEY_TABLE} (k BLOB PRIMARY KEY, v BLOB)")
            conn.executemany(
                f"INSERT INTO {KEY_TABLE} VALUES (?, ?)",
                [(b"GK1", b"a"), (b"GK2", b"b")],
            )
            conn.execute("CREATE TABLE tree_bucket_COLON_table (k BLOB PRIMARY KEY, v BLOB)")
            conn.execute("INSERT INTO tree_bucket_COLON_table VALUES (?, ?)", (b"b1", b"x"))
    return path


def test_purge_deletes_keys_only(metadata_db):
    assert purge_access_keys(str(metadata_db)) == 2

    with closing(sqlite3.connect(metadata_db)) as conn:
        assert conn.execute(f"SELECT COUNT(*) FROM {KEY_TABLE}").fetchone()[0] == 0
        assert conn.execute("SELECT COUNT(*) FROM tree_bucket_COLON_table").fetchone()[0] == 1


def test_purge_missing_database(tmp_path):
    assert purge_access_keys(str(tmp_path / "missing.sqlite")) is None
    assert not (tmp_path / "missing.sqlite").exists()


def test_purge_without_key_table(tmp_path):
    path = tmp_path / "db.sqlite"
    sqlite3.connect(path).close()

    with pytest.raises(sqlite3.OperationalError):
        purge_access_keys(str(path))
