"""
Unit tests for migration discovery.
"""

import hashlib

import pytest

from pongbot.core.database.migrations import Migration, discover_migrations
from pongbot.core.exceptions import MigrationError


class TestDiscoverMigrations:
    def test_missing_directory_means_no_migrations(self, tmp_path, caplog):
        assert discover_migrations(tmp_path / "missing") == []
        assert "Migrations directory not found" in caplog.text
        assert caplog.records[-1].levelname == "WARNING"

    def test_missing_required_directory_is_an_error(self, tmp_path):
        with pytest.raises(MigrationError) as exc_info:
            discover_migrations(tmp_path / "missing", required=True)

        assert "does not exist" in exc_info.value.message

    def test_sorted_by_numeric_version(self, tmp_path):
        (tmp_path / "10_add_index.sql").write_text("SELECT 10;")
        (tmp_path / "2_create_users.sql").write_text("SELECT 2;")
        (tmp_path / "1_init.sql").write_text("SELECT 1;")

        migrations = discover_migrations(tmp_path)

        assert [m.version for m in migrations] == [1, 2, 10]
        assert migrations[1].description == "create users"
        assert migrations[1].sql == "SELECT 2;"

    def test_unexpected_names_are_ignored(self, tmp_path):
        (tmp_path / "1_init.sql").write_text("SELECT 1;")
        (tmp_path / "notes.sql").write_text("-- scratch")
        (tmp_path / "2_readme.txt").write_text("not sql")

        migrations = discover_migrations(tmp_path)

        assert [m.version for m in migrations] == [1]

    def test_duplicate_versions_are_rejected(self, tmp_path):
        (tmp_path / "1_init.sql").write_text("SELECT 1;")
        (tmp_path / "001_also_init.sql").write_text("SELECT 1;")

        with pytest.raises(MigrationError) as exc_info:
            discover_migrations(tmp_path)

        assert exc_info.value.version == 1


class TestMigration:
    def test_checksum_tracks_contents(self):
        migration = Migration(version=1, description="init", sql="SELECT 1;")

        assert migration.checksum == hashlib.sha256(b"SELECT 1;").hexdigest()
        assert migration.checksum != Migration(1, "init", "SELECT 2;").checksum
