import json

import pytest

from taskboard.config import Config, DatabaseConfig
from taskboard.errors import ConfigError

SERVER_CONFIG = {
    "port": 8080,
    "db_Config": {
        "db": "postgres",
        "username": "board",
        "password": "s3cret",
        "host": "db.internal",
        "port": 6432,
        "dbname": "board",
    },
}


@pytest.fixture
def server_config_file(tmp_path):
    path = tmp_path / "server_config.json"
    path.write_text(json.dumps(SERVER_CONFIG))
    return path


class TestFromFile:
    """Tests for Config.from_file()"""

    def test_reads_document(self, server_config_file):
        config = Config.from_file(server_config_file)

        assert config.port == 8080
        assert config.database == DatabaseConfig(
            db="postgres",
            host="db.internal",
            port=6432,
            username="board",
            password="s3cret",
            dbname="board",
        )

    def test_missing_sections_use_defaults(self, tmp_path):
        path = tmp_path / "server_config.json"
        path.write_text("{}")

        config = Config.from_file(path)

        assert config.port == 3000
        assert config.database == DatabaseConfig()

    def test_unsupported_store_kind(self, tmp_path):
        path = tmp_path / "server_config.json"
        path.write_text(json.dumps({"db_Config": {"db": "mysql"}}))

        with pytest.raises(ConfigError, match="Unsupported database kind"):
            Config.from_file(path)

    @pytest.mark.parametrize("content", ["{not json", "[1, 2]"])
    def test_invalid_document(self, tmp_path, content):
        path = tmp_path / "server_config.json"
        path.write_text(content)

        with pytest.raises(ConfigError):
            Config.from_file(path)


class TestFromEnv:
    """Tests for Config.from_env()"""

    def test_environment_overrides_document(self, server_config_file, monkeypatch):
        monkeypatch.setenv("SERVER_CONFIG_PATH", str(server_config_file))
        for name in ("DB_NAME", "DB_USERNAME"):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setenv("DB_HOST", "localhost")
        monkeypatch.setenv("DB_PORT", "5433")
        monkeypatch.setenv("DB_STATEMENT_TIMEOUT_MS", "2500")

        config = Config.from_env()

        assert config.database.host == "localhost"
        assert config.database.port == 5433
        assert config.database.dbname == "board"
        assert config.database.username == "board"
        assert config.statement_timeout_ms == 2500

    def test_without_document(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SERVER_CONFIG_PATH", str(tmp_path / "absent.json"))
        monkeypatch.setenv("DB_NAME", "elsewhere")

        config = Config.from_env()

        assert config.database.dbname == "elsewhere"
        assert config.database.db == "postgres"


class TestConninfo:
    """Tests for DatabaseConfig.conninfo"""

    def test_with_password(self):
        database = DatabaseConfig(host="h", port=1, username="u", password="p", dbname="d")

        assert database.conninfo == "host=h port=1 user=u dbname=d password=p"

    def test_without_password(self):
        database = DatabaseConfig(host="h", port=1, username="u", dbname="d")

        assert "password" not in database.conninfo
