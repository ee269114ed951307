import json
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from taskboard.errors import ConfigError

# Load the appropriate .env file on module import
env = os.environ.get("TASKBOARD_ENV", "development").lower()
env_file = f".env.{env}"
if os.path.exists(env_file):
    load_dotenv(env_file)
else:
    # Fall back to the default .env file
    load_dotenv()

SUPPORTED_DB = "postgres"


@dataclass
class DatabaseConfig:
    db: str = SUPPORTED_DB
    host: str = "localhost"
    port: int = 5432
    username: str = "postgres"
    password: str = ""
    dbname: str = "taskboard"

    def __post_init__(self):
        if self.db != SUPPORTED_DB:
            raise ConfigError(f"Unsupported database kind {self.db!r}, expected {SUPPORTED_DB!r}")

    @property
    def conninfo(self) -> str:
        parts = [
            f"host={self.host}",
            f"port={self.port}",
            f"user={self.username}",
            f"dbname={self.dbname}",
        ]
        if self.password:
            parts.append(f"password={self.password}")
        return " ".join(parts)


@dataclass
class Config:
    environment: str
    port: int
    database: DatabaseConfig
    pool_min_size: int = 1
    pool_max_size: int = 10
    connect_timeout: float = 10.0
    statement_timeout_ms: int = 0
    log_level: str = "INFO"

    @classmethod
    def from_file(cls, path: Path) -> "Config":
        """Build a config from a server config document, ignoring the environment."""
        document = load_server_config(path)
        return cls(
            environment=env,
            port=int(document.get("port", 3000)),
            database=_database_from_document(document.get("db_Config", {})),
        )

    @classmethod
    def from_env(cls) -> "Config":
        path = Path(os.environ.get("SERVER_CONFIG_PATH", "./server_config.json"))
        document = load_server_config(path) if path.exists() else {}
        database = _database_from_document(document.get("db_Config", {}))

        return cls(
            environment=env,
            port=int(os.environ.get("PORT", document.get("port", 3000))),
            database=DatabaseConfig(
                db=database.db,
                host=os.environ.get("DB_HOST", database.host),
                port=int(os.environ.get("DB_PORT", database.port)),
                username=os.environ.get("DB_USERNAME", database.username),
                password=os.environ.get("DB_PASSWORD", database.password),
                dbname=os.environ.get("DB_NAME", database.dbname),
            ),
            pool_min_size=int(os.environ.get("DB_POOL_MIN_SIZE", 1)),
            pool_max_size=int(os.environ.get("DB_POOL_MAX_SIZE", 10)),
            connect_timeout=float(os.environ.get("DB_CONNECT_TIMEOUT", 10.0)),
            statement_timeout_ms=int(os.environ.get("DB_STATEMENT_TIMEOUT_MS", 0)),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )


def load_server_config(path: Path) -> dict:
    """Read the static server config document."""
    try:
        with open(path) as f:
            document = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid server config {path}: {e}") from e

    if not isinstance(document, dict):
        raise ConfigError(f"Invalid server config {path}: expected an object")
    return document


def _database_from_document(section: dict) -> DatabaseConfig:
    if not isinstance(section, dict):
        raise ConfigError("db_Config must be an object")

    defaults = DatabaseConfig()
    return DatabaseConfig(
        db=section.get("db", defaults.db),
        host=section.get("host", defaults.host),
        port=int(section.get("port", defaults.port)),
        username=section.get("username", defaults.username),
        password=section.get("password", defaults.password),
        dbname=section.get("dbname", defaults.dbname),
    )


config = Config.from_env()
