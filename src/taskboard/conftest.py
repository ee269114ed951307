# src/taskboard/conftest.py
"""
Pytest configuration and shared fixtures.

Tests are co-located with implementation files using the *_test.py suffix.
Unit tests use the fakes from taskboard.testing and need no database. Integration tests
request db_connection (or a service fixture built on it) and are skipped
when no PostgreSQL server is reachable.
"""

import os

# Set environment BEFORE importing any app modules
os.environ["TASKBOARD_ENV"] = "test"
os.environ.setdefault("DB_NAME", "taskboard_test")

from dataclasses import replace
from pathlib import Path

import psycopg
import pytest
from psycopg import sql

from taskboard.config import config
from taskboard.db import ConnectionRegistry
from taskboard.testing import FakeConnection, FakeCursor

TABLES = ["comments", "tasks", "projects", "users", "roles"]

# =============================================================================
# Fake Store Fixtures
# =============================================================================


@pytest.fixture
def fake_cursor():
    return FakeCursor()


@pytest.fixture
def fake_registry(fake_cursor):
    """A registry whose connection is a FakeConnection."""
    registry = ConnectionRegistry()
    registry.set_connection_override(FakeConnection(fake_cursor))
    return registry


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def test_db():
    """
    Create test database and schema once per test session.

    This fixture:
    1. Drops the test database if it exists (clean slate)
    2. Creates a fresh test database
    3. Applies all migrations

    Skips dependent tests when the server cannot be reached.
    """
    database = config.database
    admin = replace(database, dbname="postgres")

    try:
        conn = psycopg.connect(admin.conninfo, autocommit=True, connect_timeout=3)
    except psycopg.OperationalError as e:
        pytest.skip(f"PostgreSQL not available: {e}")

    with conn:
        with conn.cursor() as cur:
            # Terminate existing connections to test database
            cur.execute(
                """
                SELECT pg_terminate_backend(pg_stat_activity.pid)
                FROM pg_stat_activity
                WHERE pg_stat_activity.datname = %s
                AND pid <> pg_backend_pid()
                """,
                (database.dbname,),
            )
            cur.execute(sql.SQL("DROP DATABASE IF EXISTS {}").format(sql.Identifier(database.dbname)))
            cur.execute(sql.SQL("CREATE DATABASE {}").format(sql.Identifier(database.dbname)))

    # Apply schema migrations
    migrations_dir = Path(__file__).parent.parent.parent / "migrations"
    schema_file = migrations_dir / "001_initial_schema.sql"

    if not schema_file.exists():
        raise FileNotFoundError(f"Migration file not found: {schema_file}")

    with psycopg.connect(database.conninfo) as conn:
        with conn.cursor() as cur:
            cur.execute(schema_file.read_text())
        conn.commit()

    yield database


@pytest.fixture
async def db_connection(test_db):
    """
    Provide a database connection with transaction rollback.

    Each test runs in a transaction that is rolled back at the end,
    ensuring tests don't affect each other.
    """
    conn = await psycopg.AsyncConnection.connect(test_db.conninfo)

    # Clean slate: truncate all tables before each test
    async with conn.cursor() as cur:
        await cur.execute(
            sql.SQL("TRUNCATE {} RESTART IDENTITY CASCADE").format(
                sql.SQL(", ").join(map(sql.Identifier, TABLES))
            )
        )
    await conn.commit()

    # Statements issued by the accessors become savepoints inside this block
    async with conn.transaction(force_rollback=True):
        yield conn

    await conn.close()


@pytest.fixture
def registry(db_connection):
    """Provide a ConnectionRegistry bound to the test transaction."""
    registry = ConnectionRegistry()
    registry.set_connection_override(db_connection)
    yield registry
    registry.clear_connection_override()


# =============================================================================
# Service Fixtures
# =============================================================================


@pytest.fixture
def role_service(registry):
    from taskboard.role import RoleService

    return RoleService(registry)


@pytest.fixture
def user_service(registry):
    from taskboard.user import UserService

    return UserService(registry)


@pytest.fixture
def project_service(registry):
    from taskboard.project import ProjectService

    return ProjectService(registry)


@pytest.fixture
def task_service(registry):
    from taskboard.task import TaskService

    return TaskService(registry)


@pytest.fixture
def comment_service(registry):
    from taskboard.comment import CommentService

    return CommentService(registry)


# =============================================================================
# Seed Data Fixtures
# =============================================================================


@pytest.fixture
async def sample_role(role_service) -> dict:
    """Create a single test role."""
    result = await role_service.create({"name": "admin", "description": "full access"})
    return result.data


@pytest.fixture
async def sample_user(user_service, sample_role) -> dict:
    result = await user_service.create(
        {
            "username": "jdoe",
            "email": "jdoe@example.com",
            "full_name": "Jamie Doe",
            "role_id": sample_role["id"],
        }
    )
    return result.data


@pytest.fixture
async def sample_project(project_service, sample_user) -> dict:
    result = await project_service.create(
        {"name": "Website relaunch", "owner_id": sample_user["id"]}
    )
    return result.data


@pytest.fixture
async def sample_tasks(task_service, sample_project, sample_user) -> list[dict]:
    """Create three tasks in one project; the first two assigned to sample_user."""
    tasks = [
        {"name": "Draft copy", "status": "in_progress", "assignee_id": sample_user["id"]},
        {"name": "Review copy", "status": "not_started", "assignee_id": sample_user["id"]},
        {"name": "Publish", "status": "not_started"},
    ]

    created = []
    for task in tasks:
        result = await task_service.create({**task, "project_id": sample_project["id"]})
        created.append(result.data)
    return created
