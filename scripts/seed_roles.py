"""Seed the default roles into the database."""
import asyncio
from http import HTTPStatus

from rich.console import Console

from taskboard.app import create_app
from taskboard.logging_config import configure_logging

console = Console()

DEFAULT_ROLES = [
    {"name": "admin", "description": "Full access to every project"},
    {"name": "manager", "description": "Manages projects and assigns tasks"},
    {"name": "member", "description": "Works on assigned tasks"},
    {"name": "viewer", "description": "Read-only access"},
]


async def seed() -> int:
    async with await create_app() as app:
        if not app.registry.is_connected:
            console.print("[red]Database unavailable, nothing seeded[/]")
            return 1

        for role in DEFAULT_ROLES:
            result = await app.roles.create(role)
            if result.status_code == HTTPStatus.CONFLICT:
                console.print(f"Skipping {role['name']} - already exists")
            elif result.is_success:
                console.print(f"Created: {result.data['name']} (id={result.data['id']})")
            else:
                console.print(f"[red]Failed to create {role['name']}: {result.message}[/]")
                return 1
    return 0


def main():
    configure_logging()
    raise SystemExit(asyncio.run(seed()))


if __name__ == "__main__":
    main()
