#!/usr/bin/env python3
"""Taskboard CLI for inspecting and editing records."""

import argparse
import asyncio
import sys

import questionary
from rich.console import Console
from rich.table import Table

from taskboard.app import SERVICES, create_app
from taskboard.config import config
from taskboard.logging_config import configure_logging
from taskboard.result import OperationResult

console = Console()


def parse_assignments(pairs: list[str]) -> dict:
    """Turn ["name=admin", "description=null"] into a partial record."""
    values = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"Expected key=value, got {pair!r}")
        values[key] = None if value == "null" else value
    return values


def render_records(records: list[dict], title: str) -> Table:
    table = Table(title=title)
    columns = list(records[0]) if records else []
    for column in columns:
        table.add_column(column)
    for record in records:
        table.add_row(*("" if record[c] is None else str(record[c]) for c in columns))
    return table


def print_result(result: OperationResult, entity: str) -> None:
    """Print an operation envelope."""
    color = "green" if result.is_success else "red"
    console.print(f"[{color}]{result.status} ({int(result.status_code)})[/]")

    if result.message:
        console.print(f"[{color}]{result.message}[/]")

    if isinstance(result.data, list):
        if not result.data:
            console.print(f"[dim]No {entity} found.[/]")
        else:
            console.print(render_records(result.data, entity))
    elif isinstance(result.data, dict):
        console.print(render_records([result.data], entity))


async def run(args: argparse.Namespace) -> int:
    async with await create_app(config) as app:
        service = app.service(args.entity)

        if args.command == "list":
            result = await service.find_all(parse_assignments(args.filters))
        elif args.command == "get":
            if len(args.ids) == 1:
                result = await service.find_one(args.ids[0])
            else:
                result = await service.find_by_ids(args.ids)
        elif args.command == "create":
            result = await service.create(parse_assignments(args.values))
        elif args.command == "update":
            result = await service.update(args.id, parse_assignments(args.values))
        elif args.command == "delete":
            existing = await service.find_one(args.id)
            if not existing.is_success:
                result = existing
            else:
                console.print(render_records([existing.data], args.entity))
                confirmed = args.yes or await questionary.confirm(
                    f"Delete this record from {args.entity}?", default=False
                ).ask_async()
                if not confirmed:
                    console.print("[dim]Cancelled.[/]")
                    return 0
                result = await service.delete(args.id)
        else:
            raise ValueError(f"Unknown command {args.command}")

    print_result(result, args.entity)
    return 0 if result.is_success else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Taskboard CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)
    entities = sorted(SERVICES)

    list_parser = subparsers.add_parser("list", help="List records, optionally filtered")
    list_parser.add_argument("entity", choices=entities)
    list_parser.add_argument("filters", nargs="*", metavar="field=value")

    get_parser = subparsers.add_parser("get", help="Show one or more records by id")
    get_parser.add_argument("entity", choices=entities)
    get_parser.add_argument("ids", nargs="+", metavar="id")

    create_parser = subparsers.add_parser("create", help="Create a record")
    create_parser.add_argument("entity", choices=entities)
    create_parser.add_argument("values", nargs="*", metavar="field=value")

    update_parser = subparsers.add_parser("update", help="Update fields of a record")
    update_parser.add_argument("entity", choices=entities)
    update_parser.add_argument("id")
    update_parser.add_argument("values", nargs="*", metavar="field=value")

    delete_parser = subparsers.add_parser("delete", help="Delete a record")
    delete_parser.add_argument("entity", choices=entities)
    delete_parser.add_argument("id")
    delete_parser.add_argument("-y", "--yes", action="store_true", help="Skip confirmation")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(config.log_level)

    try:
        return asyncio.run(run(args))
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))


if __name__ == "__main__":
    sys.exit(main())
