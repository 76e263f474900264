#!/usr/bin/env python3
"""CLI entry point for the Contentful to Redis content cache."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .core.cache import ContentCache
from .core.client import ContentfulAPIError
from .core.errors import RedisContentfulError
from .models.config import CacheConfig

console = Console()

DEFAULT_CONFIG = "redis-contentful.yaml"


def setup_logging(verbose: bool) -> None:
    """Route library logging through Rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False, markup=False, rich_tracebacks=True)],
    )


def load_config(args: argparse.Namespace) -> CacheConfig:
    """Load the YAML config, or fall back to environment-only settings."""
    config_path = Path(args.config)
    if config_path.exists():
        return CacheConfig.load(config_path)
    if args.config != DEFAULT_CONFIG:
        raise FileNotFoundError(f"Config not found: {config_path}")
    return CacheConfig()


async def cmd_verify_auth(cache: ContentCache, args: argparse.Namespace) -> int:
    """Verify Contentful and Redis connectivity."""
    console.print("Verifying Contentful API credentials...", style="blue")
    if not await asyncio.to_thread(cache.operations.client.verify_connection):
        console.print("[red]Contentful returned an unexpected response")
        return 1
    console.print("[green]Contentful authentication successful!")

    console.print("Checking Redis connection...", style="blue")
    await cache.store.ping()
    console.print("[green]Redis reachable!")
    return 0


async def cmd_sync(cache: ContentCache, args: argparse.Namespace) -> int:
    """Sync Contentful into Redis."""
    if args.reset:
        console.print("[yellow](RESET - the cache will be wiped before syncing)")

    result = await cache.operations.sync(force_reset=args.reset)

    mode = "initial" if result.initial else "incremental"
    console.print(f"[green]{result.message}[/green] ({mode})")
    console.print(
        f"\n[bold]Summary:[/bold] {result.written} written, {result.deleted} deleted, "
        f"{result.skipped} filtered out"
    )
    return 0


async def cmd_get(cache: ContentCache, args: argparse.Namespace) -> int:
    """Query cached entries."""
    query: dict[str, object] = {"type": args.types if len(args.types) > 1 else args.types[0]}
    if args.search:
        query["search"] = args.search

    results = await cache.get(query)

    if args.json:
        console.print_json(json.dumps(results))
        return 0

    if not results:
        console.print("[yellow]No entries found.")
        return 0

    for content_type, entries in results.items():
        table = Table(title=f"\n{content_type} ({len(entries)})")
        table.add_column("ID")
        table.add_column("Updated At")
        table.add_column("Fields")

        for entry in entries:
            fields = [k for k in entry if k not in ("id", "type", "createdAt", "updatedAt")]
            table.add_row(entry.get("id", ""), entry.get("updatedAt") or "", ", ".join(fields))

        console.print(table)

    return 0


async def cmd_status(cache: ContentCache, args: argparse.Namespace) -> int:
    """Show sync status."""
    status = await cache.status()

    console.print(f"\n[bold]State Key:[/bold] {status['namespace']}")
    console.print(f"[bold]Database:[/bold] {status['database']}")
    console.print(f"[bold]Next Sync Token:[/bold] {status['next_sync_token']}")
    console.print(f"[bold]Last Sync:[/bold] {status['last_sync'] or 'Never'}")

    if not status["synced"]:
        console.print("\n[yellow]Not synced yet. The next sync will be an initial sync.")
    return 0


async def cmd_custom(cache: ContentCache, args: argparse.Namespace) -> int:
    """Read, write or delete custom keys."""
    if args.custom_command == "get":
        value = await cache.get_custom(args.key)
        if value is None:
            console.print(f"[yellow]{args.key}: not set")
            return 1
        console.print_json(json.dumps(value))
    elif args.custom_command == "set":
        try:
            value = json.loads(args.value)
        except json.JSONDecodeError:
            value = args.value
        await cache.set_custom(args.key, value, args.expire)
        console.print(f"[green]Set {args.key}")
    elif args.custom_command == "delete":
        removed = await cache.delete_custom(args.key)
        console.print(f"[green]Deleted {removed} key(s)")
    else:
        console.print("[red]Specify get, set or delete")
        return 1
    return 0


COMMANDS = {
    "verify-auth": cmd_verify_auth,
    "sync": cmd_sync,
    "get": cmd_get,
    "status": cmd_status,
    "custom": cmd_custom,
}


async def run_command(args: argparse.Namespace) -> int:
    """Build the cache, run one command and close the connection."""
    config = load_config(args)
    if args.database is not None:
        config.redis.database = args.database

    async with ContentCache(config) as cache:
        return await COMMANDS[args.command](cache, args)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="redis-contentful",
        description="Mirror Contentful entries into Redis and query them",
    )
    parser.add_argument("--config", default=DEFAULT_CONFIG, help=f"Config file (default: {DEFAULT_CONFIG})")
    parser.add_argument("--database", type=int, help="Redis database index override")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # verify-auth command
    subparsers.add_parser("verify-auth", help="Verify Contentful and Redis connectivity")

    # sync command
    sync_parser = subparsers.add_parser("sync", help="Sync Contentful into Redis")
    sync_parser.add_argument("--reset", action="store_true", help="Wipe the cache and run a full sync")

    # get command
    get_parser = subparsers.add_parser("get", help="Query cached entries by type")
    get_parser.add_argument("types", nargs="+", help="Content type id(s); '*' for any")
    get_parser.add_argument("--search", help="Identifier glob (e.g. 'hello*')")
    get_parser.add_argument("--json", action="store_true", help="Print raw JSON")

    # status command
    subparsers.add_parser("status", help="Show sync status")

    # custom commands
    custom_parser = subparsers.add_parser("custom", help="Custom key access")
    custom_subparsers = custom_parser.add_subparsers(dest="custom_command")

    custom_get = custom_subparsers.add_parser("get", help="Read a custom key")
    custom_get.add_argument("key", help="Redis key")

    custom_set = custom_subparsers.add_parser("set", help="Write a custom key")
    custom_set.add_argument("key", help="Redis key")
    custom_set.add_argument("value", help="JSON value (plain strings accepted)")
    custom_set.add_argument("--expire", type=int, help="Time to live in seconds")

    custom_delete = custom_subparsers.add_parser("delete", help="Delete a custom key")
    custom_delete.add_argument("key", help="Redis key")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.verbose)

    try:
        return asyncio.run(run_command(args))
    except (RedisContentfulError, ContentfulAPIError) as e:
        console.print(f"[red]Error: {e}")
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Configuration error: {e}")

    return 1


if __name__ == "__main__":
    sys.exit(main())
