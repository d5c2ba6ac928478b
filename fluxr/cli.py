"""CLI entry point for the Fluxr board.

Usage:
  python -m fluxr list [--product SLUG --user ID] [--kind feature] [--search TEXT]
  python -m fluxr move <item_id> <status> [--index N]
  python -m fluxr add <kind> <name> [--description TEXT] [--priority must-have]
  python -m fluxr delete <item_id>
  python -m fluxr generate "<product description>" [--count 8]
  python -m fluxr board
  python -m fluxr ask "<request>"

Every command accepts --mock to run against a seeded in-memory board.
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from .board.exceptions import ItemNotFoundError, ProductNotFoundError, SyncError
from .board.models import COLUMNS, ItemKind
from .log import configure_logging


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--product", default=None, help="Product slug")
    common.add_argument("--user", default=None, help="Owner user ID")
    common.add_argument("--config", default=None, help="Path to fluxr.yaml")
    common.add_argument("--mock", action="store_true", help="Use a seeded in-memory board")
    common.add_argument("--log-level", default="WARNING", help="Log level (default: WARNING)")
    common.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")

    parser = argparse.ArgumentParser(description="Fluxr board CLI")
    subparsers = parser.add_subparsers(dest="command")

    list_parser = subparsers.add_parser("list", parents=[common], help="Show the board")
    list_parser.add_argument("--kind", action="append", default=[],
                             choices=[k.value for k in ItemKind], help="Only show this kind")
    list_parser.add_argument("--priority", action="append", default=[], help="Only show this priority")
    list_parser.add_argument("--search", default="", help="Match name or description")

    move_parser = subparsers.add_parser("move", parents=[common], help="Move an item")
    move_parser.add_argument("item_id", help="Item ID")
    move_parser.add_argument("status", choices=[c.id for c in COLUMNS], help="Target column")
    move_parser.add_argument("--index", type=int, default=0, help="Index in the target column")

    add_parser = subparsers.add_parser("add", parents=[common], help="Add an item")
    add_parser.add_argument("kind", choices=[k.value for k in ItemKind], help="Item kind")
    add_parser.add_argument("name", help="Item name")
    add_parser.add_argument("--description", default="", help="Item description")
    add_parser.add_argument("--priority", default=None, help="must-have, nice-to-have or not-prioritized")

    delete_parser = subparsers.add_parser("delete", parents=[common], help="Delete an item")
    delete_parser.add_argument("item_id", help="Item ID")

    generate_parser = subparsers.add_parser("generate", parents=[common], help="Generate features with Claude")
    generate_parser.add_argument("description", help="Product description")
    generate_parser.add_argument("--count", type=int, default=8, help="Number of features")
    generate_parser.add_argument("--model", default=None, help="Claude model (default: from config)")

    subparsers.add_parser("board", parents=[common], help="Open the terminal board")

    ask_parser = subparsers.add_parser("ask", parents=[common], help="Ask Claude to work the board")
    ask_parser.add_argument("request", help="What to do, e.g. 'move the login feature to done'")
    ask_parser.add_argument("--model", default=None, help="Claude model (default: from config)")

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    configure_logging(args.log_level, json_format=args.json_logs)

    if args.command == "board":
        _board_command(args)
        return

    commands = {
        "list": _list_command,
        "move": _move_command,
        "add": _add_command,
        "delete": _delete_command,
        "generate": _generate_command,
        "ask": _ask_command,
    }
    asyncio.run(commands[args.command](args))


def _build_service(args):
    """Return (service, config, product_slug, user_id) for the parsed args."""
    from .board.service import BoardService
    from .config import load_config

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.mock:
        from .store.memory import DEMO_SLUG, DEMO_USER, demo_store
        store = demo_store(versioned=config.versioned_writes)
        slug = args.product or DEMO_SLUG
        user = args.user or DEMO_USER
    else:
        if not config.supabase_url or not config.supabase_key:
            print("Error: supabase_url and supabase_key are not configured", file=sys.stderr)
            print("Use --mock to try the board without a backend.", file=sys.stderr)
            sys.exit(1)
        if not args.product or not args.user:
            print("Error: --product and --user are required", file=sys.stderr)
            sys.exit(1)
        from .store.supabase import SupabaseStore
        store = SupabaseStore.from_config(config)
        slug, user = args.product, args.user

    return BoardService(store, config), config, slug, user


async def _load(args):
    service, config, slug, user = _build_service(args)
    try:
        await service.load(slug, user)
    except ProductNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except SyncError as e:
        print(f"Error: {e.user_message}", file=sys.stderr)
        sys.exit(1)
    return service, config


def _format_item(item) -> str:
    return f"  [{item.kind.value}] {item.id}  {item.name}  ({item.effective_priority})"


async def _list_command(args) -> None:
    service, _ = await _load(args)
    for kind in args.kind:
        service.filters.toggle_type(kind)
    for priority in args.priority:
        service.filters.toggle_priority(priority)
    service.filters.set_search(args.search)

    columns = service.columns()
    for column in COLUMNS:
        items = columns[column.id]
        print(f"{column.title} ({len(items)})")
        for item in items:
            print(_format_item(item))
        print()


async def _move_command(args) -> None:
    service, _ = await _load(args)
    result = await service.move_item(args.item_id, args.status, args.index)
    if result.error:
        print(f"Error: {result.error}", file=sys.stderr)
        sys.exit(1)
    if not result.changed:
        print(f"No change ({result.outcome.value})")
        return
    item = service.get(args.item_id)
    print(f"Moved {item.id} to {item.status} at {item.position}")


async def _add_command(args) -> None:
    service, _ = await _load(args)
    try:
        item = await service.add_item(
            ItemKind(args.kind), args.name,
            description=args.description, priority=args.priority,
        )
    except SyncError as e:
        print(f"Error: {e.user_message}", file=sys.stderr)
        sys.exit(1)
    print(f"Added {item.kind.value} {item.id}: {item.name}")


async def _delete_command(args) -> None:
    service, _ = await _load(args)
    try:
        await service.delete_item(args.item_id)
    except ItemNotFoundError:
        print(f"Error: Item not found: {args.item_id}", file=sys.stderr)
        sys.exit(1)
    except SyncError as e:
        print(f"Error: {e.user_message}", file=sys.stderr)
        sys.exit(1)
    print(f"Deleted {args.item_id}")


async def _generate_command(args) -> None:
    service, config = await _load(args)

    if args.mock:
        from .generation import MockFeatureGenerator
        generator = MockFeatureGenerator()
    else:
        from .generation import FeatureGenerator
        generator = FeatureGenerator(
            model=args.model or config.llm_model, timeout=config.llm_timeout_seconds,
        )

    try:
        rows = await generator.generate(args.description, count=args.count)
    except (RuntimeError, ValueError) as e:
        print(f"Feature generation failed: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        created = await service.import_generated(rows)
    except SyncError as e:
        print(f"Error: {e.user_message}", file=sys.stderr)
        sys.exit(1)
    print(f"Added {len(created)} features:")
    for item in created:
        print(_format_item(item))


async def _ask_command(args) -> None:
    from .tools.assistant import run_assistant

    service, config = await _load(args)
    try:
        await run_assistant(
            args.request, service,
            model=args.model or config.llm_model, timeout=config.llm_timeout_seconds,
        )
    except RuntimeError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def _board_command(args) -> None:
    from fluxr_tui.app import FluxrBoardApp

    service, _, slug, user = _build_service(args)
    FluxrBoardApp(service, product_slug=slug, user_id=user).run()


if __name__ == "__main__":
    main()
