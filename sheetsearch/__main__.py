"""
CLI entry point for SheetSearch.

Usage:
    python -m sheetsearch serve --port 8090
    python -m sheetsearch fetch https://docs.google.com/spreadsheets/d/e/.../pubhtml
    python -m sheetsearch fetch URL --query "report q3"
"""

import argparse
import logging
import os
import sys

from .core.exceptions import SheetSearchError
from .core.inventory import InventoryStore
from .core.refresh import RefreshController
from .core.search import search


def serve(args) -> int:
    import uvicorn

    from .api.main import app

    uvicorn.run(app, host=args.host, port=args.port)
    return 0


def fetch(args) -> int:
    controller = RefreshController("cli", store=InventoryStore(), source_url=args.url)
    try:
        controller.set_source_url(args.url)
    except SheetSearchError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if controller.error is not None:
        print(f"Error: {controller.error}", file=sys.stderr)
        return 1

    store = controller.store
    if args.query:
        results = search(store.current, args.query)
        for sheet_name, records in results:
            print(f"{sheet_name} ({len(records)} files)")
            for record in records:
                print(f"  {record.location}\t{record.name}\t{record.created_label or ''}")
        if not results:
            print(f"No files match '{args.query}'")
        return 0

    size, unit = store.current_total_size()
    for sheet_name, count in store.record_counts().items():
        print(f"{sheet_name}: {count} files")
    print(f"Total: {store.total_records()} files, {size:.2f} {unit}")
    return 0


def main():
    parser = argparse.ArgumentParser(
        prog="sheetsearch",
        description="SheetSearch - search a published spreadsheet file inventory",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    serve_parser = commands.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default=os.getenv("HOST", "127.0.0.1"))
    serve_parser.add_argument("--port", type=int, default=int(os.getenv("PORT", "8090")))
    serve_parser.set_defaults(handler=serve)

    fetch_parser = commands.add_parser("fetch", help="Fetch a published sheet once and summarize it")
    fetch_parser.add_argument("url", help="Published spreadsheet (pubhtml) URL")
    fetch_parser.add_argument("--query", "-q", help="Only list files matching every term")
    fetch_parser.set_defaults(handler=fetch)

    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    sys.exit(args.handler(args))


if __name__ == "__main__":
    main()
