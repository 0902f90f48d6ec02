"""keymint CLI: run the JWKS server or prepare its database."""

import argparse
import asyncio
import sys

from keymint.config import DEFAULT_HOST, DEFAULT_PORT


def main() -> None:
    """Entry point for the ``keymint`` console script."""
    parser = argparse.ArgumentParser(prog="keymint", description="keymint JWKS server")
    sub = parser.add_subparsers(dest="command")

    serve_cmd = sub.add_parser("serve", help="Run the JWKS server")
    serve_cmd.add_argument("--host", default=DEFAULT_HOST, help=f"Bind address (default {DEFAULT_HOST})")
    serve_cmd.add_argument("--port", type=int, default=DEFAULT_PORT, help=f"Port (default {DEFAULT_PORT})")
    serve_cmd.add_argument(
        "--database-path",
        default=None,
        help="SQLite key database (default: $DB_FILE or totally_not_my_privateKeys.db)",
    )
    serve_cmd.add_argument(
        "--log-level",
        default="info",
        choices=["critical", "error", "warning", "info", "debug"],
        help="uvicorn log level",
    )

    migrate_cmd = sub.add_parser("migrate", help="Create or upgrade the key database")
    migrate_cmd.add_argument(
        "--database-path",
        default=None,
        help="SQLite key database (default: $DB_FILE or totally_not_my_privateKeys.db)",
    )

    args = parser.parse_args()
    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "serve":
        _serve(args.host, args.port, args.database_path, args.log_level)
    elif args.command == "migrate":
        asyncio.run(_migrate(args.database_path))


def _serve(host: str, port: int, database_path: str | None, log_level: str) -> None:
    """Build the app and hand it to uvicorn (lifespan seeds the store)."""
    import uvicorn

    from keymint.keymint import KeyMint

    app = KeyMint(database_path).create_app()
    uvicorn.run(app, host=host, port=port, log_level=log_level)


async def _migrate(database_path: str | None) -> None:
    """Apply bundled migrations to the key database."""
    from keymint.keymint import KeyMint

    keymint = KeyMint(database_path)
    try:
        await keymint.migrate()
        print(f"keymint migrations applied to {keymint.config.database_path}")
    finally:
        await keymint.dispose()
