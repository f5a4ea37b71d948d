#!/usr/bin/env python3
"""Pipeline Library CLI - management utility for the pipeline library service."""

import argparse
import asyncio
import json
import os
import sys
from datetime import timedelta
from pathlib import Path

from pipeline_library.settings import settings
from pipeline_library.utils.db_manager import db_manager
from pipeline_library.utils.logger import logger

TOKEN_ENV_VAR = "PIPELINE_LIBRARY_TOKEN"


def init_project(path: str) -> None:
    """Create a settings file and an empty stage library directory."""
    project_path = Path(path).resolve()
    stages_dir = project_path / "stages"
    stages_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"Created directory: {stages_dir}")

    settings_content = f"""# Pipeline Library Configuration File

# Server settings
port = 8000
host = "127.0.0.1"
debug = false

# STANDALONE, CLUSTER or SLAVE
execution_mode = "STANDALONE"

# Database settings
database_driver = "sqlite"
database_name = "pipeline_library"

# Directory with stage definition JSON files
stage_library_dir = "{stages_dir.as_posix()}"

# Security (change in production!)
secret_key = "change-this-secret-key-in-production"
"""

    settings_file = project_path / "settings.toml"
    if not settings_file.exists():
        settings_file.write_text(settings_content)
        logger.info(f"Created settings file: {settings_file}")

    logger.info(f"Project initialized at {project_path}")


def run_server(host: str | None = None, port: int | None = None) -> None:
    """Run the Pipeline Library server."""
    import uvicorn

    host = host or settings.host
    port = port or settings.port

    logger.info(f"Starting Pipeline Library server at http://{host}:{port}")

    uvicorn.run(
        "pipeline_library.api.app:app",
        host=host,
        port=port,
        reload=settings.debug,
        log_level="info" if settings.debug else "warning",
    )


async def init_database() -> None:
    """Initialize the database with tables."""
    logger.info("Initializing database...")
    await db_manager.create_db_and_tables_async()
    await db_manager.close()
    logger.info("Database initialized successfully")


def issue_token(user: str, roles: list[str], expire_minutes: int | None) -> str:
    """Mint a bearer token signed with the configured secret key."""
    from pipeline_library.api.security import AuthzRole, create_access_token

    expires = timedelta(minutes=expire_minutes) if expire_minutes else None
    token = create_access_token(user, [AuthzRole(role) for role in roles], expires)
    return token.access_token


async def export_pipeline(url: str, token: str, name: str, rev: str, output: str | None) -> None:
    """Download a pipeline with its rule definitions as JSON."""
    from pipeline_library.client import PipelineLibraryClient

    async with PipelineLibraryClient(url, token=token) as client:
        bundle = await client.export_pipeline(name, rev)

    content = json.dumps(bundle.to_json(), indent=2)
    if output:
        Path(output).write_text(content)
        logger.info(f"Exported pipeline '{name}' to {output}")
    else:
        print(content)


async def import_pipeline(url: str, token: str, file: str, name: str | None) -> None:
    """Create a pipeline from a file written by ``export``."""
    from pipeline_library.client import PipelineLibraryClient
    from pipeline_library.envelopes import PipelineExportJson

    bundle = PipelineExportJson.model_validate_json(Path(file).read_text())
    if name is None:
        config = bundle.pipeline_config if isinstance(bundle.pipeline_config, dict) else {}
        name = (config.get("info") or {}).get("name") or Path(file).stem

    async with PipelineLibraryClient(url, token=token) as client:
        await client.import_pipeline(name, bundle)


def _add_remote_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--url",
        type=str,
        default=f"http://{settings.host}:{settings.port}",
        help="Server base URL",
    )
    parser.add_argument(
        "--token",
        type=str,
        default=os.environ.get(TOKEN_ENV_VAR),
        help=f"Bearer token (default: ${TOKEN_ENV_VAR})",
    )


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="pipeline-library", description="Pipeline Library - pipeline configuration store"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # init command
    init_parser = subparsers.add_parser("init", help="Initialize a new project directory")
    init_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path where to create the project (default: current directory)",
    )

    # run command
    run_parser = subparsers.add_parser("run", help="Run the server")
    run_parser.add_argument("--host", type=str, default=None, help="Host to bind to")
    run_parser.add_argument("--port", type=int, default=None, help="Port to bind to")

    # db command
    db_parser = subparsers.add_parser("db", help="Database management")
    db_subparsers = db_parser.add_subparsers(dest="db_command")
    db_subparsers.add_parser("init", help="Initialize database with tables")

    # token command
    token_parser = subparsers.add_parser("token", help="Print a bearer token")
    token_parser.add_argument("--user", type=str, required=True, help="Caller name")
    token_parser.add_argument(
        "--role",
        dest="roles",
        action="append",
        default=[],
        choices=["guest", "manager", "creator", "admin"],
        help="Role to grant (repeatable)",
    )
    token_parser.add_argument(
        "--expire-minutes", type=int, default=None, help="Token lifetime in minutes"
    )

    # export command
    export_parser = subparsers.add_parser("export", help="Export a pipeline with its rules")
    export_parser.add_argument("name", type=str, help="Pipeline name")
    export_parser.add_argument("--rev", type=str, default="0", help="Revision (default: head)")
    export_parser.add_argument("--output", "-o", type=str, default=None, help="Output file")
    _add_remote_arguments(export_parser)

    # import command
    import_parser = subparsers.add_parser("import", help="Import an exported pipeline")
    import_parser.add_argument("file", type=str, help="File written by export")
    import_parser.add_argument(
        "--name", type=str, default=None, help="Pipeline name (default: the exported name)"
    )
    _add_remote_arguments(import_parser)

    args = parser.parse_args(argv)

    if args.command == "init":
        init_project(args.path)
    elif args.command == "run":
        run_server(args.host, args.port)
    elif args.command == "db":
        if args.db_command == "init":
            asyncio.run(init_database())
        else:
            db_parser.print_help()
    elif args.command == "token":
        print(issue_token(args.user, args.roles, args.expire_minutes))
    elif args.command in ("export", "import"):
        if not args.token:
            logger.error(f"A bearer token is required (--token or ${TOKEN_ENV_VAR})")
            sys.exit(1)
        from pipeline_library.client import PipelineLibraryAPIError

        try:
            if args.command == "export":
                asyncio.run(export_pipeline(args.url, args.token, args.name, args.rev, args.output))
            else:
                asyncio.run(import_pipeline(args.url, args.token, args.file, args.name))
        except PipelineLibraryAPIError as e:
            logger.error(f"{e.message}: {e.detail}")
            sys.exit(1)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
