"""CLI entry point for the job aggregator."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from jobhub.core.config import Settings
from jobhub.core.db import init_db
from jobhub.core.errors import JobHubError
from jobhub.core.schemas import JobFilters
from jobhub.pipeline.scheduler import JobScheduler
from jobhub.providers import JOB_PROVIDERS
from jobhub.providers.settings_store import ProviderSettingsStore
from jobhub.search.service import search_jobs

DEFAULT_CONFIG = "config/settings.yaml"


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG,
        help=f"Path to settings YAML file (default: {DEFAULT_CONFIG})",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Job aggregator - sync providers into SQLite and search the results",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- scheduler subcommands ---
    sync_parser = subparsers.add_parser("sync", help="Run every provider that is due for a refresh")
    _add_common(sync_parser)

    run_parser = subparsers.add_parser("run", help="Force one provider to run")
    run_parser.add_argument("--provider", required=True, help="Provider id (see 'providers')")
    _add_common(run_parser)

    run_all_parser = subparsers.add_parser("run-all", help="Force every configured provider to run")
    _add_common(run_all_parser)

    status_parser = subparsers.add_parser("status", help="Show run telemetry per provider")
    _add_common(status_parser)

    # --- provider settings ---
    configure_parser = subparsers.add_parser("configure", help="Store endpoint/token for a provider")
    configure_parser.add_argument("--provider", required=True, help="Provider id")
    configure_parser.add_argument("--endpoint", help="Endpoint URL (empty string clears it)")
    configure_parser.add_argument("--token", help="Bearer token (empty string clears it)")
    configure_parser.add_argument(
        "--header",
        action="append",
        default=None,
        metavar="NAME=VALUE",
        help="Extra request header; repeat for several",
    )
    _add_common(configure_parser)

    # --- search ---
    search_parser = subparsers.add_parser("search", help="Search stored jobs")
    search_parser.add_argument("--query", help="Free-text query")
    search_parser.add_argument("--category", help="Exact category")
    search_parser.add_argument("--provider", help="Exact provider id")
    search_parser.add_argument("--location", help="Location substring")
    search_parser.add_argument("--remote-only", action="store_true", help="Only remote jobs")
    search_parser.add_argument("--min-salary", type=float, help="Minimum salary")
    search_parser.add_argument("--max-salary", type=float, help="Maximum salary")
    search_parser.add_argument("--tag", action="append", default=[], help="Required tag; repeat for several")
    search_parser.add_argument("--limit", type=int, help="Page size")
    search_parser.add_argument("--offset", type=int, default=0, help="Rows to skip (default: 0)")
    _add_common(search_parser)

    providers_parser = subparsers.add_parser("providers", help="List provider ids")
    _add_common(providers_parser)

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def load_settings(path: str) -> Settings:
    """Load settings; a missing default config falls back to built-in defaults."""
    if path == DEFAULT_CONFIG and not Path(path).exists():
        return Settings()
    return Settings.from_yaml(path)


def _parse_headers(values: list[str] | None) -> dict[str, str] | None:
    if values is None:
        return None
    headers: dict[str, str] = {}
    for value in values:
        name, sep, header_value = value.partition("=")
        if not sep or not name.strip():
            msg = f"Invalid header '{value}', expected NAME=VALUE"
            raise ValueError(msg)
        headers[name.strip()] = header_value.strip()
    return headers


async def cmd_scheduler(args: argparse.Namespace, settings: Settings) -> str:
    conn = init_db(settings.database.path)
    try:
        scheduler = JobScheduler(conn, settings)
        if args.command == "sync":
            summary = await scheduler.sync_due_providers()
        elif args.command == "run":
            summary = await scheduler.run_provider(args.provider)
        else:
            summary = await scheduler.run_all_providers()
        return summary.model_dump_json(indent=2)
    finally:
        conn.close()


def cmd_status(settings: Settings) -> str:
    conn = init_db(settings.database.path)
    try:
        statuses = JobScheduler(conn, settings).provider_status()
        return json.dumps([s.model_dump() for s in statuses], indent=2)
    finally:
        conn.close()


def cmd_configure(args: argparse.Namespace, settings: Settings) -> str:
    patch: dict[str, object] = {}
    if args.endpoint is not None:
        patch["endpoint"] = args.endpoint
    if args.token is not None:
        patch["auth_token"] = args.token
    headers = _parse_headers(args.header)
    if headers is not None:
        patch["headers"] = headers

    conn = init_db(settings.database.path)
    try:
        store = ProviderSettingsStore(conn, settings.providers)
        updated = store.upsert_settings(args.provider, patch)
    finally:
        conn.close()
    return json.dumps(
        {
            "provider_id": args.provider,
            "endpoint": updated.endpoint,
            "has_auth_token": bool(updated.auth_token),
        },
        indent=2,
    )


async def cmd_search(args: argparse.Namespace, settings: Settings) -> str:
    filters = JobFilters(
        query=args.query,
        category=args.category,
        provider=args.provider,
        location=args.location,
        remote_only=args.remote_only,
        min_salary=args.min_salary,
        max_salary=args.max_salary,
        tags=args.tag,
        limit=args.limit,
        offset=args.offset,
    )
    conn = init_db(settings.database.path)
    try:
        result = await search_jobs(conn, filters, config=settings.search)
    finally:
        conn.close()
    return result.model_dump_json(indent=2)


def cmd_providers() -> str:
    return "\n".join(f"{p.id}\t{p.label}" for p in JOB_PROVIDERS)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = load_settings(args.config)
        if args.command in ("sync", "run", "run-all"):
            output = asyncio.run(cmd_scheduler(args, settings))
        elif args.command == "status":
            output = cmd_status(settings)
        elif args.command == "configure":
            output = cmd_configure(args, settings)
        elif args.command == "search":
            output = asyncio.run(cmd_search(args, settings))
        else:
            output = cmd_providers()
    except (JobHubError, FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(output)


if __name__ == "__main__":
    main()
