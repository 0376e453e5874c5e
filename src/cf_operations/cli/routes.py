"""CLI handler for ``cf-operations routes <command>``."""

from __future__ import annotations

import asyncio
import logging
import sys
from argparse import Namespace

from cf_operations.cli.report import format_json, format_table
from cf_operations.client.base import PlatformClient, create_client
from cf_operations.client.http import TransportError
from cf_operations.config import OperationsConfig, load_config
from cf_operations.errors import ConfigurationError, OperationsError
from cf_operations.jobs import JobPoller
from cf_operations.pagination import collect
from cf_operations.routes import Level, RouteOrchestrator
from cf_operations.telemetry import LoggerTelemetrySink

logger = logging.getLogger(__name__)


def _load(args: Namespace) -> OperationsConfig:
    return load_config(
        args.config,
        api_url=args.api_url,
        organization=args.organization,
        space=args.space,
    )


async def _orchestrator(
    client: PlatformClient, config: OperationsConfig
) -> RouteOrchestrator:
    if not config.organization:
        raise ConfigurationError("No organization targeted; pass --organization")
    telemetry = LoggerTelemetrySink()
    poller = JobPoller(
        client,
        poll_interval=config.poll_interval_seconds,
        timeout=config.poll_timeout_seconds,
        telemetry_sink=telemetry,
    )
    return await RouteOrchestrator.for_names(
        client,
        organization=config.organization,
        space=config.space,
        poller=poller,
        telemetry_sink=telemetry,
    )


async def _dispatch(args: Namespace, routes: RouteOrchestrator) -> str:
    command = args.routes_command
    if command == "list":
        records = await collect(routes.list(Level(args.level)))
        return format_json(records) if args.json else format_table(records)
    if command == "check":
        exists = await routes.check(args.domain, args.hostname, args.path)
        return "Route exists" if exists else "Route does not exist"
    if command == "create":
        route = await routes.create(args.domain, args.space_name, args.hostname, args.path)
        return f"Route {route.id} is ready"
    if command == "map":
        await routes.map(args.application, args.domain, args.hostname, args.path)
        return f"Mapped route to {args.application}"
    if command == "unmap":
        await routes.unmap(args.application, args.domain, args.hostname, args.path)
        return f"Unmapped route from {args.application}"
    if command == "delete":
        await routes.delete(args.domain, args.hostname, args.path)
        return "Route deleted"
    if command == "delete-orphaned":
        deleted = await routes.delete_orphaned_routes()
        return f"Deleted {len(deleted)} orphaned route(s)"
    raise ConfigurationError(f"Unknown routes command: {command}")


async def _run(args: Namespace, config: OperationsConfig) -> str:
    client = create_client("http", config)
    try:
        routes = await _orchestrator(client, config)
        return await _dispatch(args, routes)
    finally:
        aclose = getattr(client, "aclose", None)
        if aclose is not None:
            await aclose()


def run_routes(args: Namespace) -> None:
    try:
        config = _load(args)
        output = asyncio.run(_run(args, config))
    except (OperationsError, TransportError) as exc:
        logger.debug("routes %s failed", args.routes_command, exc_info=exc)
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    print(output)
