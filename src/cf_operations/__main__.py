"""CLI entry point: python -m cf_operations <command>."""

from __future__ import annotations

import argparse
import logging
import sys


def _add_route_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("domain", help="Domain name")
    parser.add_argument("--hostname", "-n", default=None, help="Route host")
    parser.add_argument("--path", default=None, help="Route path")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cf-operations",
        description="Route operations against a Cloud Foundry v2 API",
    )
    parser.add_argument("--config", default=None, help="Path to a YAML config file")
    parser.add_argument("--api-url", default=None, help="Platform API URL")
    parser.add_argument("--organization", "-o", default=None, help="Target organization")
    parser.add_argument("--space", "-s", default=None, help="Target space")
    parser.add_argument("--verbose", "-v", action="store_true", default=False)
    sub = parser.add_subparsers(dest="command")

    routes = sub.add_parser("routes", help="Manage routes")
    routes_sub = routes.add_subparsers(dest="routes_command")

    ls = routes_sub.add_parser("list", help="List routes")
    ls.add_argument("--level", choices=["organization", "space"], default="space")
    ls.add_argument("--json", action="store_true", default=False, help="Output as JSON")

    _add_route_arguments(routes_sub.add_parser("check", help="Check whether a route exists"))

    create = routes_sub.add_parser("create", help="Create a route (no-op if it exists)")
    _add_route_arguments(create)
    create.add_argument("space_name", metavar="SPACE", help="Space to create the route in")

    for name, help_text in (("map", "Map a route to an application"),
                            ("unmap", "Remove a route from an application")):
        cmd = routes_sub.add_parser(name, help=help_text)
        cmd.add_argument("application", help="Application name")
        _add_route_arguments(cmd)

    _add_route_arguments(routes_sub.add_parser("delete", help="Delete a route"))
    routes_sub.add_parser("delete-orphaned", help="Delete routes with no app or service")
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "routes" and args.routes_command:
        from cf_operations.cli.routes import run_routes
        run_routes(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
