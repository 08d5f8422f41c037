"""Command-line utilities for inspecting and toggling platform feature flags."""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys

from ..common.errors import CFSessionError
from ..common.observability import configure_logging
from ..common.settings import SessionSettings, load_settings
from ..session import Session


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Inspect a Cloud Foundry endpoint")
    parser.add_argument("--api", default=os.getenv("CF_API"), help="API endpoint (default: $CF_API)")
    parser.add_argument("--user", default=os.getenv("CF_USERNAME"), help="Username (default: $CF_USERNAME)")
    parser.add_argument("--password", default=os.getenv("CF_PASSWORD"), help="Password (default: $CF_PASSWORD)")
    parser.add_argument("--skip-ssl-validation", action="store_true", help="Do not verify TLS certificates")
    parser.add_argument("--json", action="store_true", help="Output raw JSON")

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("info", help="Show the endpoint discovery document")
    subparsers.add_parser("flags", help="List feature flags")
    set_parser = subparsers.add_parser("set-flags", help="Enable or disable feature flags in order")
    set_parser.add_argument("assignments", nargs="+", metavar="NAME=true|false")

    return parser.parse_args(argv)


def parse_assignments(assignments: list[str]) -> dict[str, bool]:
    flags: dict[str, bool] = {}
    for item in assignments:
        name, sep, value = item.partition("=")
        normalized = value.strip().lower()
        if not sep or not name or normalized not in {"true", "false"}:
            raise SystemExit(f"Invalid flag assignment '{item}', expected NAME=true|false")
        flags[name.strip()] = normalized == "true"
    return flags


def print_flags(flags: dict[str, bool]) -> None:
    width = max((len(name) for name in flags), default=4)
    print(f"{'name'.ljust(width)}  state")
    print(f"{'-' * width}  --------")
    for name in sorted(flags):
        print(f"{name.ljust(width)}  {'enabled' if flags[name] else 'disabled'}")


async def run(args: argparse.Namespace, settings: SessionSettings | None = None) -> int:
    session = await Session.create(
        args.api,
        args.user,
        args.password,
        skip_ssl_validation=args.skip_ssl_validation,
        settings=settings,
    )
    async with session:
        if args.command == "info":
            payload = session.info.model_dump(exclude={"password"})
            if args.json:
                print(json.dumps(payload, indent=2))
            else:
                for key, value in payload.items():
                    print(f"{key}: {value if value not in ('', None) else '-'}")
        elif args.command == "flags":
            flags = await session.get_feature_flags()
            if args.json:
                print(json.dumps(flags, indent=2, sort_keys=True))
            else:
                print_flags(flags)
        elif args.command == "set-flags":
            await session.set_feature_flags(args.flags)
            print("OK")
    return 0


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    if not args.api or not args.user or args.password is None:
        raise SystemExit("--api, --user and --password (or CF_API, CF_USERNAME, CF_PASSWORD) are required")
    args.flags = parse_assignments(args.assignments) if args.command == "set-flags" else {}

    try:
        settings = load_settings()
        configure_logging("cfsession", "DEBUG" if settings.debug else "WARNING")
        status = asyncio.run(run(args, settings))
    except CFSessionError as exc:
        print(f"FAILED: {exc}", file=sys.stderr)
        status = 1
    raise SystemExit(status)


if __name__ == "__main__":
    main()
