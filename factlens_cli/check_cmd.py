# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 FactLens Contributors

"""
Check CLI Commands

Commands:
- check: Run one content check and print the boundary JSON response
- sources: List the trusted source directory in ranking order

Exit codes: 0 on success, 1 when the check failed (the error body is still
printed), 2 for usage errors, 130 when interrupted.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, NoReturn

from factlens_core.config import FactLensConfig
from factlens_core.engine import FactLensEngine, load_source_directory


def _read_content(args: argparse.Namespace) -> str:
    if args.content is not None and args.content != "-":
        return args.content
    return sys.stdin.read()


async def _run_check(config: FactLensConfig, payload: dict[str, Any]) -> tuple[int, dict[str, Any]]:
    async with FactLensEngine(config) as engine:
        return await engine.check(payload)


def cmd_check(args: argparse.Namespace) -> int:
    """Check one piece of content."""
    config = FactLensConfig.from_env()
    if args.provider:
        config = config.model_copy(update={"reasoning_provider": args.provider})

    payload = {"type": args.type, "content": _read_content(args)}
    status, body = asyncio.run(_run_check(config, payload))

    print(json.dumps(body, ensure_ascii=False, indent=2 if args.pretty else None))
    if status != 200:
        print(f"Check failed with status {status}", file=sys.stderr)
        return 1
    return 0


def cmd_sources(args: argparse.Namespace) -> int:
    """List trusted sources."""
    config = FactLensConfig.from_env()
    directory = load_source_directory(config)
    for entry in directory:
        print(f"{entry.domain:<24} {entry.category:<20} {entry.title}")
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="factlens",
        description="FactLens content reliability checks",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging on stderr",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    check_parser = subparsers.add_parser(
        "check",
        help="Check text, a URL or an image",
    )
    check_parser.add_argument(
        "--type", "-t",
        choices=["text", "url", "image"],
        default="text",
        help="Content type (default: text)",
    )
    check_parser.add_argument(
        "--content", "-c",
        help="Content to check; omit or pass '-' to read stdin",
    )
    check_parser.add_argument(
        "--provider",
        choices=["messages", "openai"],
        help="Override FACTLENS_REASONING_PROVIDER",
    )
    check_parser.add_argument(
        "--pretty",
        action="store_true",
        help="Indent the JSON output",
    )
    check_parser.set_defaults(func=cmd_check)

    sources_parser = subparsers.add_parser(
        "sources",
        help="List the trusted source directory",
    )
    sources_parser.set_defaults(func=cmd_sources)

    return parser


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point for the FactLens CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        exit_code = args.func(args)
        sys.exit(exit_code)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(130)
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
