# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
binstash command line

Usage:
    binstash install jq ripgrep#stable
    binstash search rip --limit 5
    binstash run jq --version
    binstash download --github cli/cli@v2.40.0 --match linux --exclude arm
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from binstash import __version__
from binstash.core.config import Config, load_config
from binstash.core.context import AppContext
from binstash.core.errors import BinstashError, format_error_for_user
from binstash.core.logging import configure_logging
from binstash.models.registry_models import ResolvedPackage
from binstash.services.download.service import DownloadRequest
from binstash.services.prompt import interactive_ask
from binstash.services.registry.buildlog import inspect_build_log

from .progress import ProgressSink

logger = logging.getLogger(__name__)

# Commands that need repository metadata loaded
REGISTRY_COMMANDS = {"install", "update", "search", "list", "inspect", "run"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="binstash", description="Binary package manager")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", help="Config file (default: ~/.config/binstash/config.yaml)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--json-logs", action="store_true", help="Log as JSON lines")
    parser.add_argument("-y", "--yes", action="store_true", help="Never prompt, take the first match")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("install", help="Install packages")
    p.add_argument("packages", nargs="+")
    p.add_argument("--force", action="store_true", help="Reinstall if already installed")
    p.add_argument("--parallel", action="store_true", default=None, help="Install in parallel")
    p.add_argument("--parallel-limit", type=int, help="Maximum concurrent installs")

    p = sub.add_parser("remove", help="Remove installed packages")
    p.add_argument("packages", nargs="+")

    p = sub.add_parser("update", help="Update installed packages")
    p.add_argument("packages", nargs="*")

    p = sub.add_parser("search", help="Search packages")
    p.add_argument("query")
    p.add_argument("--case-sensitive", action="store_true")
    p.add_argument("--limit", type=int, help="Show at most N results")

    p = sub.add_parser("list", help="List available packages")
    p.add_argument("collection", nargs="?")

    sub.add_parser("installed", help="List installed packages")

    p = sub.add_parser("inspect", help="Show a package's build log")
    p.add_argument("package")

    p = sub.add_parser("run", help="Run a package without installing it")
    p.add_argument("run_args", nargs=argparse.REMAINDER, metavar="PACKAGE [ARGS...]")

    p = sub.add_parser("download", help="Download files from URLs or release platforms")
    p.add_argument("links", nargs="*", help="URLs, GitHub/GitLab project URLs or OCI references")
    p.add_argument("--github", nargs="+", default=[], metavar="OWNER/REPO[@TAG]")
    p.add_argument("--gitlab", nargs="+", default=[], metavar="GROUP/PROJECT[@TAG]")
    p.add_argument("--ghcr", nargs="+", default=[], metavar="REFERENCE")
    p.add_argument("--regex", nargs="+", default=[], help="Asset name regexes (any must match)")
    p.add_argument("--match", nargs="+", default=[], help="Asset name keywords (any must appear)")
    p.add_argument("--exclude", nargs="+", default=[], help="Asset name keywords to reject")
    p.add_argument("-o", "--output", help="Output file or directory")
    p.add_argument("--exact-case", action="store_true", help="Case-sensitive asset matching")

    p = sub.add_parser("history", help="Show recent transactions")
    p.add_argument("--limit", type=int, default=20)

    return parser


def _describe(package: ResolvedPackage) -> str:
    pkg = package.package
    line = package.display_name()
    if pkg.version:
        line += f" {pkg.version}"
    if pkg.description:
        line += f" - {pkg.description}"
    return line


async def run_command(args: argparse.Namespace, config: Config) -> int:
    """
    Execute one parsed command.

    Returns:
        Process exit code
    """
    ask = interactive_ask if sys.stdin.isatty() else None
    progress = ProgressSink()

    async with AppContext(config, ask=ask, progress_callback=progress) as ctx:
        if args.command in REGISTRY_COMMANDS:
            await ctx.load_repositories()

        if args.command == "install":
            with progress:
                summary = await ctx.orchestrator.install_many(
                    args.packages,
                    force=args.force,
                    assume_yes=args.yes,
                    parallel=args.parallel,
                    parallel_limit=args.parallel_limit,
                )
            print(summary)
            return 0 if summary.installed == summary.attempted else 1

        if args.command == "remove":
            await ctx.orchestrator.remove_many(args.packages, assume_yes=args.yes)
            return 0

        if args.command == "update":
            with progress:
                summary = await ctx.orchestrator.update_packages(args.packages or None, assume_yes=args.yes)
            print(summary)
            return 0 if summary.installed == summary.attempted else 1

        if args.command == "search":
            results = ctx.registry.search(args.query, case_sensitive=args.case_sensitive)
            for package in results[:args.limit] if args.limit else results:
                print(_describe(package))
            if not results:
                logger.info(f"No packages found for '{args.query}'")
            return 0

        if args.command == "list":
            for package in ctx.registry.list_packages(args.collection):
                print(_describe(package))
            return 0

        if args.command == "installed":
            for record in ctx.installed.list():
                version = f" {record.version}" if record.version else ""
                print(f"{record.query_string()}{version} -> {record.install_path}")
            return 0

        if args.command == "inspect":
            text = await inspect_build_log(
                ctx.registry, ctx.client, args.package, ask or interactive_ask, assume_yes=args.yes
            )
            print(text)
            return 0

        if args.command == "run":
            with progress:
                path, run_args = await ctx.runner.prepare(args.run_args, assume_yes=args.yes)
            return await ctx.runner.execute(path, run_args)

        if args.command == "download":
            request = DownloadRequest(
                links=args.links,
                github=args.github,
                gitlab=args.gitlab,
                ghcr=args.ghcr,
                regex_patterns=args.regex,
                match_keywords=args.match,
                exclude_keywords=args.exclude,
                output_path=args.output,
                exact_case=args.exact_case,
                assume_yes=args.yes,
            )
            with progress:
                result = await ctx.downloads.run(request, progress_callback=progress)
            return 0 if result.ok else 1

        if args.command == "history":
            for txn in ctx.transactions.list_transactions(args.limit):
                print(f"{txn['started_at']} {txn['operation']:<7} {txn['status']:<9} {txn['package']}")
            return 0

    return 2


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        level = "DEBUG" if args.verbose else config.log_level
        log_format = "json" if args.json_logs else config.log_format
        configure_logging(level, log_format)
        exit_code = asyncio.run(run_command(args, config))
    except BinstashError as e:
        print(f"Error: {format_error_for_user(e)}", file=sys.stderr)
        exit_code = e.exit_code
    except KeyboardInterrupt:
        exit_code = 130

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
