#!/usr/bin/env python3
"""
HTTP Analyzer CLI - Command Line Interface

Usage:
    httpanalyzer serve [--host HOST] [--port PORT]
    httpanalyzer replay events.jsonl [--domain example.com] [--export out.json]
"""

import argparse
import sys
from pathlib import Path

from httpanalyzer.config import settings
from httpanalyzer.context import AnalyzerContext
from httpanalyzer.output.console import AnalyzerConsole, get_console
from httpanalyzer.output.export import save_export
from httpanalyzer.replay import ReplayClock, replay_file


# =============================================================================
# Commands
# =============================================================================


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the API server."""
    import uvicorn

    uvicorn.run(
        "httpanalyzer.main:app",
        host=args.host,
        port=args.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
    return 0


def cmd_replay(args: argparse.Namespace, console: AnalyzerConsole) -> int:
    """Replay a recorded event file and print the tagged exchanges."""
    console.print_banner()

    path = Path(args.events).expanduser()
    if not path.is_file():
        console.print_error(f"Event file not found: {path}")
        return 1

    clock = ReplayClock()
    ctx = AnalyzerContext(settings, time_func=clock)

    try:
        result = replay_file(ctx, path, clock)
    except OSError as e:
        console.print_error(f"Could not read {path}: {e}")
        return 1

    console.print_success(
        f"Replayed {result.applied} event(s), {result.ignored} ignored"
    )
    for lineno, reason in result.errors:
        console.print_warning(f"Line {lineno} skipped: {reason}")

    if args.domain:
        ctx.set_filter(args.domain)
        console.print_info(f"Filtering on {ctx.get_filter()} and its subdomains")

    console.print_exchanges(ctx.snapshot(), ctx.get_filter())
    console.print_rate_limits(ctx.rate_limits())

    if args.export:
        try:
            saved = save_export(ctx.export(), Path(args.export))
        except OSError as e:
            console.print_error(f"Export failed: {e}")
            return 1
        console.print_success(f"Export saved to {saved}")

    return 0


# =============================================================================
# Entry Point
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="httpanalyzer",
        description="HTTP Analyzer - Passive HTTP exchange tagging",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    httpanalyzer serve --port 8080
    httpanalyzer replay capture.jsonl
    httpanalyzer replay capture.jsonl --domain example.com -o export.json
""",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP/WebSocket API")
    serve.add_argument("--host", default=settings.host, help="Bind address")
    serve.add_argument("--port", type=int, default=settings.port, help="Bind port")

    replay = subparsers.add_parser("replay", help="Replay a JSON-lines event file")
    replay.add_argument("events", help="Path to the event file")
    replay.add_argument("-d", "--domain", help="Only show this domain and its subdomains")
    replay.add_argument("-o", "--export", help="Write the full capture to this JSON file")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    args = build_parser().parse_args(argv)

    if args.command == "serve":
        return cmd_serve(args)

    # Route structlog output through the configured renderer
    from httpanalyzer.main import configure_logging

    configure_logging()
    return cmd_replay(args, get_console())


if __name__ == "__main__":
    sys.exit(main())
