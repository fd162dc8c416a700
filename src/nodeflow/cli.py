"""
nodeflow.cli - Command-line interface.

Main entry point for the nodeflow CLI tool.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from nodeflow import __version__
from nodeflow.commands import check, reach, serve


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="nodeflow",
        description="Graph state engine for node-and-edge diagram editors",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  nodeflow serve                    # Serve an empty diagram over HTTP
  nodeflow serve flowchart.json     # Serve a diagram loaded from a file
  nodeflow check flowchart.json     # Validate an exchange document
  nodeflow reach flowchart.json B   # Show what feeds into and out of "B"

Configuration:
  .nodeflow.toml in the working directory (or a parent) overrides defaults;
  NODEFLOW_<SECTION>_<KEY> environment variables override the file.
        """,
    )

    # Global options
    parser.add_argument(
        "--version",
        action="version",
        version=f"nodeflow {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration file",
        metavar="PATH",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-error output",
    )

    # Subcommands
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # serve command
    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP API for a diagram editor",
    )
    serve_parser.add_argument(
        "file",
        nargs="?",
        type=Path,
        help="Exchange document to load on start",
    )
    serve_parser.add_argument(
        "--host",
        help="Interface to bind (default: server.host from config)",
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        help="Port to bind (default: server.port from config)",
    )

    # check command
    check_parser = subparsers.add_parser(
        "check",
        help="Validate an exchange document",
    )
    check_parser.add_argument("file", type=Path, help="Exchange document to validate")

    # reach command
    reach_parser = subparsers.add_parser(
        "reach",
        help="Show upstream and downstream nodes of a label",
    )
    reach_parser.add_argument("file", type=Path, help="Exchange document to load")
    reach_parser.add_argument("label", help="Label of the seed node")
    reach_parser.add_argument(
        "-j",
        "--json",
        action="store_true",
        help="Output as JSON",
    )

    # version command
    subparsers.add_parser(
        "version",
        help="Show version information",
    )

    return parser


def _configure_logging(args: argparse.Namespace) -> None:
    """Configure root logging from -v/-q or the config's logging.level."""
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.ERROR
    else:
        from nodeflow.config import ConfigError, get_config

        try:
            name = get_config(args.config).get("logging", {}).get("level", "WARNING")
        except ConfigError:
            name = "WARNING"
        level = getattr(logging, str(name).upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    # Handle no command
    if not args.command:
        parser.print_help()
        return 0

    _configure_logging(args)

    try:
        # Dispatch to command handlers
        if args.command == "serve":
            return serve.run(args)
        elif args.command == "check":
            return check.run(args)
        elif args.command == "reach":
            return reach.run(args)
        elif args.command == "version":
            return version_command(args)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled.", file=sys.stderr)
        return 130
    except Exception as e:
        if args.verbose:
            raise
        print(f"Error: {e}", file=sys.stderr)
        return 1


def version_command(args: argparse.Namespace) -> int:
    """Handle version command."""
    print(f"nodeflow {__version__}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
