"""
nodeflow.commands.serve - Run the HTTP API for a diagram editor.
"""

from __future__ import annotations

import argparse
import sys

from nodeflow.config import get_config
from nodeflow.session import EditorSession


def run(args: argparse.Namespace) -> int:
    """Run the serve command, optionally seeding the graph from a file."""
    from nodeflow.server import run_server

    config = get_config(args.config)
    session = EditorSession(config)

    if args.file:
        result = session.import_file(args.file)
        if not result.success:
            print(f"Error: {result.message}", file=sys.stderr)
            return 1
        print(result.message)

    server_cfg = config.get("server", {})
    host = args.host or server_cfg.get("host", "127.0.0.1")
    port = args.port or server_cfg.get("port", 5173)

    print(f"Starting nodeflow server on http://{host}:{port}")
    try:
        run_server(session, config, host=host, port=port)
    except KeyboardInterrupt:
        print("\nServer stopped.")
    return 0
