"""
nodeflow.commands.check - Validate a flow exchange document.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from nodeflow.graph.mutations import MalformedImportDocument
from nodeflow.graph.serialize import import_flow_data


def run(args: argparse.Namespace) -> int:
    """Run the check command.

    Prints node and edge counts and every downstream reference that
    would be skipped on import. Exit code 1 for an unreadable or
    malformed document.
    """
    path = Path(args.file)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        print(f"Error: cannot read {path}: {e}", file=sys.stderr)
        return 1

    try:
        result = import_flow_data(text)
    except MalformedImportDocument as e:
        print(f"Malformed flow document {path}: {e}", file=sys.stderr)
        return 1

    if not args.quiet:
        print(f"{path}: {len(result.nodes)} nodes, {len(result.edges)} edges")
        for ref in result.unresolved:
            print(f"  unresolved: {ref}")
    return 0
