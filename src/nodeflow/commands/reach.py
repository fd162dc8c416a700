"""
nodeflow.commands.reach - Show upstream/downstream nodes of a label.
"""

from __future__ import annotations

import argparse
import json
import sys

from nodeflow.config import get_config
from nodeflow.session import EditorSession


def run(args: argparse.Namespace) -> int:
    """Run the reach command."""
    session = EditorSession(get_config(args.config))
    result = session.import_file(args.file)
    if not result.success:
        print(f"Error: {result.message}", file=sys.stderr)
        return 1

    node = session.find_node_by_label(args.label)
    if node is None:
        print(f"Error: no node labelled '{args.label}'", file=sys.stderr)
        return 1

    reach = session.reachability(node.id)
    labels = {n.id: n.label for n in session.nodes}
    upstream = sorted(labels[nid] for nid in reach.upstream_node_ids)
    downstream = sorted(labels[nid] for nid in reach.downstream_node_ids)

    if args.json:
        data = {"label": node.label, "upstream": upstream, "downstream": downstream}
        print(json.dumps(data, indent=2))
        return 0

    print(f"{node.label}")
    print(f"  upstream ({len(upstream)}): {', '.join(upstream) or '-'}")
    print(f"  downstream ({len(downstream)}): {', '.join(downstream) or '-'}")
    return 0
