"""nodeflow.server.app - Flask app factory and REST API routes.

This is a THIN REST wrapper: every route delegates to an EditorSession
method. No graph logic is duplicated here. Failed operations come back
as ``{"success": false, "error": ...}`` with status 404 for unknown ids
and 400 for everything else.
"""

from __future__ import annotations

import logging
from typing import Any

from flask import Flask, Response, jsonify, request
from flask_cors import CORS

from nodeflow.graph.serialize import serialize_node
from nodeflow.session import EditorSession, MutationResult

logger = logging.getLogger(__name__)


def _respond(result: MutationResult):
    """Turn a MutationResult into a JSON response with a fitting status."""
    if result.success:
        return jsonify(result.to_dict())
    status = 404 if isinstance(result.error, KeyError) else 400
    return jsonify(result.to_dict()), status


def _json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _bad_request(message: str):
    return jsonify({"success": False, "error": message}), 400


def _id_list(body: dict[str, Any], key: str) -> list[str] | None:
    """Return ``body[key]`` as a list of ids (empty when absent), or None if malformed."""
    value = body.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        return None
    return value


def create_app(session: EditorSession, config: dict[str, Any] | None = None) -> Flask:
    """Create the Flask application with REST API routes.

    Args:
        session: The editor session all routes operate on.
        config: nodeflow configuration dict (defaults to the session's).

    Returns:
        Configured Flask application.
    """
    config = config if config is not None else session.config
    app = Flask(__name__)

    if config.get("server", {}).get("cors", True):
        CORS(app)

    @app.after_request
    def _no_cache(response):
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
        return response

    # ─────────────────────────────────────────────────────────────────
    # Read-only GET endpoints
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/graph")
    def api_graph():
        """GET /api/graph - Nodes, edges, selection, highlights and history state."""
        return jsonify(session.to_dict())

    @app.route("/api/nodes")
    def api_nodes():
        """GET /api/nodes?q=<text>&sort=<default|alphabetical> - Filtered node list."""
        query = request.args.get("q", "")
        sort = request.args.get("sort", "default")
        try:
            nodes = session.list_nodes(query, sort)
        except ValueError as e:
            return _bad_request(str(e))
        return jsonify([serialize_node(node) for node in nodes])

    @app.route("/api/reachability/<node_id>")
    def api_reachability(node_id: str):
        """GET /api/reachability/<node_id> - Upstream/downstream sets."""
        if session.find_node(node_id) is None:
            return jsonify({"success": False, "error": f"Node '{node_id}' not found"}), 404
        return jsonify(session.reachability(node_id).to_dict())

    @app.route("/api/history")
    def api_history():
        """GET /api/history - Committed operations up to the cursor."""
        return jsonify(
            {
                "cursor": session.history.cursor,
                "length": len(session.history),
                "entries": [entry.to_dict() for entry in session.history.entries()],
            }
        )

    @app.route("/api/export")
    def api_export():
        """GET /api/export - Exchange document as a JSON download."""
        filename = config.get("export", {}).get("filename", "flowchart.json")
        return Response(
            session.export_document(),
            mimetype="application/json",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    # ─────────────────────────────────────────────────────────────────
    # Mutation endpoints
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/nodes", methods=["POST"])
    def api_add_node():
        """POST /api/nodes {kind?, position?} - Create a node."""
        body = _json_body()
        return _respond(session.add_node(body.get("kind"), body.get("position")))

    @app.route("/api/nodes/<node_id>", methods=["PATCH"])
    def api_update_node(node_id: str):
        """PATCH /api/nodes/<id> {label, extra_fields?} - Commit a label edit."""
        body = _json_body()
        label = body.get("label")
        if not isinstance(label, str):
            return _bad_request("'label' must be a string")
        return _respond(session.update_node_data(node_id, label, body.get("extra_fields")))

    @app.route("/api/nodes/<node_id>/position", methods=["POST"])
    def api_move_node(node_id: str):
        """POST /api/nodes/<id>/position {x, y} - Drag step (no checkpoint)."""
        return _respond(session.move_node(node_id, _json_body()))

    @app.route("/api/drag/end", methods=["POST"])
    def api_end_drag():
        """POST /api/drag/end - Commit the drag gesture."""
        return _respond(session.end_drag())

    @app.route("/api/edges", methods=["POST"])
    def api_add_edge():
        """POST /api/edges {source, target} or {sources, target} - Connect nodes."""
        body = _json_body()
        target = body.get("target")
        if not isinstance(target, str):
            return _bad_request("'target' must be a node id")
        if "sources" in body:
            sources = _id_list(body, "sources")
            if sources is None:
                return _bad_request("'sources' must be a list of node ids")
            return _respond(session.add_edges_from_selection(sources, target))
        source = body.get("source")
        if not isinstance(source, str):
            return _bad_request("'source' must be a node id")
        return _respond(session.connect(source, target))

    @app.route("/api/edges/<edge_id>", methods=["PATCH"])
    def api_reconnect_edge(edge_id: str):
        """PATCH /api/edges/<id> {source, target} - Reconnect an edge."""
        body = _json_body()
        source, target = body.get("source"), body.get("target")
        if not isinstance(source, str) or not isinstance(target, str):
            return _bad_request("'source' and 'target' must be node ids")
        return _respond(session.reconnect_edge(edge_id, source, target))

    @app.route("/api/delete", methods=["POST"])
    def api_delete():
        """POST /api/delete {node_ids?, edge_ids?} - Delete elements (or the selection)."""
        body = _json_body()
        if "node_ids" not in body and "edge_ids" not in body:
            return _respond(session.delete_selection())
        node_ids, edge_ids = _id_list(body, "node_ids"), _id_list(body, "edge_ids")
        if node_ids is None or edge_ids is None:
            return _bad_request("'node_ids' and 'edge_ids' must be lists of ids")
        return _respond(session.delete_selection(node_ids, edge_ids))

    @app.route("/api/select", methods=["POST"])
    def api_select():
        """POST /api/select {node_ids?, edge_ids?} - Replace the selection."""
        body = _json_body()
        node_ids, edge_ids = _id_list(body, "node_ids"), _id_list(body, "edge_ids")
        if node_ids is None or edge_ids is None:
            return _bad_request("'node_ids' and 'edge_ids' must be lists of ids")
        return _respond(session.set_selection(node_ids, edge_ids))

    @app.route("/api/undo", methods=["POST"])
    def api_undo():
        """POST /api/undo - Step back one checkpoint."""
        return _respond(session.undo())

    @app.route("/api/redo", methods=["POST"])
    def api_redo():
        """POST /api/redo - Step forward one checkpoint."""
        return _respond(session.redo())

    @app.route("/api/import", methods=["POST"])
    def api_import():
        """POST /api/import - Replace the graph with the posted exchange document."""
        return _respond(session.import_document(request.get_data(as_text=True)))

    return app


def run_server(session: EditorSession, config: dict[str, Any], host: str, port: int) -> None:
    """Serve the API until interrupted."""
    app = create_app(session, config)
    logger.info("Serving nodeflow API on http://%s:%d", host, port)
    app.run(host=host, port=port)
