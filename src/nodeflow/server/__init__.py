"""
nodeflow.server - HTTP API for rendering collaborators.
"""

from nodeflow.server.app import create_app, run_server

__all__ = ["create_app", "run_server"]
